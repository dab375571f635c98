"""
Client Hand Pointer - Hand landmark to pointer gesture client.

This module runs next to the camera, tracks one hand with MediaPipe, turns
its landmarks into debounced pointer gestures (cursor, pinch, double tap)
and sends them to a remote executor over HTTP or WebSocket.
"""

__version__ = "1.0.0"
