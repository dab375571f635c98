"""
Server Executor - Gesture to host pointer bridge.

This module runs on the machine whose pointer is driven and:
- Accepts gesture actions over HTTP (POST /gesture) and WebSocket
- Maps each action to a pointer move, click or double click
- Runs host commands without blocking the caller
"""

__version__ = "1.0.0"
