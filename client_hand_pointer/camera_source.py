"""
Camera Landmark Source - OpenCV capture plus MediaPipe Hands.

Produces the LandmarkFrames consumed by the tracker. Frames are not
flipped before detection; the cursor mapping mirrors x instead.
"""

import logging
import time
from typing import List, Optional

import cv2
import mediapipe as mp

from .landmarks import LandmarkFrame, frames_from_results

logger = logging.getLogger(__name__)

# MediaPipe setup
mp_hands = mp.solutions.hands


class CameraLandmarkSource:
    """
    Landmark source backed by a local camera.

    open() must succeed before read() is called; close() releases both the
    camera and the model.
    """

    def __init__(
        self,
        camera_index: int = 0,
        width: int = 1280,
        height: int = 720,
        max_num_hands: int = 2,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ):
        self.camera_index = camera_index
        self.width = width
        self.height = height
        self.max_num_hands = max_num_hands
        self.min_detection_confidence = min_detection_confidence
        self.min_tracking_confidence = min_tracking_confidence

        self.cap: Optional[cv2.VideoCapture] = None
        self.hands: Optional[mp_hands.Hands] = None

    def open(self) -> bool:
        """Open the camera and load the hand model."""
        logger.info(f"Opening camera index: {self.camera_index}")
        self.cap = cv2.VideoCapture(self.camera_index)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)

        if not self.cap.isOpened():
            logger.error("Failed to open camera source")
            self.close()
            return False

        width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        fps = self.cap.get(cv2.CAP_PROP_FPS)
        logger.info(f"Camera opened: {width}x{height} @ {fps:.1f} fps")

        self.hands = mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=self.max_num_hands,
            model_complexity=1,
            min_detection_confidence=self.min_detection_confidence,
            min_tracking_confidence=self.min_tracking_confidence,
        )
        return True

    def read(self) -> List[LandmarkFrame]:
        """
        Capture one frame and detect hands.

        Returns:
            Detected hands, empty if the frame could not be read
        """
        if self.cap is None or self.hands is None:
            raise RuntimeError("Landmark source is not open")

        ok, frame = self.cap.read()
        timestamp_ms = time.monotonic() * 1000.0

        if not ok or frame is None or frame.size == 0:
            logger.debug("Camera read failed")
            return []

        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        results = self.hands.process(rgb)
        return frames_from_results(results, timestamp_ms)

    def close(self) -> None:
        """Release the camera and the model."""
        if self.cap:
            self.cap.release()
            self.cap = None
        if self.hands:
            self.hands.close()
            self.hands = None
