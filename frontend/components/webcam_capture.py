"""
Webcam capture component for the Face Search demo.

Handles local webcam access and JPEG encoding of captured frames
before they are uploaded to the pre-signed URL.
"""

import logging
import cv2
import numpy as np
from typing import Optional, Tuple
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class CaptureConfig:
    """Configuration for webcam capture."""
    width: int = 640
    height: int = 480
    device_id: int = 0
    jpeg_quality: int = 90
    warmup_frames: int = 5  # Frames discarded while auto-exposure settles


class WebcamCapture:
    """
    Manages webcam access and single-frame capture for the search client.

    This component handles:
    - Opening/closing the webcam device
    - Capturing a still frame at the configured resolution
    - Encoding frames as JPEG bytes for upload
    """

    def __init__(self, config: Optional[CaptureConfig] = None):
        self.config = config or CaptureConfig()
        self._cap: Optional[cv2.VideoCapture] = None

    def open(self) -> bool:
        """
        Open the webcam device.

        Returns:
            True if webcam opened successfully, False otherwise.
        """
        if self._cap is not None:
            self.close()

        self._cap = cv2.VideoCapture(self.config.device_id)

        if not self._cap.isOpened():
            logger.warning(f"Failed to open camera {self.config.device_id}")
            self._cap = None
            return False

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)

        for _ in range(self.config.warmup_frames):
            self._cap.read()

        logger.info(f"Opened camera {self.config.device_id} at {self.config.width}x{self.config.height}")
        return True

    def close(self) -> None:
        """Release the webcam device."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info("Camera closed")

    def read_frame(self) -> Tuple[bool, Optional[np.ndarray]]:
        """
        Read a single frame from the webcam.

        Returns:
            Tuple of (success, frame) where frame is BGR numpy array or None.
        """
        if self._cap is None:
            return False, None

        ret, frame = self._cap.read()
        if not ret:
            return False, None

        return True, frame

    def encode(self, frame: np.ndarray, rgb: bool = False) -> bytes:
        """Encode a frame with this capture's JPEG quality."""
        return frame_to_jpeg(frame, quality=self.config.jpeg_quality, rgb=rgb)

    @property
    def is_open(self) -> bool:
        """Check if webcam is currently open."""
        return self._cap is not None and self._cap.isOpened()

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def frame_to_jpeg(frame: np.ndarray, quality: int = 90, rgb: bool = False) -> bytes:
    """
    Encode a frame as JPEG bytes.

    Args:
        frame: Image as numpy array (BGR, or RGB when ``rgb`` is True,
               which is what Gradio's webcam component delivers).
        quality: JPEG quality 0-100.
        rgb: Whether the channels are in RGB order.

    Returns:
        JPEG-encoded bytes.

    Raises:
        ValueError: If the frame cannot be encoded.
    """
    if rgb and frame.ndim == 3:
        frame = cv2.cvtColor(frame, cv2.COLOR_RGB2BGR)

    success, buffer = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not success:
        raise ValueError("Failed to encode frame")

    return buffer.tobytes()


def load_image(path: str) -> Optional[np.ndarray]:
    """Load an image file as a BGR frame, or None if it cannot be read."""
    return cv2.imread(path, cv2.IMREAD_COLOR)


def get_available_cameras(max_check: int = 5) -> list:
    """
    Probe for available camera devices.

    Args:
        max_check: Maximum device IDs to check.

    Returns:
        List of available camera device IDs.
    """
    available = []
    for i in range(max_check):
        cap = cv2.VideoCapture(i)
        if cap.isOpened():
            available.append(i)
            cap.release()
    return available
