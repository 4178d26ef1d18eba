"""
Frontend UI components for the Face Search demo.
"""

from .webcam_capture import WebcamCapture, CaptureConfig, frame_to_jpeg, load_image
from .search_panel import SearchPanel, SearchState, SearchStatus, SearchConfig

__all__ = [
    "WebcamCapture", "CaptureConfig", "frame_to_jpeg", "load_image",
    "SearchPanel", "SearchState", "SearchStatus", "SearchConfig",
]
