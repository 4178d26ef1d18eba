"""
Search panel component for the Face Search demo.

Drives one capture cycle at a time:

    READY -> CAPTURING -> REQUESTING_UPLOAD_GRANT -> UPLOADING -> SEARCHING
          -> MATCHES_FOUND | NO_MATCH_FOUND | ERROR

A new cycle can only start from READY or a terminal state. Triggers that
arrive while a cycle is in flight are rejected and leave the running cycle
untouched.
"""

import logging
import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterator, List, Optional, Tuple

import numpy as np

from frontend.api_client import FaceSearchClient, MatchItem, SearchAPIError
from frontend.components.webcam_capture import frame_to_jpeg

logger = logging.getLogger(__name__)


class SearchStatus(Enum):
    """Status of the capture cycle. Values are the labels shown in the UI."""
    READY = "Ready"
    CAPTURING = "Capturing image..."
    REQUESTING_UPLOAD_GRANT = "Getting secure upload URL..."
    UPLOADING = "Uploading image..."
    SEARCHING = "Searching for a match..."
    MATCHES_FOUND = "Matches Found!"
    NO_MATCH_FOUND = "No Match Found"
    ERROR = "Error"

    @property
    def is_terminal(self) -> bool:
        return self in (SearchStatus.MATCHES_FOUND, SearchStatus.NO_MATCH_FOUND, SearchStatus.ERROR)

    @property
    def accepts_trigger(self) -> bool:
        return self is SearchStatus.READY or self.is_terminal


@dataclass
class SearchState:
    """Snapshot of the panel. Replaced wholesale at each transition."""
    status: SearchStatus = SearchStatus.READY
    error: str = ""
    message: str = ""
    matches: List[MatchItem] = field(default_factory=list)


@dataclass
class SearchConfig:
    """Configuration for the search panel."""
    jpeg_quality: int = 90
    frame_is_rgb: bool = False  # Gradio delivers RGB, OpenCV delivers BGR
    content_type: str = "image/jpeg"


class SearchPanel:
    """
    Manages the capture-and-search UI flow.

    Responsibilities:
    - Encode the captured frame
    - Run the three backend calls in order (grant, upload, search)
    - Map failures to a status and a user-facing error message
    - Refuse overlapping capture cycles
    """

    CAPTURE_ERROR = "Could not capture an image."
    HTTP_ERROR_FALLBACK = "The search process failed."
    UNKNOWN_ERROR = "An unknown error occurred."
    INTERRUPTED_ERROR = "The search was interrupted."

    def __init__(self, client: FaceSearchClient, config: Optional[SearchConfig] = None):
        self.client = client
        self.config = config or SearchConfig()
        self._state = SearchState()
        self._lock = threading.Lock()

    @property
    def state(self) -> SearchState:
        """Current state snapshot."""
        return replace(self._state, matches=list(self._state.matches))

    @property
    def is_busy(self) -> bool:
        """Check if a capture cycle is in progress."""
        return not self._state.status.accepts_trigger

    def _transition(self, status: SearchStatus, **changes) -> SearchState:
        self._state = replace(self._state, status=status, **changes)
        logger.debug(f"Search status: {status.value}")
        return self.state

    def _try_start(self) -> bool:
        with self._lock:
            if not self._state.status.accepts_trigger:
                return False
            # A new trigger clears the previous outcome
            self._state = SearchState(status=SearchStatus.CAPTURING)
            return True

    def iter_capture_and_search(self, frame: Optional[np.ndarray]) -> Iterator[SearchState]:
        """
        Run one capture cycle, yielding a snapshot after every transition.

        Args:
            frame: The captured image, or None if the camera had no frame.

        Yields:
            SearchState snapshots, ending with a terminal state. If a cycle is
            already running, yields the current state once and does nothing.
        """
        if not self._try_start():
            logger.warning("Capture ignored: a search is already in progress")
            yield self.state
            return

        try:
            yield self.state

            image_bytes = self._encode(frame)
            if image_bytes is None:
                yield self._transition(SearchStatus.ERROR, error=self.CAPTURE_ERROR)
                return

            try:
                yield self._transition(SearchStatus.REQUESTING_UPLOAD_GRANT)
                grant = self.client.request_upload_grant()

                yield self._transition(SearchStatus.UPLOADING)
                self.client.upload_image(grant.upload_url, image_bytes, self.config.content_type)

                yield self._transition(SearchStatus.SEARCHING)
                response = self.client.search_face(grant.key)
            except SearchAPIError as e:
                logger.warning(f"Capture cycle failed: {e}")
                yield self._fail(e)
                return

            if response.matches:
                yield self._transition(
                    SearchStatus.MATCHES_FOUND,
                    message=response.message,
                    matches=list(response.matches),
                )
            else:
                yield self._transition(SearchStatus.NO_MATCH_FOUND, message=response.message)
        finally:
            if not self._state.status.accepts_trigger:
                self._transition(SearchStatus.ERROR, error=self.INTERRUPTED_ERROR, matches=[])

    def capture_and_search(self, frame: Optional[np.ndarray]) -> SearchState:
        """Run one capture cycle to completion and return the final state."""
        state = self.state
        for state in self.iter_capture_and_search(frame):
            pass
        return state

    def _encode(self, frame: Optional[np.ndarray]) -> Optional[bytes]:
        if frame is None or frame.size == 0:
            return None
        try:
            return frame_to_jpeg(frame, quality=self.config.jpeg_quality, rgb=self.config.frame_is_rgb)
        except ValueError as e:
            logger.warning(f"Frame encoding failed: {e}")
            return None

    def _fail(self, error: SearchAPIError) -> SearchState:
        if error.step == "search" and error.is_not_found:
            return self._transition(
                SearchStatus.NO_MATCH_FOUND,
                message=error.server_message or "",
                matches=[],
            )

        if error.server_message:
            message = error.server_message
        elif error.status_code is not None:
            message = self.HTTP_ERROR_FALLBACK
        else:
            message = self.UNKNOWN_ERROR
        return self._transition(SearchStatus.ERROR, error=message, matches=[])

    # ==================== Display ====================

    def format_status_message(self, state: Optional[SearchState] = None) -> str:
        """Format the status (and error, if any) for display."""
        state = state or self.state
        text = f"### Status: {state.status.value}"
        if state.status is SearchStatus.ERROR and state.error:
            text += f"\n\n**Error: {state.error}**"
        elif state.status is SearchStatus.MATCHES_FOUND:
            text += f"\n\n{len(state.matches)} match(es)"
        return text

    @staticmethod
    def gallery_items(state: SearchState) -> List[Tuple[str, str]]:
        """(image URL, caption) pairs in match order; empty unless matches were found."""
        if state.status is not SearchStatus.MATCHES_FOUND:
            return []
        return [
            (m.image_url, f"ID: {m.person_id} | Similarity: {m.similarity}%")
            for m in state.matches
        ]
