"""
API client for the Face Search backend.

Handles the three network calls of a capture cycle:
1. POST /api/get-presigned-url  -> upload grant
2. PUT <uploadUrl>              -> probe image straight to S3
3. POST /api/search-face        -> matches

Includes mock mode for development without backend.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class ConnectionMode(Enum):
    """API connection mode."""
    MOCK = "mock"          # Simulated responses (no backend needed)
    LIVE = "live"          # Real backend connection


class SearchAPIError(Exception):
    """
    A step of the capture cycle failed.

    Attributes:
        step: Which call failed ("upload_grant", "upload", "search").
        status_code: HTTP status if the server answered, None for transport errors.
        server_message: The ``message`` field of the error body, if any.
    """

    def __init__(self, step: str, status_code: Optional[int] = None, server_message: Optional[str] = None):
        self.step = step
        self.status_code = status_code
        self.server_message = server_message
        detail = server_message or ("transport error" if status_code is None else f"HTTP {status_code}")
        super().__init__(f"{step} failed: {detail}")

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


@dataclass
class UploadGrant:
    """Upload grant returned by the backend."""
    upload_url: str
    key: str


@dataclass
class MatchItem:
    """A matched face as returned by /api/search-face."""
    person_id: str
    similarity: str
    image_url: str


@dataclass
class SearchResponse:
    """Successful search response."""
    message: str = ""
    matches: List[MatchItem] = field(default_factory=list)


def extract_error_message(response: httpx.Response) -> Optional[str]:
    """Return the ``message`` field of a JSON error body, or None."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message:
            return message
    return None


class MockBackend:
    """
    Simulates backend responses for development without the real API.
    Mimics the behavior of the /api endpoints with fixed, ordered matches.
    """

    def __init__(self, matches: Optional[List[MatchItem]] = None):
        self._counter = 0
        self.matches = matches if matches is not None else [
            MatchItem("alice.jpeg", "97.50", "https://placehold.co/200x200?text=alice"),
            MatchItem("bob.jpeg", "91.20", "https://placehold.co/200x200?text=bob"),
        ]
        self.uploaded: Dict[str, bytes] = {}

    def request_upload_grant(self) -> UploadGrant:
        self._counter += 1
        key = f"{self._counter:032x}.jpeg"
        return UploadGrant(upload_url=f"mock://upload/{key}", key=key)

    def upload_image(self, upload_url: str, image_bytes: bytes) -> None:
        self.uploaded[upload_url.rsplit("/", 1)[-1]] = image_bytes

    def search_face(self, key: str) -> SearchResponse:
        if key not in self.uploaded:
            raise SearchAPIError("search", 500, "Internal server error.")
        if not self.matches:
            raise SearchAPIError("search", 404, "No match found in the collection.")
        return SearchResponse(message="Matches found!", matches=list(self.matches))


class FaceSearchClient:
    """
    Client for communicating with the Face Search backend API.

    Supports both live (real backend) and mock (simulated) modes.
    Every failure is raised as SearchAPIError; nothing is retried.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3001",
        mode: ConnectionMode = ConnectionMode.MOCK,
        timeout_sec: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.mode = mode
        self.timeout_sec = timeout_sec

        self._mock = MockBackend()
        self._http = httpx.Client(timeout=timeout_sec, transport=transport)

    def set_mode(self, mode: ConnectionMode) -> None:
        """Switch between mock and live mode."""
        self.mode = mode
        logger.info(f"Switched to {mode.name} mode")

    def check_backend_available(self) -> bool:
        """Check if the backend server is reachable."""
        try:
            response = self._http.get(f"{self.base_url}/", timeout=2.0)
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    def close(self) -> None:
        self._http.close()

    def _post(self, step: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = self._http.post(f"{self.base_url}{path}", json=payload)
        except httpx.HTTPError as e:
            logger.warning(f"POST {path} error: {e}")
            raise SearchAPIError(step) from e

        if response.status_code >= 400:
            logger.warning(f"POST {path} failed: {response.status_code}")
            raise SearchAPIError(step, response.status_code, extract_error_message(response))

        try:
            return response.json()
        except ValueError as e:
            raise SearchAPIError(step, response.status_code) from e

    # ==================== Capture cycle ====================

    def request_upload_grant(self) -> UploadGrant:
        """Ask the backend for a pre-signed upload URL and object key."""
        if self.mode == ConnectionMode.MOCK:
            return self._mock.request_upload_grant()

        data = self._post("upload_grant", "/api/get-presigned-url")
        try:
            return UploadGrant(upload_url=data["uploadUrl"], key=data["key"])
        except (KeyError, TypeError) as e:
            raise SearchAPIError("upload_grant", 200, "Malformed upload grant response.") from e

    def upload_image(self, upload_url: str, image_bytes: bytes, content_type: str = "image/jpeg") -> None:
        """PUT the probe image to the pre-signed URL."""
        if self.mode == ConnectionMode.MOCK:
            self._mock.upload_image(upload_url, image_bytes)
            return

        try:
            response = self._http.put(
                upload_url,
                content=image_bytes,
                headers={"Content-Type": content_type},
            )
        except httpx.HTTPError as e:
            logger.warning(f"Upload error: {e}")
            raise SearchAPIError("upload") from e

        if response.status_code >= 400:
            # S3 answers with XML, so there is no message to surface
            logger.warning(f"Upload failed: {response.status_code}")
            raise SearchAPIError("upload", response.status_code)

    def search_face(self, key: str) -> SearchResponse:
        """Search the collection with the uploaded probe image."""
        if self.mode == ConnectionMode.MOCK:
            return self._mock.search_face(key)

        data = self._post("search", "/api/search-face", {"key": key})
        try:
            matches = [
                MatchItem(
                    person_id=m["personId"],
                    similarity=m["similarity"],
                    image_url=m["imageUrl"],
                )
                for m in data.get("matches") or []
            ]
            return SearchResponse(message=data.get("message", ""), matches=matches)
        except (AttributeError, KeyError, TypeError) as e:
            raise SearchAPIError("search", 200, "Malformed search response.") from e


# Global client instance
_api_client: Optional[FaceSearchClient] = None


def get_api_client() -> FaceSearchClient:
    """Get or create the global API client instance."""
    global _api_client
    if _api_client is None:
        from core.config import get_api_config

        api_config = get_api_config()
        _api_client = FaceSearchClient(
            base_url=api_config.get("base_url", "http://localhost:3001"),
            mode=ConnectionMode.MOCK,
            timeout_sec=float(api_config.get("request_timeout_sec", 30.0)),
        )
    return _api_client
