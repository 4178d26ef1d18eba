"""
Error taxonomy for the face search backend.

Every error carries the HTTP status it maps to and a public message that is
safe to return to clients. Upstream details (AWS error codes, request ids)
belong in the logs, never in ``public_message``.
"""

from typing import Optional


class FaceSearchError(Exception):
    """Base class for errors surfaced by the face search API."""

    status_code: int = 500
    default_message: str = "Internal server error."

    def __init__(self, public_message: Optional[str] = None, detail: Optional[str] = None):
        self.public_message = public_message or self.default_message
        self.detail = detail
        super().__init__(detail or self.public_message)


class ClientInputError(FaceSearchError):
    """A required request field is missing or malformed."""

    status_code = 400
    default_message = "Invalid request."


class NotFoundError(FaceSearchError):
    """The search completed but no face in the collection matched."""

    status_code = 404
    default_message = "No match found in the collection."


class UpstreamServiceError(FaceSearchError):
    """S3 or Rekognition failed."""

    status_code = 500
    default_message = "Internal server error."


class NoFaceDetectedError(UpstreamServiceError):
    """The probe image does not contain a face the recognition service can use."""

    default_message = "No face detected in the image."


class UnexpectedError(FaceSearchError):
    """Any failure not covered by the other error types."""

    status_code = 500
    default_message = "Internal server error."
