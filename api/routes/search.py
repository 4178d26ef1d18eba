"""
Upload and Search API Routes

This module provides the two endpoints the capture client calls in sequence:
- POST /api/get-presigned-url: Issue a short-lived upload grant for a new probe image
- POST /api/search-face: Search the face collection using an uploaded probe image

The browser uploads the probe directly to S3 between the two calls, so the
backend never handles image bytes.
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter

from api.schemas import (
    PresignedUrlResponse,
    SearchFaceRequest,
    SearchFaceResponse,
    MatchResult,
    MessageResponse,
)
from core.config import get_aws_config, get_search_config
from core.errors import (
    ClientInputError,
    FaceSearchError,
    NoFaceDetectedError,
    NotFoundError,
    UnexpectedError,
    UpstreamServiceError,
)
from core.face_index import FaceMatch, get_face_index
from core.object_store import ObjectStore, get_object_store

# Setup logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/api", tags=["search"])

ERROR_RESPONSES = {
    400: {"model": MessageResponse},
    404: {"model": MessageResponse},
    500: {"model": MessageResponse},
}


def format_similarity(similarity: float) -> str:
    """Format a 0-100 similarity with exactly two decimals."""
    return f"{similarity:.2f}"


async def build_match_results(
    matches: List[FaceMatch],
    object_store: ObjectStore,
) -> List[MatchResult]:
    """
    Attach a read grant to every match.

    Grants are issued concurrently. The result keeps the order of ``matches``
    regardless of which grant finishes first, and the first failure fails the
    whole call: a match is never returned without its image URL.

    Args:
        matches: Matches in service ranking order.
        object_store: Gateway issuing the read grants.

    Returns:
        One MatchResult per match, same order.
    """

    async def to_result(match: FaceMatch) -> MatchResult:
        person_id = match.external_image_id
        image_url = await asyncio.to_thread(object_store.create_download_url, person_id)
        return MatchResult(
            personId=person_id,
            similarity=format_similarity(match.similarity),
            imageUrl=image_url,
        )

    results = await asyncio.gather(*(to_result(match) for match in matches))
    return list(results)


@router.post(
    "/get-presigned-url",
    response_model=PresignedUrlResponse,
    responses={500: {"model": MessageResponse}},
)
async def get_presigned_url():
    """
    Issue an upload grant for a new probe image.

    Generates a random object key and a pre-signed PUT URL for it.
    Nothing is stored server-side; the key only exists once the client
    uploads to it.

    Returns:
        The upload URL and the object key to pass to /api/search-face.

    Raises:
        500: If the grant could not be issued.
    """
    try:
        grant = get_object_store().create_upload_grant()
    except Exception as e:
        logger.error(f"Error generating pre-signed URL: {e}", exc_info=True)
        raise UpstreamServiceError("Error generating upload URL") from e

    return PresignedUrlResponse(uploadUrl=grant.upload_url, key=grant.key)


@router.post(
    "/search-face",
    response_model=SearchFaceResponse,
    responses=ERROR_RESPONSES,
)
async def search_face(request: Optional[SearchFaceRequest] = None):
    """
    Search the face collection for faces similar to an uploaded probe image.

    This endpoint:
    1. Validates the object key
    2. Runs a similarity search against the configured collection
    3. Issues a read grant for every matched image (concurrently)
    4. Returns the matches in the service's ranking order

    Args:
        request: SearchFaceRequest with the key from /api/get-presigned-url.

    Returns:
        SearchFaceResponse with at least one match.

    Raises:
        400: If the key is missing or empty.
        404: If no face in the collection matches (or the probe has no face).
        500: If S3 or the recognition service fails.
    """
    key = request.key if request is not None else None
    if not key or not key.strip():
        raise ClientInputError("S3 image key is required.")

    try:
        aws_config = get_aws_config()
        search_config = get_search_config()
        face_index = get_face_index()
        matches = await asyncio.to_thread(
            face_index.search_by_image,
            aws_config["bucket_name"],
            key,
            search_config.get("face_match_threshold", 85),
            search_config.get("max_faces", 50),
        )
    except NoFaceDetectedError as e:
        logger.info(f"No face detected in probe {key}: {e.detail}")
        raise NotFoundError() from e
    except FaceSearchError as e:
        logger.error(f"Error searching for face: {e}", exc_info=True)
        raise
    except Exception as e:
        logger.error(f"Unexpected error searching for face: {e}", exc_info=True)
        raise UnexpectedError() from e

    if not matches:
        logger.info("No match found.")
        raise NotFoundError()

    logger.info(f"Found {len(matches)} matches.")

    try:
        results = await build_match_results(matches, get_object_store())
    except Exception as e:
        logger.error(f"Error generating image URLs for matches: {e}", exc_info=True)
        raise UpstreamServiceError() from e

    return SearchFaceResponse(message="Matches found!", matches=results)
