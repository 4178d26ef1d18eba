"""
Face Index Service Interface

Face detection, embedding and similarity ranking are delegated to a managed
recognition service. This module hides that service behind a narrow
interface so the API layer and scripts never touch the SDK directly, and
tests can substitute a fake with deterministic scores.

The interface has three groups of operations:
1. Collection management - list_collections, create_collection, ensure_collection
2. Indexing - index_face (register the face in a stored image)
3. Querying - search_by_image, list_faces

RekognitionFaceIndex is the production implementation (AWS Rekognition via boto3).

Usage:
    from core.face_index import get_face_index

    index = get_face_index()
    matches = index.search_by_image(bucket, key, threshold=85, max_faces=50)
    for match in matches:
        print(match.external_image_id, match.similarity)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from core.config import get_aws_config
from core.errors import NoFaceDetectedError, UpstreamServiceError

logger = logging.getLogger(__name__)

# Rekognition raises this when the probe image has no detectable face
NO_FACE_ERROR_CODE = "InvalidParameterException"


@dataclass
class FaceMatch:
    """
    One candidate returned by a similarity search.

    Attributes:
        face_id: Service-assigned id of the indexed face.
        external_image_id: Identifier supplied when the face was indexed.
                           Here it is the S3 key of the person's source image.
        similarity: Confidence in [0, 100] that the probe is the same person.
    """

    face_id: str
    external_image_id: str
    similarity: float


@dataclass
class IndexedFace:
    """A face registered in the collection."""

    face_id: str
    external_image_id: Optional[str] = None


class FaceIndex(ABC):
    """
    Abstract base class for a named collection of face embeddings.

    Implementations must return search results in the service's own ranking
    (similarity descending); callers rely on that order and do not re-sort.
    """

    collection_id: str

    @abstractmethod
    def search_by_image(
        self,
        bucket: str,
        key: str,
        threshold: float,
        max_faces: int,
    ) -> List[FaceMatch]:
        """
        Search the collection for faces similar to the stored probe image.

        Args:
            bucket: Bucket holding the probe image.
            key: Object key of the probe image.
            threshold: Minimum similarity (0-100) for a candidate to be returned.
            max_faces: Maximum number of candidates to return.

        Returns:
            Matches ordered by similarity, highest first. Empty if none pass
            the threshold.

        Raises:
            NoFaceDetectedError: If the probe image contains no usable face.
            UpstreamServiceError: On any other service failure.
        """

    @abstractmethod
    def index_face(self, bucket: str, key: str, external_image_id: str) -> List[IndexedFace]:
        """
        Register the face(s) in a stored image under ``external_image_id``.

        Returns:
            The faces that were indexed. Empty if no face was detected.
        """

    @abstractmethod
    def list_faces(self, max_results: int = 100) -> List[IndexedFace]:
        """List up to ``max_results`` faces currently in the collection."""

    @abstractmethod
    def list_collections(self) -> List[str]:
        """List collection ids visible to the current credentials."""

    @abstractmethod
    def create_collection(self) -> None:
        """Create the configured collection."""

    def ensure_collection(self) -> bool:
        """
        Create the configured collection if it does not exist yet.

        Returns:
            True if the collection was created, False if it already existed.
        """
        if self.collection_id in self.list_collections():
            logger.info(f"Collection '{self.collection_id}' already exists.")
            return False

        logger.info(f"Creating collection: {self.collection_id}")
        self.create_collection()
        return True


def _error_code(error: Exception) -> str:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code", "")
    return ""


class RekognitionFaceIndex(FaceIndex):
    """FaceIndex backed by an AWS Rekognition collection."""

    def __init__(self, collection_id: str, region: Optional[str] = None, client: Any = None):
        if not collection_id:
            raise ValueError("collection_id is required")
        self.collection_id = collection_id
        self.region = region
        self.client = client or boto3.client("rekognition", region_name=region)

    @classmethod
    def from_config(cls) -> "RekognitionFaceIndex":
        aws_config = get_aws_config()
        return cls(
            collection_id=aws_config["collection_id"],
            region=aws_config.get("region"),
        )

    def search_by_image(
        self,
        bucket: str,
        key: str,
        threshold: float,
        max_faces: int,
    ) -> List[FaceMatch]:
        try:
            response = self.client.search_faces_by_image(
                CollectionId=self.collection_id,
                Image={"S3Object": {"Bucket": bucket, "Name": key}},
                FaceMatchThreshold=threshold,
                MaxFaces=max_faces,
            )
        except ClientError as e:
            if _error_code(e) == NO_FACE_ERROR_CODE:
                raise NoFaceDetectedError(detail=f"No face detected in s3://{bucket}/{key}: {e}") from e
            raise UpstreamServiceError(detail=f"search_faces_by_image failed for {key}: {e}") from e
        except BotoCoreError as e:
            raise UpstreamServiceError(detail=f"search_faces_by_image failed for {key}: {e}") from e

        return [
            FaceMatch(
                face_id=match["Face"]["FaceId"],
                external_image_id=match["Face"].get("ExternalImageId", ""),
                similarity=float(match["Similarity"]),
            )
            for match in response.get("FaceMatches", [])
        ]

    def index_face(self, bucket: str, key: str, external_image_id: str) -> List[IndexedFace]:
        try:
            response = self.client.index_faces(
                CollectionId=self.collection_id,
                Image={"S3Object": {"Bucket": bucket, "Name": key}},
                ExternalImageId=external_image_id,
            )
        except (BotoCoreError, ClientError) as e:
            raise UpstreamServiceError(detail=f"index_faces failed for {key}: {e}") from e

        return [
            IndexedFace(
                face_id=record["Face"]["FaceId"],
                external_image_id=record["Face"].get("ExternalImageId", external_image_id),
            )
            for record in response.get("FaceRecords", [])
        ]

    def list_faces(self, max_results: int = 100) -> List[IndexedFace]:
        try:
            response = self.client.list_faces(
                CollectionId=self.collection_id,
                MaxResults=max_results,
            )
        except (BotoCoreError, ClientError) as e:
            raise UpstreamServiceError(detail=f"list_faces failed: {e}") from e

        return [
            IndexedFace(face_id=face["FaceId"], external_image_id=face.get("ExternalImageId"))
            for face in response.get("Faces", [])
        ]

    def list_collections(self) -> List[str]:
        try:
            response = self.client.list_collections()
        except (BotoCoreError, ClientError) as e:
            raise UpstreamServiceError(detail=f"list_collections failed: {e}") from e
        return list(response.get("CollectionIds", []))

    def create_collection(self) -> None:
        try:
            response = self.client.create_collection(CollectionId=self.collection_id)
        except (BotoCoreError, ClientError) as e:
            raise UpstreamServiceError(detail=f"create_collection failed: {e}") from e
        logger.info(f"Collection created: {response.get('CollectionArn', self.collection_id)}")


# Global face index instance
_face_index: Optional[FaceIndex] = None


def get_face_index() -> FaceIndex:
    """Get or create the global face index."""
    global _face_index
    if _face_index is None:
        _face_index = RekognitionFaceIndex.from_config()
    return _face_index
