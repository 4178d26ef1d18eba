"""
Core Module for the Face Search Demo

This package wraps the external services the backend and scripts depend on.
Face detection, embedding and similarity search are performed by the managed
recognition service; nothing here reimplements them.

Main components:
    - config: Configuration loading and management
    - errors: Error taxonomy mapped to HTTP statuses
    - object_store: Pre-signed S3 upload/download grants
    - face_index: Face collection interface (AWS Rekognition)

Usage:
    from core.config import get_config
    from core.object_store import get_object_store
    from core.face_index import get_face_index
"""

from core.config import (
    get_config,
    get_section,
    get_aws_config,
    get_search_config,
    get_api_config,
    get_frontend_config,
    get_logging_config,
    get_server_config,
)

from core.errors import (
    FaceSearchError,
    ClientInputError,
    NotFoundError,
    UpstreamServiceError,
    NoFaceDetectedError,
    UnexpectedError,
)

from core.object_store import (
    ObjectStore,
    S3ObjectStore,
    UploadGrant,
    generate_object_key,
    get_object_store,
)

from core.face_index import (
    FaceIndex,
    RekognitionFaceIndex,
    FaceMatch,
    IndexedFace,
    get_face_index,
)

__all__ = [
    # Configuration
    "get_config",
    "get_section",
    "get_aws_config",
    "get_search_config",
    "get_api_config",
    "get_frontend_config",
    "get_logging_config",
    "get_server_config",
    # Errors
    "FaceSearchError",
    "ClientInputError",
    "NotFoundError",
    "UpstreamServiceError",
    "NoFaceDetectedError",
    "UnexpectedError",
    # Object Store
    "ObjectStore",
    "S3ObjectStore",
    "UploadGrant",
    "generate_object_key",
    "get_object_store",
    # Face Index
    "FaceIndex",
    "RekognitionFaceIndex",
    "FaceMatch",
    "IndexedFace",
    "get_face_index",
]
