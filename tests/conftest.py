"""
Shared fakes for the face search tests.

FakeFaceIndex and FakeObjectStore implement the real interfaces with
deterministic, in-memory behavior so no test talks to AWS.
"""

import os
import sys
import threading
import time
from typing import Dict, List, Optional

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.errors import UpstreamServiceError
from core.face_index import FaceIndex, FaceMatch, IndexedFace
from core.object_store import ObjectStore, UploadGrant, generate_object_key


class FakeFaceIndex(FaceIndex):
    """In-memory FaceIndex returning preconfigured matches."""

    def __init__(
        self,
        matches: Optional[List[FaceMatch]] = None,
        search_error: Optional[Exception] = None,
        collection_id: str = "test-collection",
    ):
        self.collection_id = collection_id
        self.matches = matches or []
        self.search_error = search_error
        self.search_calls: List[Dict] = []
        self.indexed: List[Dict] = []
        self.collections: List[str] = []
        self.no_face_keys: set = set()
        self.failing_keys: set = set()

    def search_by_image(self, bucket, key, threshold, max_faces):
        self.search_calls.append(
            {"bucket": bucket, "key": key, "threshold": threshold, "max_faces": max_faces}
        )
        if self.search_error is not None:
            raise self.search_error
        return [m for m in self.matches if m.similarity >= threshold][:max_faces]

    def index_face(self, bucket, key, external_image_id):
        if key in self.failing_keys:
            raise UpstreamServiceError(detail=f"index failed for {key}")
        if key in self.no_face_keys:
            return []
        face = IndexedFace(face_id=f"face-{len(self.indexed) + 1}", external_image_id=external_image_id)
        self.indexed.append({"bucket": bucket, "key": key, "external_image_id": external_image_id})
        return [face]

    def list_faces(self, max_results=100):
        faces = [
            IndexedFace(face_id=f"face-{i + 1}", external_image_id=item["external_image_id"])
            for i, item in enumerate(self.indexed)
        ]
        return faces[:max_results]

    def list_collections(self):
        return list(self.collections)

    def create_collection(self):
        self.collections.append(self.collection_id)


class FakeObjectStore(ObjectStore):
    """In-memory ObjectStore issuing fake signed URLs."""

    def __init__(
        self,
        keys: Optional[List[str]] = None,
        failing_keys: Optional[set] = None,
        delays: Optional[Dict[str, float]] = None,
        upload_error: Optional[Exception] = None,
    ):
        self.keys = keys or []
        self.failing_keys = failing_keys or set()
        self.delays = delays or {}
        self.upload_error = upload_error
        self.download_requests: List[str] = []
        self._lock = threading.Lock()

    def create_upload_grant(self):
        if self.upload_error is not None:
            raise self.upload_error
        key = generate_object_key(".jpeg")
        return UploadGrant(upload_url=f"https://bucket.example/{key}?signature=put", key=key, expires_in=60)

    def create_download_url(self, key):
        time.sleep(self.delays.get(key, 0.0))
        with self._lock:
            self.download_requests.append(key)
        if key in self.failing_keys:
            raise UpstreamServiceError(detail=f"presign failed for {key}")
        return f"https://bucket.example/{key}?signature=get"

    def list_keys(self):
        yield from self.keys


@pytest.fixture
def fake_index():
    return FakeFaceIndex()


@pytest.fixture
def fake_store():
    return FakeObjectStore()
