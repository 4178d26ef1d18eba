"""
Bulk Indexing: register every image in the bucket with the face collection

Each object key is used both as the image source and as the external image
id, so a search match can be turned back into the S3 key of the person's
source image.

Re-running is safe in the sense that nothing is rolled back or deleted, but
it is NOT duplicate-free: indexing the same key twice adds a second face
record with the same external id.

Usage:
    # Index everything in the configured bucket
    python scripts/bulk_index.py

    # Only list what would be indexed
    python scripts/bulk_index.py --dry-run

    # Override bucket / collection
    python scripts/bulk_index.py --bucket my-bucket --collection my-collection
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

PROJECT_ROOT = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(PROJECT_ROOT))

from core.config import get_aws_config, get_logging_config
from core.errors import FaceSearchError
from core.face_index import FaceIndex, RekognitionFaceIndex
from core.object_store import ObjectStore, S3ObjectStore

logger = logging.getLogger("bulk_index")


@dataclass
class IndexingSummary:
    """Outcome of a bulk indexing run."""
    total: int = 0
    indexed: int = 0
    no_face: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def run_indexing(
    face_index: FaceIndex,
    object_store: ObjectStore,
    bucket: str,
    dry_run: bool = False,
) -> IndexingSummary:
    """
    Index every object in the bucket.

    A failure on one object is logged and counted; the run continues with
    the next object.

    Args:
        face_index: Collection to register faces in.
        object_store: Gateway used to enumerate the bucket.
        bucket: Bucket name passed to the recognition service.
        dry_run: Only list the keys.

    Returns:
        IndexingSummary with per-outcome counts.
    """
    summary = IndexingSummary()

    logger.info("--- Starting Bulk Indexing ---")
    logger.info(f"Listing images in bucket: {bucket}")
    keys = list(object_store.list_keys())

    if not keys:
        logger.info("Bucket is empty. Nothing to index.")
        return summary

    summary.total = len(keys)
    logger.info(f"Found {len(keys)} images to index.")

    for key in keys:
        if dry_run:
            logger.info(f"-> Would index: {key}")
            continue

        logger.info(f"-> Indexing: {key}")
        try:
            faces = face_index.index_face(bucket, key, external_image_id=key)
        except FaceSearchError as e:
            logger.error(f"   Failed: {e}")
            summary.failed.append(key)
            continue

        if faces:
            logger.info(f"   Success! Face ID: {faces[0].face_id}")
            summary.indexed += 1
        else:
            logger.warning("   Warning: No face detected in this image.")
            summary.no_face.append(key)

    logger.info("--- Bulk Indexing Complete ---")
    logger.info(
        f"Indexed: {summary.indexed}, no face: {len(summary.no_face)}, "
        f"failed: {len(summary.failed)} (of {summary.total})"
    )
    return summary


def main() -> int:
    aws_config = get_aws_config()

    parser = argparse.ArgumentParser(
        description="Index every image in the S3 bucket into the face collection",
    )
    parser.add_argument(
        "--bucket", type=str, default=aws_config["bucket_name"],
        help=f"S3 bucket (default: {aws_config['bucket_name']})",
    )
    parser.add_argument(
        "--collection", type=str, default=aws_config["collection_id"],
        help=f"Face collection id (default: {aws_config['collection_id']})",
    )
    parser.add_argument(
        "--region", type=str, default=aws_config.get("region"),
        help="AWS region (default: from config / AWS_REGION)",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="List the images without indexing them",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=get_logging_config().get("level", "INFO"),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    face_index = RekognitionFaceIndex(collection_id=args.collection, region=args.region)
    object_store = S3ObjectStore(bucket_name=args.bucket, region=args.region)

    try:
        summary = run_indexing(face_index, object_store, args.bucket, dry_run=args.dry_run)
    except FaceSearchError as e:
        logger.error(f"An error occurred during indexing: {e}")
        return 1

    return 1 if summary.failed else 0


if __name__ == "__main__":
    sys.exit(main())
