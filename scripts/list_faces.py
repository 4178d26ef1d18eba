"""
List the faces registered in the collection (read-only).

Usage:
    python scripts/list_faces.py
    python scripts/list_faces.py --max-results 20
"""

import argparse
import sys
from pathlib import Path
from typing import List

PROJECT_ROOT = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(PROJECT_ROOT))

from core.config import get_aws_config
from core.errors import FaceSearchError
from core.face_index import FaceIndex, IndexedFace, RekognitionFaceIndex


def format_faces(faces: List[IndexedFace]) -> str:
    """Format faces one block per face."""
    if not faces:
        return "No faces found in this collection."

    lines = [f"Found {len(faces)} faces:"]
    for face in faces:
        lines.append(f"  - Face ID: {face.face_id}")
        lines.append(f"    Image ID (Filename): {face.external_image_id}")
        lines.append("---")
    return "\n".join(lines)


def list_faces(face_index: FaceIndex, max_results: int = 100) -> List[IndexedFace]:
    print(f"Listing faces in collection: {face_index.collection_id}")
    faces = face_index.list_faces(max_results=max_results)
    print(format_faces(faces))
    return faces


def main() -> int:
    aws_config = get_aws_config()

    parser = argparse.ArgumentParser(description="List faces in the face collection")
    parser.add_argument(
        "--collection", type=str, default=aws_config["collection_id"],
        help=f"Face collection id (default: {aws_config['collection_id']})",
    )
    parser.add_argument(
        "--region", type=str, default=aws_config.get("region"),
        help="AWS region (default: from config / AWS_REGION)",
    )
    parser.add_argument(
        "--max-results", type=int, default=100,
        help="Maximum number of faces to list (default: 100)",
    )
    args = parser.parse_args()

    face_index = RekognitionFaceIndex(collection_id=args.collection, region=args.region)
    try:
        list_faces(face_index, max_results=args.max_results)
    except FaceSearchError as e:
        print(f"ERROR: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
