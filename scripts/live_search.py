"""
Command-line capture & search against a running backend.

Takes one still from the local webcam (or an image file), then runs the same
grant -> upload -> search cycle as the web UI and prints the matches.

Usage:
    # Start the backend first
    uvicorn api.app:app --port 3001

    python scripts/live_search.py
    python scripts/live_search.py --image path/to/face.jpg
    python scripts/live_search.py --camera 1 --api-url http://localhost:3001
    python scripts/live_search.py --list-cameras
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(PROJECT_ROOT))

from core.config import get_api_config
from frontend.api_client import ConnectionMode, FaceSearchClient
from frontend.components.search_panel import SearchPanel, SearchStatus
from frontend.components.webcam_capture import (
    CaptureConfig,
    WebcamCapture,
    get_available_cameras,
    load_image,
)


def print_banner(text: str) -> None:
    print()
    print("=" * 60)
    print(f"  {text}")
    print("=" * 60)


def main() -> int:
    api_config = get_api_config()
    default_url = api_config.get("base_url", "http://localhost:3001")

    parser = argparse.ArgumentParser(description="Capture a face and search the collection")
    parser.add_argument(
        "--image", type=str, default=None,
        help="Use an image file instead of the webcam",
    )
    parser.add_argument(
        "--camera", type=int, default=0,
        help="Webcam device id (default: 0)",
    )
    parser.add_argument(
        "--api-url", type=str, default=default_url,
        help=f"Backend URL (default: {default_url})",
    )
    parser.add_argument(
        "--mock", action="store_true",
        help="Use simulated backend responses",
    )
    parser.add_argument(
        "--list-cameras", action="store_true",
        help="Print available camera ids and exit",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    if args.list_cameras:
        print(f"Available cameras: {get_available_cameras()}")
        return 0

    if args.image:
        frame = load_image(args.image)
    else:
        with WebcamCapture(CaptureConfig(device_id=args.camera)) as webcam:
            _, frame = webcam.read_frame()

    mode = ConnectionMode.MOCK if args.mock else ConnectionMode.LIVE
    client = FaceSearchClient(base_url=args.api_url, mode=mode)
    panel = SearchPanel(client)

    try:
        for state in panel.iter_capture_and_search(frame):
            print(f"Status: {state.status.value}")
    finally:
        client.close()

    state = panel.state
    if state.status is SearchStatus.MATCHES_FOUND:
        print_banner(f"MATCHES FOUND ({len(state.matches)})")
        for match in state.matches:
            print(f"  {match.similarity:>6}%  {match.person_id}")
            print(f"          {match.image_url}")
        return 0

    if state.status is SearchStatus.NO_MATCH_FOUND:
        print_banner("NO MATCH FOUND")
        return 1

    print_banner(f"ERROR: {state.error}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
