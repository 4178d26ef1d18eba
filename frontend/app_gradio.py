"""
Gradio-based demo UI for the Face Search system.

This is the main entry point for the frontend application.
Run with: python -m frontend.app_gradio
"""

import logging
from typing import Optional

import gradio as gr
import numpy as np

from core.config import get_frontend_config
from frontend.api_client import get_api_client, ConnectionMode
from frontend.components.search_panel import SearchPanel, SearchConfig

logger = logging.getLogger(__name__)


# ============================================================
# Global State
# ============================================================
frontend_config = get_frontend_config()
api_client = get_api_client()
search_panel = SearchPanel(
    api_client,
    SearchConfig(
        jpeg_quality=int(frontend_config.get("jpeg_quality", 90)),
        frame_is_rgb=True,
    ),
)

# Auto-detect backend and switch to LIVE mode if available
_backend_available = False


def init_api_client() -> bool:
    """Initialize API client with auto-detection of backend."""
    global _backend_available
    if api_client.check_backend_available():
        api_client.set_mode(ConnectionMode.LIVE)
        _backend_available = True
        logger.info("Backend detected - using LIVE mode")
    else:
        api_client.set_mode(ConnectionMode.MOCK)
        _backend_available = False
        logger.info("Backend not available - using MOCK mode")
    return _backend_available


def get_connection_status() -> str:
    """Get current connection status message."""
    if _backend_available:
        return f"**Backend**: 🟢 {api_client.base_url} (LIVE mode)"
    return "**Backend**: 🟡 Demo mode (backend not connected)"


# ============================================================
# Search Functions
# ============================================================

def capture_and_search(frame: Optional[np.ndarray]):
    """
    Run a capture cycle on the current webcam still.

    Yields UI updates after every step so the status follows the cycle.
    """
    for state in search_panel.iter_capture_and_search(frame):
        yield (
            search_panel.format_status_message(state),
            SearchPanel.gallery_items(state),
            gr.update(interactive=state.status.accepts_trigger),
        )


# ============================================================
# Build Gradio Interface
# ============================================================

def create_demo():
    """Create the Gradio demo interface."""

    with gr.Blocks(title="Live Face Search") as demo:

        gr.Markdown("""
        # Live Face Search

        Capture a photo to find similar faces in the collection.
        """)

        gr.Markdown(get_connection_status())

        with gr.Row():
            with gr.Column(scale=2):
                webcam_feed = gr.Image(
                    label="Webcam",
                    sources=["webcam"],
                    type="numpy",
                    streaming=False,
                )
                search_btn = gr.Button("📷 Capture & Search", variant="primary")

            with gr.Column(scale=1):
                status = gr.Markdown(search_panel.format_status_message())

        results = gr.Gallery(
            label="Match Results",
            columns=4,
            height="auto",
            object_fit="cover",
        )

        search_btn.click(
            fn=capture_and_search,
            inputs=[webcam_feed],
            outputs=[status, results, search_btn],
        )

    return demo


# ============================================================
# Entry Point
# ============================================================

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    init_api_client()
    demo = create_demo()
    demo.queue(default_concurrency_limit=1)
    demo.launch(
        server_name="0.0.0.0",
        server_port=int(frontend_config.get("server_port", 7860)),
        show_error=True,
    )
