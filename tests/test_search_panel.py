"""
Tests for the capture/search state machine.

This test suite verifies:
- The end-to-end capture cycle against a simulated backend (scenarios A-D)
- Error message selection (server message, HTTP fallback, transport fallback)
- The single-cycle guard

Run with: pytest tests/test_search_panel.py -v
"""

import httpx
import numpy as np
import pytest

from frontend.api_client import ConnectionMode, FaceSearchClient
from frontend.components.search_panel import SearchPanel, SearchState, SearchStatus

KEY = "0123456789abcdef0123456789abcdef.jpeg"


class FakeServer:
    """Routes the three capture-cycle requests and records them."""

    def __init__(
        self,
        search_status: int = 200,
        search_body=None,
        grant_status: int = 200,
        upload_fails: bool = False,
    ):
        self.search_status = search_status
        self.search_body = search_body if search_body is not None else {
            "message": "Matches found!",
            "matches": [
                {"personId": "alice.jpeg", "similarity": "97.50", "imageUrl": "https://img/alice"},
                {"personId": "bob.jpeg", "similarity": "91.20", "imageUrl": "https://img/bob"},
            ],
        }
        self.grant_status = grant_status
        self.upload_fails = upload_fails
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.method == "PUT":
            self.calls.append("upload")
            if self.upload_fails:
                raise httpx.ConnectError("network unreachable", request=request)
            return httpx.Response(200)

        if request.url.path == "/api/get-presigned-url":
            self.calls.append("grant")
            if self.grant_status != 200:
                return httpx.Response(self.grant_status, json={"message": "Error generating upload URL"})
            return httpx.Response(200, json={"uploadUrl": f"https://bucket.example/{KEY}", "key": KEY})

        if request.url.path == "/api/search-face":
            self.calls.append("search")
            if isinstance(self.search_body, str):
                return httpx.Response(self.search_status, text=self.search_body)
            return httpx.Response(self.search_status, json=self.search_body)

        return httpx.Response(404)


def make_panel(server: FakeServer) -> SearchPanel:
    client = FaceSearchClient(
        base_url="http://backend.test",
        mode=ConnectionMode.LIVE,
        transport=httpx.MockTransport(server),
    )
    return SearchPanel(client)


@pytest.fixture
def frame():
    return np.zeros((48, 64, 3), dtype=np.uint8)


class TestCaptureCycle:

    def test_matches_found(self, frame):
        """Scenario A: two matches are kept in service order."""
        server = FakeServer()
        panel = make_panel(server)

        state = panel.capture_and_search(frame)

        assert state.status is SearchStatus.MATCHES_FOUND
        assert [m.person_id for m in state.matches] == ["alice.jpeg", "bob.jpeg"]
        assert [m.similarity for m in state.matches] == ["97.50", "91.20"]
        assert state.error == ""
        assert server.calls == ["grant", "upload", "search"]

    def test_empty_match_list(self, frame):
        """Scenario B: a successful search with zero matches."""
        server = FakeServer(search_body={"message": "Matches found!", "matches": []})

        state = make_panel(server).capture_and_search(frame)

        assert state.status is SearchStatus.NO_MATCH_FOUND
        assert state.matches == []
        assert SearchPanel.gallery_items(state) == []

    def test_upload_network_failure(self, frame):
        """Scenario C: the search step never runs after a failed upload."""
        server = FakeServer(upload_fails=True)

        state = make_panel(server).capture_and_search(frame)

        assert state.status is SearchStatus.ERROR
        assert state.error
        assert "search" not in server.calls

    def test_search_404_is_no_match(self, frame):
        """Scenario D: 404 from the search step is not an error."""
        server = FakeServer(search_status=404, search_body={"message": "No match found in the collection."})

        state = make_panel(server).capture_and_search(frame)

        assert state.status is SearchStatus.NO_MATCH_FOUND
        assert state.error == ""
        assert state.matches == []

    def test_transition_sequence(self, frame):
        panel = make_panel(FakeServer())

        statuses = [s.status for s in panel.iter_capture_and_search(frame)]

        assert statuses == [
            SearchStatus.CAPTURING,
            SearchStatus.REQUESTING_UPLOAD_GRANT,
            SearchStatus.UPLOADING,
            SearchStatus.SEARCHING,
            SearchStatus.MATCHES_FOUND,
        ]

    def test_no_frame(self):
        server = FakeServer()

        state = make_panel(server).capture_and_search(None)

        assert state.status is SearchStatus.ERROR
        assert state.error == SearchPanel.CAPTURE_ERROR
        assert server.calls == []


class TestErrorMessages:

    def test_server_message_verbatim(self, frame):
        server = FakeServer(grant_status=500)

        state = make_panel(server).capture_and_search(frame)

        assert state.status is SearchStatus.ERROR
        assert state.error == "Error generating upload URL"
        assert server.calls == ["grant"]

    def test_http_error_without_message(self, frame):
        server = FakeServer(search_status=502, search_body="Bad Gateway")

        state = make_panel(server).capture_and_search(frame)

        assert state.status is SearchStatus.ERROR
        assert state.error == SearchPanel.HTTP_ERROR_FALLBACK

    def test_malformed_search_body(self, frame):
        server = FakeServer(search_body=["unexpected"])

        state = make_panel(server).capture_and_search(frame)

        assert state.status is SearchStatus.ERROR
        assert state.error == "Malformed search response."
        assert state.matches == []

    def test_transport_error(self, frame):
        state = make_panel(FakeServer(upload_fails=True)).capture_and_search(frame)
        assert state.error == SearchPanel.UNKNOWN_ERROR

    def test_status_message_shows_error(self, frame):
        panel = make_panel(FakeServer(search_status=500, search_body={"message": "Internal server error."}))

        state = panel.capture_and_search(frame)

        assert "Error" in panel.format_status_message(state)
        assert "Internal server error." in panel.format_status_message(state)


class TestSingleCycleGuard:

    def test_trigger_ignored_while_busy(self, frame):
        server = FakeServer()
        panel = make_panel(server)

        cycle = panel.iter_capture_and_search(frame)
        next(cycle)  # CAPTURING
        next(cycle)  # REQUESTING_UPLOAD_GRANT
        assert panel.is_busy

        rejected = panel.capture_and_search(frame)
        assert rejected.status is SearchStatus.REQUESTING_UPLOAD_GRANT
        assert server.calls == []

        final = list(cycle)[-1]
        assert final.status is SearchStatus.MATCHES_FOUND
        assert server.calls == ["grant", "upload", "search"]
        assert not panel.is_busy

    def test_new_trigger_resets_previous_outcome(self, frame):
        server = FakeServer()
        panel = make_panel(server)
        assert panel.capture_and_search(frame).status is SearchStatus.MATCHES_FOUND

        server.search_status = 404
        server.search_body = {"message": "No match found in the collection."}
        state = panel.capture_and_search(frame)

        assert state.status is SearchStatus.NO_MATCH_FOUND
        assert state.matches == []

    def test_abandoned_cycle_releases_guard(self, frame):
        panel = make_panel(FakeServer())

        cycle = panel.iter_capture_and_search(frame)
        next(cycle)
        next(cycle)
        cycle.close()

        assert panel.state.status is SearchStatus.ERROR
        assert panel.state.error == SearchPanel.INTERRUPTED_ERROR
        assert panel.capture_and_search(frame).status is SearchStatus.MATCHES_FOUND


class TestDisplay:

    def test_gallery_items(self, frame):
        panel = make_panel(FakeServer())
        state = panel.capture_and_search(frame)

        assert SearchPanel.gallery_items(state) == [
            ("https://img/alice", "ID: alice.jpeg | Similarity: 97.50%"),
            ("https://img/bob", "ID: bob.jpeg | Similarity: 91.20%"),
        ]

    def test_initial_status(self):
        panel = make_panel(FakeServer())
        assert panel.format_status_message(SearchState()) == "### Status: Ready"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
