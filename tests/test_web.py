"""Tests for the HTTP API and the Socket.IO session layer."""

import threading
from unittest.mock import MagicMock, patch

import requests

from sanctuary.core.messages import BiblePayload, Mode


def events(client, name):
    """Payloads of every received event called `name`."""
    return [msg["args"][0] for msg in client.get_received() if msg["name"] == name]


class TestBibleAPI:
    """Tests for the /api/bible endpoints."""

    def test_books(self, http):
        response = http.get("/api/bible/books")

        assert response.status_code == 200
        assert len(response.get_json()) == 66

    def test_chapters(self, http):
        response = http.get("/api/bible/chapters/1%20Corinthians")

        assert response.get_json() == {"book": "1 Corinthians", "chapters": 16}

    def test_chapters_unknown_book(self, http):
        assert http.get("/api/bible/chapters/Enoch").get_json() == {"book": "Enoch", "chapters": 1}

    @patch("sanctuary.bible.lookup.requests.get")
    def test_verse_local(self, mock_get, http):
        response = http.get("/api/bible/verse/John/3/16")

        data = response.get_json()
        assert response.status_code == 200
        assert data["book"] == "John"
        assert data["chapter"] == "3"
        assert data["verse"] == "16"
        assert data["text"].startswith("For God so loved the world")
        mock_get.assert_not_called()

    @patch("sanctuary.bible.lookup.requests.get")
    def test_verse_not_found(self, mock_get, http):
        mock_get.return_value = MagicMock(**{"json.return_value": {"error": "not found"}})

        response = http.get("/api/bible/verse/John/40/1")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Verse not found"}

    @patch("sanctuary.bible.lookup.requests.get")
    def test_verse_upstream_failure(self, mock_get, http):
        mock_get.side_effect = requests.exceptions.Timeout()

        response = http.get("/api/bible/verse/Mark/1/1")

        assert response.status_code == 500
        assert response.get_json() == {"error": "API request failed"}

    def test_verse_range(self, http):
        data = http.get("/api/bible/verses/John/3/16/17").get_json()

        assert data["verseStart"] == "16"
        assert data["verseEnd"] == "17"
        assert data["text"].startswith("16. For God")

    def test_chapter(self, http):
        data = http.get("/api/bible/chapter/Psalms/23").get_json()

        assert data["book"] == "Psalms"
        assert [v["verse"] for v in data["verses"]] == [1, 2, 10]


class TestReadOnlyAPI:
    """Tests for /api/state and /api/songs."""

    def test_state(self, http, state):
        state.set_bible(BiblePayload(book="John", chapter="3", verse="16", text="x"))

        assert http.get("/api/state").get_json() == state.to_dict()

    def test_songs(self, http, songs):
        songs.save({"title": "Amazing Grace"})

        assert [s["title"] for s in http.get("/api/songs").get_json()] == ["Amazing Grace"]

    def test_pages(self, http):
        assert http.get("/").status_code == 200
        assert http.get("/display.html").status_code == 200
        assert http.get("/control.html").status_code == 200

    def test_control_page_builds_options_as_text(self, http):
        """Song titles and book names end up in textContent, never parsed as markup."""
        page = http.get("/control.html").get_data(as_text=True)

        assert "innerHTML" not in page
        assert "opt.textContent = label" in page


class TestJoin:
    """Tests for the snapshot sent on connect."""

    def test_first_message_is_state(self, socket_client, state):
        received = socket_client.get_received()

        assert received[0]["name"] == "state-update"
        assert received[0]["args"][0] == state.to_dict()

    def test_late_joiner_gets_current_state(self, socket_client, make_client, state):
        socket_client.emit("update-lyrics", {"title": "Amazing Grace", "slides": ["a", "b", "c"]})
        socket_client.emit("lyrics-navigate", "next")
        socket_client.emit("lyrics-navigate", "next")
        socket_client.emit("update-display", {"fontSize": 60})
        socket_client.emit("change-mode", "program")

        late = make_client()
        received = late.get_received()

        assert received[0]["name"] == "state-update"
        assert received[0]["args"][0] == state.to_dict()
        assert received[0]["args"][0]["lyrics"]["currentSlide"] == 2
        assert received[0]["args"][0]["display"]["fontSize"] == 60
        assert received[0]["args"][0]["mode"] == "program"
        assert len(received) == 1

    def test_concurrent_change_during_join_arrives_after_snapshot(self, make_client, state, monkeypatch):
        """A write racing a join reaches the joiner after its snapshot, never before."""
        take_snapshot = state._snapshot
        writers = []

        def racing_snapshot():
            snapshot = take_snapshot()
            if not writers:
                writer = threading.Thread(target=state.set_mode, args=(Mode.BIBLE,))
                writers.append(writer)
                writer.start()
                writer.join(timeout=0.2)
            return snapshot

        monkeypatch.setattr(state, "_snapshot", racing_snapshot)

        joiner = make_client()
        writers[0].join(timeout=5)

        modes = [update["mode"] for update in events(joiner, "state-update")]
        assert modes == ["welcome", "bible"]
        assert modes[-1] == state.mode.value

    def test_request_state(self, socket_client):
        socket_client.get_received()

        socket_client.emit("request-state")

        assert len(events(socket_client, "state-update")) == 1


class TestControlMessages:
    """Tests for mutation messages and their broadcasts."""

    def test_broadcast_reaches_sender_and_others(self, socket_client, make_client):
        display = make_client()
        socket_client.get_received()
        display.get_received()

        socket_client.emit("update-bible", {"book": "John", "chapter": "3", "verse": "16", "text": "For God"})

        for client in (socket_client, display):
            updates = events(client, "state-update")
            assert len(updates) == 1
            assert updates[0]["mode"] == "bible"
            assert updates[0]["bible"]["text"] == "For God"

    def test_update_state_merges_display(self, socket_client, state):
        socket_client.emit("update-display", {"theme": "light"})
        socket_client.get_received()

        socket_client.emit("update-state", {"display": {"fontSize": 60}})

        update = events(socket_client, "state-update")[-1]
        assert update["display"] == {"fontSize": 60, "theme": "light"}

    def test_integer_navigation_not_clamped(self, socket_client, state):
        socket_client.emit("update-lyrics", {"title": "x", "slides": ["a", "b", "c"]})

        socket_client.emit("lyrics-navigate", 7)

        assert state.lyrics.current_slide == 7

    def test_program_flow(self, socket_client, state):
        socket_client.emit("update-program", {"currentIndex": 0, "events": [{"title": "Welcome"}, {"title": "Sermon"}]})
        socket_client.emit("program-navigate", "next")
        socket_client.emit("program-navigate", "next")

        assert state.program.current_index == 1
        assert state.to_dict()["mode"] == "program"

    def test_clear_display(self, socket_client, state):
        socket_client.emit("update-bible", {"book": "John", "text": "x"})
        socket_client.get_received()

        socket_client.emit("clear-display")

        update = events(socket_client, "state-update")[-1]
        assert update["mode"] == "welcome"
        assert update["bible"]["book"] == "John"

    def test_bad_payload_dropped_without_broadcast(self, socket_client, state):
        before = state.to_dict()
        socket_client.get_received()

        socket_client.emit("change-mode", "karaoke")
        socket_client.emit("update-lyrics", "not an object")
        socket_client.emit("lyrics-navigate", "sideways")

        assert events(socket_client, "state-update") == []
        assert state.to_dict() == before


class TestSongEvents:
    """Tests for song library messages."""

    def test_get_songs_only_to_requester(self, socket_client, make_client, songs):
        songs.save({"title": "Amazing Grace"})
        other = make_client()
        socket_client.get_received()
        other.get_received()

        socket_client.emit("get-songs")

        assert [s["title"] for s in events(socket_client, "songs-list")[0]] == ["Amazing Grace"]
        assert events(other, "songs-list") == []

    def test_save_and_delete_broadcast(self, socket_client, make_client, songs):
        other = make_client()
        other.get_received()

        socket_client.emit("save-song", {"title": "Amazing Grace"})
        saved = songs.list()[0]
        socket_client.emit("delete-song", saved["id"])

        lists = events(other, "songs-list")
        assert len(lists) == 2
        assert lists[0] == [saved]
        assert lists[1] == []

    def test_save_edit_repositions(self, socket_client, songs):
        socket_client.emit("save-song", {"title": "Be Thou My Vision"})
        socket_client.emit("save-song", {"title": "Amazing Grace"})
        grace = songs.list()[0]
        socket_client.get_received()

        socket_client.emit("save-song", {"id": grace["id"], "title": "Zion's Hill"})

        latest = events(socket_client, "songs-list")[-1]
        assert [s["title"] for s in latest] == ["Be Thou My Vision", "Zion's Hill"]

    def test_invalid_song_dropped(self, socket_client, songs):
        socket_client.get_received()

        socket_client.emit("save-song", {"lyrics": "untitled"})

        assert events(socket_client, "songs-list") == []
        assert songs.list() == []
