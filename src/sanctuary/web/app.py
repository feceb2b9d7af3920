"""
Sanctuary Web Application

Flask-based web interface with WebSocket support for real-time updates.
Control pages send mutations over Socket.IO; every connected page (control
and display alike) receives the full presentation state after each one.
"""

import functools
import logging
from pathlib import Path
from typing import Optional

from flask import Flask, jsonify, request, send_from_directory
from flask_socketio import SocketIO, emit

from ..bible import ScriptureService, UpstreamError, VerseNotFound
from ..config import Config, get_config
from ..core.messages import (
    BiblePayload,
    DisplayPatch,
    LyricsPayload,
    Mode,
    PayloadError,
    ProgramPayload,
    StatePatch,
    parse_direction,
)
from ..core.state import PresentationState
from ..db import SongStore

logger = logging.getLogger(__name__)


def drop_bad_payloads(event: str):
    """Log and ignore control messages whose payload cannot be used."""
    def decorator(handler):
        @functools.wraps(handler)
        def wrapper(*args):
            try:
                return handler(*args)
            except PayloadError as e:
                logger.warning(f"Dropped {event} from {request.sid}: {e}")
        return wrapper
    return decorator


def get_socketio(app: Flask) -> SocketIO:
    """Get the SocketIO server bound to an app built by create_app."""
    return app.extensions["socketio"]


def create_app(
    config: Optional[Config] = None,
    state: Optional[PresentationState] = None,
    songs: Optional[SongStore] = None,
    scripture: Optional[ScriptureService] = None,
) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config: Configuration to use (defaults to the global config)
        state: Presentation state to serve (a fresh one if omitted)
        songs: Song library (loaded from the configured data dir if omitted)
        scripture: Scripture lookup (built from config if omitted)

    Returns:
        Configured Flask application; its SocketIO server is available
        through get_socketio(app)
    """
    config = config or get_config()
    static_dir = Path(__file__).parent / "static"

    app = Flask(
        __name__,
        static_folder=str(static_dir),
        static_url_path=""
    )
    app.config["SECRET_KEY"] = "sanctuary-secret-key"
    app.config["DEBUG"] = config.web.debug

    if state is None:
        state = PresentationState()
    if songs is None:
        songs = SongStore(config.data.songs_path)
        songs.load()
    if scripture is None:
        scripture = ScriptureService.from_config(config)

    socketio = SocketIO(app, cors_allowed_origins="*", async_mode="threading")

    # Broadcast every change to all connected sessions, sender included
    def on_state_change(snapshot):
        socketio.emit("state-update", snapshot)

    def on_songs_change(collection):
        socketio.emit("songs-list", collection)

    state.add_listener(on_state_change)
    songs.add_listener(on_songs_change)

    app.extensions["sanctuary.state"] = state
    app.extensions["sanctuary.songs"] = songs
    app.extensions["sanctuary.scripture"] = scripture

    # ============ Pages ============

    @app.route("/")
    def index():
        """Control page."""
        return send_from_directory(static_dir, "control.html")

    # ============ Bible API ============

    @app.errorhandler(VerseNotFound)
    def handle_not_found(e):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(UpstreamError)
    def handle_upstream_error(e):
        return jsonify({"error": str(e)}), 500

    @app.route("/api/bible/books", methods=["GET"])
    def get_books():
        """List all book names in canonical order."""
        return jsonify(scripture.books())

    @app.route("/api/bible/chapters/<book>", methods=["GET"])
    def get_chapter_count(book):
        """Number of chapters in a book."""
        return jsonify({"book": book, "chapters": scripture.chapter_count(book)})

    @app.route("/api/bible/verse/<book>/<chapter>/<verse>", methods=["GET"])
    def get_verse(book, chapter, verse):
        """Text of a single verse."""
        text = scripture.verse(book, chapter, verse)
        return jsonify({"book": book, "chapter": chapter, "verse": verse, "text": text})

    @app.route("/api/bible/verses/<book>/<chapter>/<verse_start>/<verse_end>", methods=["GET"])
    def get_verses(book, chapter, verse_start, verse_end):
        """Text of a verse range."""
        text = scripture.verses(book, chapter, verse_start, verse_end)
        return jsonify({
            "book": book,
            "chapter": chapter,
            "verseStart": verse_start,
            "verseEnd": verse_end,
            "text": text
        })

    @app.route("/api/bible/chapter/<book>/<chapter>", methods=["GET"])
    def get_chapter(book, chapter):
        """All verses of a chapter."""
        verses = scripture.chapter(book, chapter)
        return jsonify({"book": book, "chapter": chapter, "verses": verses})

    # ============ State API ============

    @app.route("/api/state", methods=["GET"])
    def get_state():
        """Get current presentation state."""
        return jsonify(state.to_dict())

    @app.route("/api/songs", methods=["GET"])
    def get_songs():
        """Get the song library."""
        return jsonify(songs.list())

    # ============ WebSocket Events ============

    @socketio.on("connect")
    def handle_connect():
        """Send the joining session the full current state."""
        logger.info(f"Client connected: {request.sid}")
        state.send_snapshot(lambda snapshot: emit("state-update", snapshot))

    @socketio.on("disconnect")
    def handle_disconnect(*args):
        logger.info(f"Client disconnected: {request.sid}")

    @socketio.on("request-state")
    def handle_request_state(*args):
        """Handle state request from client."""
        state.send_snapshot(lambda snapshot: emit("state-update", snapshot))

    @socketio.on("update-state")
    @drop_bad_payloads("update-state")
    def handle_update_state(data):
        state.merge(StatePatch.from_dict(data))

    @socketio.on("update-bible")
    @drop_bad_payloads("update-bible")
    def handle_update_bible(data):
        state.set_bible(BiblePayload.from_dict(data))

    @socketio.on("update-lyrics")
    @drop_bad_payloads("update-lyrics")
    def handle_update_lyrics(data):
        state.set_lyrics(LyricsPayload.from_dict(data))

    @socketio.on("update-program")
    @drop_bad_payloads("update-program")
    def handle_update_program(data):
        state.set_program(ProgramPayload.from_dict(data))

    @socketio.on("lyrics-navigate")
    @drop_bad_payloads("lyrics-navigate")
    def handle_lyrics_navigate(direction):
        state.navigate_lyrics(parse_direction(direction))

    @socketio.on("program-navigate")
    @drop_bad_payloads("program-navigate")
    def handle_program_navigate(direction):
        state.navigate_program(parse_direction(direction))

    @socketio.on("update-display")
    @drop_bad_payloads("update-display")
    def handle_update_display(data):
        state.set_display(DisplayPatch.from_dict(data))

    @socketio.on("change-mode")
    @drop_bad_payloads("change-mode")
    def handle_change_mode(mode):
        state.set_mode(Mode.parse(mode))

    @socketio.on("clear-display")
    def handle_clear_display(*args):
        state.clear()

    # ============ Song Library Events ============

    @socketio.on("get-songs")
    def handle_get_songs(*args):
        """Send the song library to the requesting session only."""
        emit("songs-list", songs.list())

    @socketio.on("save-song")
    @drop_bad_payloads("save-song")
    def handle_save_song(data):
        songs.save(data)

    @socketio.on("delete-song")
    def handle_delete_song(song_id):
        songs.delete(song_id)

    return app
