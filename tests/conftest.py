"""Pytest configuration and fixtures for Sanctuary tests."""

import pytest

from sanctuary.bible import ScriptureService
from sanctuary.config import Config, DataConfig
from sanctuary.core.state import PresentationState
from sanctuary.db import SongStore
from sanctuary.web.app import create_app, get_socketio

LOCAL_BIBLE = {
    "John": {
        "3": {
            "16": "For God so loved the world, that he gave his only begotten Son, "
                  "that whosoever believeth in him should not perish, but have everlasting life.",
            "17": "For God sent not his Son into the world to condemn the world; "
                  "but that the world through him might be saved.",
        },
    },
    "Psalms": {
        "23": {
            "2": "He maketh me to lie down in green pastures: he leadeth me beside the still waters.",
            "1": "The LORD is my shepherd; I shall not want.",
            "10": "Not a real verse, but sorts after 2.",
        },
    },
}


@pytest.fixture
def config(tmp_path):
    """Config pointing at a temporary data directory."""
    return Config(data=DataConfig(data_dir=tmp_path))


@pytest.fixture
def state():
    return PresentationState()


@pytest.fixture
def songs(tmp_path):
    store = SongStore(tmp_path / "songs.json")
    store.load()
    return store


@pytest.fixture
def scripture():
    return ScriptureService(local_data=LOCAL_BIBLE, api_url="https://bible.example")


@pytest.fixture
def app(config, state, songs, scripture):
    app = create_app(config, state=state, songs=songs, scripture=scripture)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def http(app):
    return app.test_client()


@pytest.fixture
def socket_client(app):
    """A connected Socket.IO test client; disconnected after the test."""
    client = get_socketio(app).test_client(app)
    yield client
    if client.is_connected():
        client.disconnect()


@pytest.fixture
def make_client(app):
    """Factory for extra Socket.IO clients."""
    clients = []

    def _make():
        client = get_socketio(app).test_client(app)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        if client.is_connected():
            client.disconnect()
