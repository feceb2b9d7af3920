#!/usr/bin/env python3
"""
Sanctuary - Live Presentation Control

Main entry point for running the full application.
Loads the song library and local Bible data, then serves the control and
display pages with real-time updates.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add sanctuary package to path
sys.path.insert(0, str(Path(__file__).parent))

from sanctuary.bible import ScriptureService
from sanctuary.config import load_config, set_config
from sanctuary.core.state import PresentationState
from sanctuary.db import SongStore
from sanctuary.web.app import create_app, get_socketio


def setup_logging(debug: bool = False):
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Sanctuary - Live Presentation Control"
    )
    parser.add_argument(
        "--config", "-c",
        help="Path to config file",
        default=None
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        help="Web server port (default: $PORT or 3000)",
        default=None
    )
    parser.add_argument(
        "--host",
        help="Address to bind (default: 0.0.0.0)",
        default=None
    )
    parser.add_argument(
        "--data-dir",
        help="Directory holding songs.json and kjv.json",
        default=None
    )

    args = parser.parse_args()

    # Load configuration
    config = load_config(args.config)

    # Apply command line overrides
    if args.debug:
        config.debug = True
    if args.port:
        config.web.port = args.port
    if args.host:
        config.web.host = args.host
    if args.data_dir:
        config.data.data_dir = Path(args.data_dir).expanduser()

    set_config(config)

    # Setup logging
    setup_logging(config.debug)
    logger = logging.getLogger("sanctuary")

    logger.info("=" * 50)
    logger.info("Sanctuary - Live Presentation Control")
    logger.info("=" * 50)
    logger.info(f"Data directory: {config.data.data_dir}")

    # Initialize components
    songs = SongStore(config.data.songs_path)
    songs.load()
    scripture = ScriptureService.from_config(config)
    state = PresentationState()

    app = create_app(config, state=state, songs=songs, scripture=scripture)
    socketio = get_socketio(app)

    logger.info(f"Server running on http://localhost:{config.web.port}")
    logger.info(f"Display page: http://localhost:{config.web.port}/display.html")
    logger.info(f"Control page: http://localhost:{config.web.port}/control.html")
    logger.info("Press Ctrl+C to stop")

    try:
        socketio.run(
            app,
            host=config.web.host,
            port=config.web.port,
            debug=False,  # Disable Flask debug to prevent double-start
            use_reloader=False,
            allow_unsafe_werkzeug=True
        )
    except KeyboardInterrupt:
        logger.info("Shutting down...")

    logger.info("Sanctuary stopped")


if __name__ == "__main__":
    main()
