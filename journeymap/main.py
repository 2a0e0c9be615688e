#!/usr/bin/env python3
# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
JourneyMap - Main Application.
Runs the web API, or a single album sync for use from cron.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Initialize logging early
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)


def setup_file_logging(log_dir: str) -> None:
    """Set up file logging in addition to console."""
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_path / 'journeymap.log')
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    logging.getLogger().addHandler(file_handler)


def _load_config(config_path: Optional[str]):
    from .config import load_config, validate_config

    config = load_config(config_path)
    for error in validate_config(config):
        logger.warning(f"Config warning: {error}")
    logger.info(f"Configuration loaded from: {config.config_path or 'defaults'}")
    return config


def cmd_serve(args) -> int:
    """Run the web API (blocking)."""
    from .web.app import run_web_server

    config = _load_config(args.config)
    if args.host:
        config.web.host = args.host
    if args.port:
        config.web.port = args.port

    try:
        run_web_server(config)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


def cmd_sync(args) -> int:
    """Run one album sync in this process."""
    from .config import ConfigError, require_sync_config
    from .photo_source import GooglePhotosSource
    from .store import DomainStore, create_store
    from .sync import SyncAggregator

    config = _load_config(args.config)

    try:
        require_sync_config(config)
    except ConfigError as e:
        logger.error(f"Cannot sync: {e}")
        return 1

    store = DomainStore(create_store(config.store))
    source = GooglePhotosSource(config.google, config.sync)

    try:
        result = SyncAggregator(store, source).run_sync(config.album.album_id)
    except Exception as e:
        logger.error(f"Sync failed: {e}")
        return 1

    print(f"Synced {result.photo_count} photos into {result.location_count} locations")
    return 0


def cmd_config(args) -> int:
    """Print the effective configuration with secrets redacted."""
    import yaml
    from .config import config_to_dict

    config = _load_config(args.config)
    print(yaml.dump(config_to_dict(config, redact_secrets=True), default_flow_style=False), end="")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="JourneyMap - Shared Photo Map",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  journeymap serve                  Run the web API
  journeymap serve --port 9000      Run on another port
  journeymap sync                   Sync the album once (for cron)
  journeymap config                 Show the effective config (secrets hidden)

Environment:
  GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REDIRECT_URI,
  GOOGLE_REFRESH_TOKEN, GOOGLE_PHOTOS_ALBUM_ID, CRON_SECRET
        """
    )
    parser.add_argument("--config", "-c", help="Path to config.yaml")
    parser.add_argument("--log-dir", help="Also write logs to this directory")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    serve = subparsers.add_parser("serve", help="Run the web API")
    serve.add_argument("--host", help="Bind address")
    serve.add_argument("--port", type=int, help="Port")

    subparsers.add_parser("sync", help="Sync the album once and exit")
    subparsers.add_parser("config", help="Print the effective configuration")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    if args.log_dir:
        setup_file_logging(args.log_dir)

    commands = {
        "serve": cmd_serve,
        "sync": cmd_sync,
        "config": cmd_config,
    }
    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
