# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
JourneyMap web API.
Serves map data, caption edits and the sync trigger as JSON.
"""

import hmac
import logging
from typing import Optional

from flask import Flask, jsonify, request

from ..config import ConfigError, JourneyMapConfig, require_sync_config
from ..photo_source import GooglePhotosSource
from ..query import QueryService
from ..store import DomainStore, create_store
from ..sync import SyncAggregator

logger = logging.getLogger(__name__)


def create_app(
    config: JourneyMapConfig,
    store: Optional[DomainStore] = None,
    source: Optional[GooglePhotosSource] = None
) -> Flask:
    """
    Create the Flask application.

    Args:
        config: JourneyMap configuration.
        store: Domain store. Built from config.store if not given.
        source: Photo source. Built from config.google if not given.

    Returns:
        Flask application.
    """
    app = Flask(__name__)

    # Store references
    app.journeymap_config = config
    app.store = store or DomainStore(create_store(config.store))
    app.source = source or GooglePhotosSource(config.google, config.sync)
    app.query_service = QueryService(app.store, app.source)

    def _cache_control() -> str:
        return (
            f"public, max-age={config.web.cache_max_age_seconds}, "
            f"stale-while-revalidate={config.web.stale_while_revalidate_seconds}"
        )

    def _is_authorized() -> bool:
        secret = app.journeymap_config.sync.secret
        if not secret:
            return False
        auth_header = request.headers.get('Authorization', '')
        return hmac.compare_digest(
            auth_header.encode('utf-8'), f"Bearer {secret}".encode('utf-8')
        )

    def _run_sync():
        """Run a full sync and build the JSON response."""
        album_id = app.journeymap_config.album.album_id
        if not album_id:
            return jsonify({"error": "Album ID not configured"}), 500

        try:
            require_sync_config(app.journeymap_config)
        except ConfigError as e:
            return jsonify({"error": str(e)}), 500

        try:
            aggregator = SyncAggregator(app.store, app.source)
            result = aggregator.run_sync(album_id)
        except Exception as e:
            logger.error(f"Sync error: {e}")
            return jsonify({"error": "Sync failed", "details": str(e)}), 500

        response = {"success": True}
        response.update(result.to_dict())
        return jsonify(response)

    # Routes

    @app.route('/api/health')
    def api_health():
        """Liveness check."""
        try:
            meta = app.store.get_meta()
        except Exception as e:
            logger.error(f"Health check error: {e}")
            return jsonify({"error": "Failed to read sync status", "details": str(e)}), 500
        return jsonify({
            "status": "ok",
            "lastSynced": meta.last_synced if meta else "never"
        })

    @app.route('/api/photos')
    def api_photos():
        """
        Locations with photos and fresh URLs.

        Query params:
        - year: Locations from this year or earlier (optional)
        - locationId: A single location (optional)
        """
        year_param = request.args.get('year')
        location_id = request.args.get('locationId') or None

        year = None
        if year_param:
            try:
                year = int(year_param)
            except ValueError:
                return jsonify({"error": "year must be an integer"}), 400

        try:
            data = app.query_service.get_photos(year=year, location_id=location_id)
        except Exception as e:
            logger.error(f"Photos API error: {e}")
            return jsonify({"error": "Failed to fetch photos", "details": str(e)}), 500

        response = jsonify(data)
        # URLs last about an hour
        response.headers['Cache-Control'] = _cache_control()
        return response

    @app.route('/api/locations/<location_id>/photos')
    def api_location_photos(location_id: str):
        """Stored photos of one location, without URLs."""
        try:
            photos = app.query_service.get_location_photos(location_id)
        except Exception as e:
            logger.error(f"Error loading location {location_id}: {e}")
            return jsonify({"error": "Failed to load location", "details": str(e)}), 500

        if photos is None:
            return jsonify({"error": f"Unknown location: {location_id}"}), 404
        return jsonify(photos)

    @app.route('/api/captions', methods=['GET'])
    def api_get_captions():
        """Get all user-edited captions."""
        try:
            return jsonify(app.store.get_captions())
        except Exception as e:
            logger.error(f"Error loading captions: {e}")
            return jsonify({"error": "Failed to load captions", "details": str(e)}), 500

    @app.route('/api/captions', methods=['POST'])
    def api_set_caption():
        """
        Update a photo caption.
        Body: {"photoId": str, "caption": str}
        """
        data = request.get_json(silent=True) or {}
        photo_id = data.get('photoId') if isinstance(data, dict) else None
        caption = data.get('caption') if isinstance(data, dict) else None

        if not isinstance(photo_id, str) or not photo_id or not isinstance(caption, str):
            return jsonify({"error": "photoId and caption required"}), 400

        try:
            app.store.set_caption(photo_id, caption)
        except Exception as e:
            logger.error(f"Error updating caption for {photo_id}: {e}")
            return jsonify({"error": "Failed to update caption"}), 500

        logger.info(f"Caption updated for {photo_id}")
        return jsonify({"success": True, "photoId": photo_id, "caption": caption})

    @app.route('/api/sync', methods=['POST'])
    def api_sync():
        """Sync the album. Called by the scheduler with the sync secret."""
        if not _is_authorized():
            return jsonify({"error": "Unauthorized"}), 401
        return _run_sync()

    @app.route('/api/sync', methods=['GET'])
    def api_sync_get():
        """Manual sync trigger, only in development mode."""
        if app.journeymap_config.web.dev_mode:
            logger.info("Development mode: sync triggered via GET")
            return _run_sync()
        return jsonify({"error": "Use POST"}), 405

    return app


def run_web_server(
    config: JourneyMapConfig,
    store: Optional[DomainStore] = None,
    source: Optional[GooglePhotosSource] = None
) -> None:
    """
    Run the web server (blocking).

    Args:
        config: JourneyMap configuration.
        store: Domain store.
        source: Photo source.
    """
    app = create_app(config, store, source)

    logger.info(f"Starting web server on {config.web.host}:{config.web.port}")

    # Disable Flask's default logging for production
    logging.getLogger('werkzeug').setLevel(logging.WARNING)

    app.run(
        host=config.web.host,
        port=config.web.port,
        debug=False,
        threaded=True
    )
