#!/usr/bin/env python3
# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Command-line interface for JourneyMap.
Talks to a running JourneyMap server over its JSON API.
"""

import argparse
import json
import os
import sys
from typing import Optional

import requests


DEFAULT_API_URL = "http://localhost:8080"


def get_api_url() -> str:
    """Get the API URL from environment or default."""
    return os.environ.get("JOURNEYMAP_API_URL", DEFAULT_API_URL)


def get_sync_secret() -> str:
    """Get the sync secret from environment."""
    return os.environ.get("JOURNEYMAP_SYNC_SECRET") or os.environ.get("CRON_SECRET", "")


def api_call(
    endpoint: str,
    method: str = "GET",
    data: dict = None,
    params: dict = None,
    headers: dict = None,
    timeout: int = 10
):
    """
    Make an API call to the JourneyMap server.

    Args:
        endpoint: API endpoint (e.g., "/api/photos").
        method: HTTP method.
        data: JSON data to send.
        params: Query string parameters.
        headers: Extra request headers.
        timeout: Request timeout in seconds.

    Returns:
        Decoded JSON response.
    """
    url = f"{get_api_url()}{endpoint}"

    try:
        if method == "GET":
            response = requests.get(url, params=params, headers=headers, timeout=timeout)
        elif method == "POST":
            response = requests.post(url, json=data, headers=headers, timeout=timeout)
        else:
            raise ValueError(f"Unknown method: {method}")

        return response.json()

    except requests.exceptions.ConnectionError:
        print("Error: Could not connect to JourneyMap server.")
        print(f"Make sure it is running and accessible at {get_api_url()}")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


def cmd_health(args):
    """Show server health."""
    result = api_call("/api/health")
    print(f"Status: {result.get('status', 'unknown')}")
    print(f"Last synced: {result.get('lastSynced', 'never')}")


def cmd_sync(args):
    """Trigger an album sync."""
    secret = get_sync_secret()
    if not secret:
        print("Error: set JOURNEYMAP_SYNC_SECRET to trigger a sync.")
        sys.exit(1)

    print("Starting album sync...")
    # Large albums take a while to page through
    result = api_call(
        "/api/sync", "POST",
        headers={"Authorization": f"Bearer {secret}"},
        timeout=600
    )
    if result.get("success"):
        print(f"Synced {result.get('photos', 0)} photos into "
              f"{result.get('locations', 0)} locations")
    else:
        print(f"Error: {result.get('error', 'Unknown error')}")
        if result.get("details"):
            print(f"  {result['details']}")
        sys.exit(1)


def cmd_captions(args):
    """List user-edited captions."""
    captions = api_call("/api/captions")

    if not captions:
        print("No edited captions.")
        return

    if args.json:
        print(json.dumps(captions, indent=2))
        return

    print(f"Edited Captions ({len(captions)})")
    print("=" * 60)
    for photo_id, caption in captions.items():
        print(f"{photo_id[:24]:<24}  {caption}")


def cmd_set_caption(args):
    """Set the caption of one photo."""
    result = api_call("/api/captions", "POST", {
        "photoId": args.photo_id,
        "caption": args.caption
    })

    if result.get("success"):
        print(f"Caption updated for {args.photo_id}")
    else:
        print(f"Error: {result.get('error', 'Unknown error')}")
        sys.exit(1)


def cmd_photos(args):
    """List locations and their photos."""
    params = {}
    if args.year:
        params["year"] = args.year
    if args.location:
        params["locationId"] = args.location

    data = api_call("/api/photos", params=params)
    if "error" in data:
        print(f"Error: {data['error']}")
        sys.exit(1)

    locations = data.get("locations", [])
    print(f"Last synced: {data.get('lastSynced', 'never')}")
    print(f"Years: {', '.join(str(y) for y in data.get('years', []))}")

    if not locations:
        print("No locations.")
        return

    print("=" * 60)
    for loc in locations:
        photos = loc.get("photos", [])
        print(f"{loc['year']}  {loc['name']} [{loc['type']}]  "
              f"{len(photos)} photo{'s' if len(photos) != 1 else ''}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="JourneyMap - Shared Photo Map",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  journeymap-cli health                     Show server status
  journeymap-cli sync                       Sync the album now
  journeymap-cli photos --year 2020         Locations up to 2020
  journeymap-cli captions                   List edited captions
  journeymap-cli set-caption ID "Text"      Edit a caption

Environment:
  JOURNEYMAP_API_URL       API URL (default: http://localhost:8080)
  JOURNEYMAP_SYNC_SECRET   Secret for the sync endpoint
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("health", help="Show server status")
    subparsers.add_parser("sync", help="Sync the album")

    captions = subparsers.add_parser("captions", help="List edited captions")
    captions.add_argument("--json", action="store_true", help="Print raw JSON")

    set_caption = subparsers.add_parser("set-caption", help="Edit a photo caption")
    set_caption.add_argument("photo_id", help="Photo ID")
    set_caption.add_argument("caption", help="New caption")

    photos = subparsers.add_parser("photos", help="List locations")
    photos.add_argument("--year", "-y", type=int, help="Up to this year")
    photos.add_argument("--location", "-l", help="Location ID")

    return parser


def main(argv: Optional[list] = None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    commands = {
        "health": cmd_health,
        "sync": cmd_sync,
        "captions": cmd_captions,
        "set-caption": cmd_set_caption,
        "photos": cmd_photos,
    }

    commands[args.command](args)


if __name__ == "__main__":
    main()
