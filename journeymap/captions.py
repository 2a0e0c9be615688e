# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Caption parsing for album descriptions.

A description carries the caption text plus optional tags:
- "[San Francisco, CA]" names the place and is removed from the caption
- "#tokyo" names the place when no bracket is present (left in the caption)
- "#pranav"/"@pranav" or "#pooja"/"@pooja" marks whose photo it is

Examples:
    "Cherry blossoms! #tokyo"         -> location "tokyo"
    "Fun times [San Francisco, CA]"   -> caption "Fun times", location "San Francisco, CA"
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from .models import TYPE_POOJA, TYPE_PRANAV, TYPE_TOGETHER

BRACKET_PATTERN = re.compile(r"\[([^\]]+)\]")
HASHTAG_PATTERN = re.compile(r"#(\w+)")
SLUG_PATTERN = re.compile(r"[^a-z0-9]")

# Checked in order; first match wins
CONTRIBUTOR_TAGS = [
    (TYPE_PRANAV, ("#pranav", "@pranav")),
    (TYPE_POOJA, ("#pooja", "@pooja")),
]


@dataclass(frozen=True)
class ParsedCaption:
    """Result of parsing one description."""
    caption: str
    location: Optional[str] = None
    type: Optional[str] = None


def parse_caption(description: Optional[str]) -> ParsedCaption:
    """
    Split a description into caption text, location label and contributor type.

    Args:
        description: Raw description from the photo source. May be None.

    Returns:
        ParsedCaption. Empty descriptions give an empty caption with no
        location and no type.
    """
    if not description:
        return ParsedCaption(caption="")

    caption = description
    location = None

    bracket_match = BRACKET_PATTERN.search(description)
    if bracket_match:
        location = bracket_match.group(1)
        caption = caption.replace(bracket_match.group(0), "", 1).strip()
    else:
        hashtag_match = HASHTAG_PATTERN.search(description)
        if hashtag_match:
            location = hashtag_match.group(1)

    return ParsedCaption(
        caption=caption,
        location=location,
        type=classify_description(description),
    )


def classify_description(description: str) -> str:
    """Contributor type from "#name"/"@name" tags, defaulting to together."""
    lowered = description.lower()
    for contributor_type, tags in CONTRIBUTOR_TAGS:
        if any(tag in lowered for tag in tags):
            return contributor_type
    return TYPE_TOGETHER


def classify_contributors(contributors: Iterable[Optional[str]]) -> str:
    """
    Location type from the uploaders of its photos.

    Only a single distinct uploader makes a solo location; the type then
    comes from a name match, otherwise the location stays "together".
    """
    names = {name for name in contributors if name}
    if len(names) != 1:
        return TYPE_TOGETHER

    name = next(iter(names)).lower()
    for contributor_type, _ in CONTRIBUTOR_TAGS:
        if contributor_type in name:
            return contributor_type
    return TYPE_TOGETHER


def location_id(name: str, year: int) -> str:
    """Stable location id: each non-alphanumeric character becomes a hyphen."""
    return f"{SLUG_PATTERN.sub('-', name.lower())}-{year}"
