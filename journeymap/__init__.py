# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
# JourneyMap - Shared Photo Map
"""
JourneyMap syncs a shared Google Photos album, groups photos into places by
caption tags, and serves them to an interactive world map with a timeline.
"""

__version__ = "1.0.0"
__author__ = "JourneyMap"
