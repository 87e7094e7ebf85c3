"""
Subtitle package for CloudMusic.

Provides parsing of SubRip-style timed lyric files and fetching them by URL.
"""

from .parser import (
    parse_subtitles,
    SubtitleParser,
    TIMING_MARKER,
)

from .fetcher import fetch_subtitle_text, fetch_subtitles

__all__ = [
    "parse_subtitles",
    "SubtitleParser",
    "TIMING_MARKER",
    "fetch_subtitle_text",
    "fetch_subtitles",
]
