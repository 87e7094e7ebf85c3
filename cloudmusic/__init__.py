"""
CloudMusic - Media storage and synchronized lyrics for a personal music library

Features:
- Upload and delete media (covers, audio, lyric files) on S3-compatible
  storage with self-contained SigV4 request signing
- Parse SubRip-style timed lyric files
- Drive a full-screen lyrics view: active-line tracking, seek on click,
  pull-to-dismiss gestures
- Two-phase song creation with background media upload

Example usage:
    >>> from cloudmusic import ObjectStore, StoreConfig, MediaFile
    >>>
    >>> store = ObjectStore(StoreConfig.from_env())
    >>> url = store.upload(MediaFile.from_path("song.mp3"), folder="tracks")
    >>>
    >>> from cloudmusic import parse_subtitles, find_active_index
    >>> lines = parse_subtitles(open("song.srt").read())
    >>> find_active_index(lines, current_time=12.5)
"""

import logging

__version__ = "0.1.0"
__author__ = "CloudMusic Contributors"
__license__ = "MIT"

# Add NullHandler to prevent "No handler found" warnings
# Users should configure logging in their application if they want to see logs
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Core utility functions
from .utils import (
    timestamp_to_seconds,
    seconds_to_timestamp,
    format_time,
    sanitize_filename,
    build_object_key,
)

# Errors
from .exceptions import (
    CloudMusicError,
    SigningError,
    StorageError,
    UploadError,
    DeleteError,
    SubtitleUnavailable,
)

# Data models
from .models import (
    Credential,
    StoreConfig,
    MediaFile,
    SubtitleLine,
    PlaybackClock,
    Song,
    SongDescription,
)

# Storage
from .storage import ObjectStore, SignableRequest, SigningResult, sign, sign_request

# Subtitles
from .subtitles import parse_subtitles, SubtitleParser, fetch_subtitles

# Lyrics view
from .lyrics import (
    LyricsConfig,
    LyricsController,
    LyricsSession,
    LyricsState,
    find_active_index,
    generate_fallback_lines,
    transition,
)

# Library and metadata
from .library import Catalog, InMemoryCatalog, MediaLibrary, PendingSong
from .metadata import MetadataClient, describe

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",

    # Utility functions
    "timestamp_to_seconds",
    "seconds_to_timestamp",
    "format_time",
    "sanitize_filename",
    "build_object_key",

    # Errors
    "CloudMusicError",
    "SigningError",
    "StorageError",
    "UploadError",
    "DeleteError",
    "SubtitleUnavailable",

    # Models
    "Credential",
    "StoreConfig",
    "MediaFile",
    "SubtitleLine",
    "PlaybackClock",
    "Song",
    "SongDescription",

    # Storage
    "ObjectStore",
    "SignableRequest",
    "SigningResult",
    "sign",
    "sign_request",

    # Subtitles
    "parse_subtitles",
    "SubtitleParser",
    "fetch_subtitles",

    # Lyrics view
    "LyricsConfig",
    "LyricsController",
    "LyricsSession",
    "LyricsState",
    "find_active_index",
    "generate_fallback_lines",
    "transition",

    # Library
    "Catalog",
    "InMemoryCatalog",
    "MediaLibrary",
    "PendingSong",
    "MetadataClient",
    "describe",
]
