"""
Shared utility functions for CloudMusic.

Provides common utilities used across multiple modules, primarily
timestamp conversion functions and object key construction.
"""

import re
from typing import Optional

_UNSAFE_FILENAME_CHARS = re.compile(r'[^A-Za-z0-9.]')


def timestamp_to_seconds(timestamp: str) -> float:
    """
    Convert HH:MM:SS,mmm (or HH:MM:SS.mmm) format to seconds.

    The millisecond suffix is optional and defaults to 0.

    Args:
        timestamp: Timestamp string in HH:MM:SS,mmm format

    Returns:
        Time in seconds as float

    Example:
        >>> timestamp_to_seconds("00:01:30,500")
        90.5
        >>> timestamp_to_seconds("00:01:30")
        90.0
    """
    clock, _, millis = timestamp.strip().replace(',', '.').partition('.')
    h, m, s = clock.split(':')
    ms = int(millis) if millis else 0
    return int(h) * 3600 + int(m) * 60 + int(s) + ms / 1000


def seconds_to_timestamp(seconds: float) -> str:
    """
    Convert seconds to HH:MM:SS,mmm format.

    Args:
        seconds: Time in seconds as float

    Returns:
        Timestamp string in HH:MM:SS,mmm format

    Example:
        >>> seconds_to_timestamp(90.5)
        '00:01:30,500'
    """
    total_ms = int(round(max(seconds, 0.0) * 1000))
    hours, remainder = divmod(total_ms, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, milliseconds = divmod(remainder, 1000)

    return f"{hours:02d}:{minutes:02d}:{secs:02d},{milliseconds:03d}"


def format_time(seconds: Optional[float]) -> str:
    """
    Format a playback position as m:ss for display under the progress bar.

    Example:
        >>> format_time(65.9)
        '1:05'
    """
    if not seconds or seconds < 0:
        seconds = 0
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{mins}:{secs:02d}"


def sanitize_filename(name: str) -> str:
    """
    Replace every character outside [A-Za-z0-9.] with an underscore.

    Example:
        >>> sanitize_filename("My Song!.mp3")
        'My_Song_.mp3'
    """
    return _UNSAFE_FILENAME_CHARS.sub('_', name)


def build_object_key(folder: str, filename: str, timestamp_ms: int) -> str:
    """
    Build an object key of the form folder/timestamp_sanitizedFilename.

    Example:
        >>> build_object_key("tracks", "My Song!.mp3", 1700000000000)
        'tracks/1700000000000_My_Song_.mp3'
    """
    return f"{folder}/{timestamp_ms}_{sanitize_filename(filename)}"
