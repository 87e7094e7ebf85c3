"""
Timed subtitle parsing for CloudMusic.

Parses SubRip-style blocks (index, timestamp range, text) into an ordered
list of SubtitleLine objects. Only the common two-timestamp-per-block form
is supported; anything else in a block causes that block to be skipped.
"""

import logging
import re
from typing import List, Optional

from ..models import SubtitleLine
from ..utils import timestamp_to_seconds

logger = logging.getLogger(__name__)

TIMING_MARKER = "-->"

_BLOCK_SEPARATOR = re.compile(r'\r?\n(?:[ \t]*\r?\n)+')
_TIMING_PATTERN = re.compile(
    r'^\s*(\d+:\d{2}:\d{2}(?:[,.]\d{1,3})?)\s*-->\s*(\d+:\d{2}:\d{2}(?:[,.]\d{1,3})?)'
)


def _parse_block(block: str) -> Optional[SubtitleLine]:
    """
    Parse one block, returning None when it is malformed.

    The index line is optional; the timing line must be one of the first
    two lines and be followed by at least one non-empty text line.
    """
    lines = block.splitlines()
    for position, line in enumerate(lines[:2]):
        match = _TIMING_PATTERN.match(line)
        if match:
            break
    else:
        return None

    text = " ".join(part.strip() for part in lines[position + 1:] if part.strip())
    if not text:
        return None

    return SubtitleLine(
        start_time=timestamp_to_seconds(match.group(1)),
        end_time=timestamp_to_seconds(match.group(2)),
        text=text,
    )


def parse_subtitles(raw: str) -> List[SubtitleLine]:
    """
    Parse subtitle text into timed lines, in file order.

    Malformed blocks are dropped without affecting the rest of the input. Any
    unexpected failure yields an empty list, which callers treat as "no lyrics".

    Args:
        raw: Full text of the subtitle resource

    Returns:
        List of SubtitleLine (not re-sorted)

    Example:
        >>> parse_subtitles("1\\n00:00:01,000 --> 00:00:02,500\\nHello")
        [SubtitleLine(start_time=1.0, end_time=2.5, text='Hello')]
    """
    try:
        content = (raw or "").strip()
        if not content:
            return []

        lines = []
        for block in _BLOCK_SEPARATOR.split(content):
            line = _parse_block(block.strip())
            if line is None:
                logger.debug(f"Dropping malformed subtitle block: {block[:60]!r}")
                continue
            lines.append(line)
        return lines
    except Exception as e:
        logger.warning(f"Failed to parse subtitles: {str(e)}")
        return []


class SubtitleParser:
    """
    Parser for SubRip-style lyric files.

    Stateless wrapper around parse_subtitles() that can also read files
    from disk.
    """

    def parse(self, raw: str) -> List[SubtitleLine]:
        return parse_subtitles(raw)

    def parse_file(self, path: str) -> List[SubtitleLine]:
        """
        Parse a subtitle file from disk.

        Args:
            path: Path to an .srt/.vtt file (UTF-8)

        Returns:
            List of SubtitleLine, empty if the file holds no timed lines
        """
        logger.info(f"Parsing subtitle file: {path}")
        with open(path, 'r', encoding='utf-8-sig') as f:
            return parse_subtitles(f.read())
