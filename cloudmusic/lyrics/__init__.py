"""
Lyrics module for CloudMusic.

Provides the time-synchronized lyrics view state machine and the
placeholder lyrics used when no subtitle resource is available.
"""

from .fallback import generate_fallback_lines, DEFAULT_FALLBACK_DURATION

from .engine import (
    LyricsConfig,
    LyricsController,
    LyricsSession,
    LyricsState,
    damped_offset,
    find_active_index,
    scroll_position_for,
    transition,
)

__all__ = [
    'generate_fallback_lines',
    'DEFAULT_FALLBACK_DURATION',
    'LyricsConfig',
    'LyricsController',
    'LyricsSession',
    'LyricsState',
    'damped_offset',
    'find_active_index',
    'scroll_position_for',
    'transition',
]
