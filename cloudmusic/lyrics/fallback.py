"""
Placeholder lyrics shown when a track has no usable subtitle resource.
"""

from typing import List

from ..models import SubtitleLine

DEFAULT_FALLBACK_DURATION = 180.0

_PLACEHOLDER_SHEET = [
    "Verse 1",
    "Listening to {title}",
    "By the amazing {artist}",
    "In the silence of the night",
    "Music takes a flight",
    "",
    "Chorus",
    "Feel the rhythm, feel the beat",
    "Moving fast beneath your feet",
    "Colors swirling in the mind",
    "Leave the worries all behind",
    "",
    "Verse 2",
    "Every note a story told",
    "Memories of days of old",
    "Melodies that softly play",
    "Guiding us along the way",
    "",
    "Bridge",
    "Rise above the noise",
    "Find your inner voice",
    "",
    "Chorus",
    "Feel the rhythm, feel the beat",
    "Moving fast beneath your feet",
    "End",
]


def generate_fallback_lines(title: str, artist: str, duration: float) -> List[SubtitleLine]:
    """
    Spread the placeholder sheet evenly across the track duration.

    Adjacent lines abut exactly (each end equals the next start), and the
    last line ends at ``duration``. An unknown duration (<= 0) falls back to
    DEFAULT_FALLBACK_DURATION.

    Args:
        title: Song title interpolated into the sheet
        artist: Artist name interpolated into the sheet
        duration: Track duration in seconds

    Returns:
        List of SubtitleLine covering [0, duration)
    """
    total = duration if duration and duration > 0 else DEFAULT_FALLBACK_DURATION
    texts = [line.format(title=title, artist=artist) for line in _PLACEHOLDER_SHEET]
    count = len(texts)

    return [
        SubtitleLine(
            start_time=total * index / count,
            end_time=total * (index + 1) / count,
            text=text,
        )
        for index, text in enumerate(texts)
    ]
