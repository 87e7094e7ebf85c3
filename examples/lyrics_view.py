"""
Synchronized lyrics example.

Plays a fake track in a loop of ticks and prints the active lyric line
whenever it changes, then jumps to a line the way a click would.
"""

import sys

from cloudmusic import LyricsController, PlaybackClock, Song, format_time
from cloudmusic.lyrics.engine import ScrollToLine


class SimulatedClock(PlaybackClock):
    """Playback clock advanced manually instead of by an audio element."""

    def __init__(self, duration):
        self.position = 0.0
        self._duration = duration

    @property
    def current_time(self):
        return self.position

    @property
    def duration(self):
        return self._duration

    @property
    def is_playing(self):
        return True

    def seek(self, position):
        self.position = position

    def play_pause(self):
        pass


def main():
    lyrics_url = sys.argv[1] if len(sys.argv) > 1 else None
    song = Song(id="demo", title="Nocturne", artist="Demo Artist", lyrics_url=lyrics_url)
    clock = SimulatedClock(duration=60.0)

    def on_effect(effect):
        if isinstance(effect, ScrollToLine):
            line = controller.session.lines[effect.index]
            print(f"[{format_time(clock.current_time)}] {line.text}")

    controller = LyricsController(clock, on_effect=on_effect)
    session = controller.open(song)
    source = "placeholder" if session.is_fallback else "fetched"
    print(f"Loaded {len(session.lines)} {source} lines\n")

    # Advance playback in half-second steps
    while clock.current_time < clock.duration:
        clock.position += 0.5
        controller.tick()

    # Jump back to the third line
    print("\nClicking line 3...")
    controller.click_line(2)
    controller.tick()
    print(f"Position is now {format_time(clock.current_time)}")

    controller.close()

if __name__ == "__main__":
    main()
