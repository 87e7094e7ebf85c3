"""
Lyrics synchronization engine for CloudMusic.

Models the full-screen lyrics view as a state machine:

    CLOSED -> LOADING -> READY <-> DRAGGING -> CLOSING -> CLOSED

transition() is a pure function from (session, event) to (session, effects).
The host feeds raw input (clock ticks, clicks, pointer and wheel gestures)
in as events and carries out the returned effects (scrolling, timers,
detaching the view). LyricsController wires the state machine to a
PlaybackClock and a subtitle fetcher.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from ..exceptions import SubtitleUnavailable
from ..models import PlaybackClock, Song, SubtitleLine
from ..subtitles.fetcher import fetch_subtitles
from .fallback import generate_fallback_lines

logger = logging.getLogger(__name__)

SUBTITLE_FETCH_TIMEOUT = 5.0
DRAG_DISMISS_THRESHOLD = 120.0
DRAG_DAMPING_EXPONENT = 0.8
WHEEL_DISMISS_THRESHOLD = 250.0
WHEEL_RESET_INTERVAL = 0.3
EXIT_TRANSITION_DURATION = 0.3
SCROLL_ANCHOR_RATIO = 1 / 3


class LyricsState(Enum):
    CLOSED = "closed"
    LOADING = "loading"
    READY = "ready"
    DRAGGING = "dragging"
    CLOSING = "closing"


@dataclass(frozen=True)
class LyricsConfig:
    """Tunables for the lyrics view (thresholds in logical pixels / wheel units)."""
    fetch_timeout: float = SUBTITLE_FETCH_TIMEOUT
    drag_dismiss_threshold: float = DRAG_DISMISS_THRESHOLD
    drag_damping_exponent: float = DRAG_DAMPING_EXPONENT
    wheel_dismiss_threshold: float = WHEEL_DISMISS_THRESHOLD
    wheel_reset_interval: float = WHEEL_RESET_INTERVAL
    exit_transition_duration: float = EXIT_TRANSITION_DURATION
    scroll_anchor_ratio: float = SCROLL_ANCHOR_RATIO


@dataclass(frozen=True)
class LyricsSession:
    """Per-open-view state. Discarded when the view closes."""
    state: LyricsState = LyricsState.CLOSED
    lines: Tuple[SubtitleLine, ...] = ()
    is_fallback: bool = False
    current_time: float = 0.0
    active_index: int = -1
    drag_offset: float = 0.0
    is_dragging: bool = False
    drag_source: Optional[str] = None
    drag_origin: Optional[float] = None
    wheel_total: float = 0.0
    last_wheel_at: Optional[float] = None


# Events

@dataclass(frozen=True)
class Open:
    pass


@dataclass(frozen=True)
class LinesLoaded:
    lines: Sequence[SubtitleLine]
    is_fallback: bool = False


@dataclass(frozen=True)
class Tick:
    current_time: float


@dataclass(frozen=True)
class LineClicked:
    index: int


@dataclass(frozen=True)
class DragStart:
    y: float
    scroll_top: float


@dataclass(frozen=True)
class DragMove:
    y: float


@dataclass(frozen=True)
class DragEnd:
    pass


@dataclass(frozen=True)
class Wheel:
    delta_y: float
    scroll_top: float
    at: float


@dataclass(frozen=True)
class WheelIdle:
    at: float


@dataclass(frozen=True)
class Close:
    pass


@dataclass(frozen=True)
class ExitFinished:
    pass


# Effects

@dataclass(frozen=True)
class Seek:
    position: float


@dataclass(frozen=True)
class ScrollToLine:
    index: int
    anchor_ratio: float = SCROLL_ANCHOR_RATIO
    smooth: bool = True


@dataclass(frozen=True)
class ScheduleWheelIdle:
    delay: float


@dataclass(frozen=True)
class ScheduleExitFinished:
    delay: float


@dataclass(frozen=True)
class Detach:
    pass


def find_active_index(lines: Sequence[SubtitleLine], current_time: float) -> int:
    """
    Index of the first line whose [start, end) range contains current_time.

    Lines are scanned in file order, so out-of-order input is tolerated. In a
    gap between lines the most recently started line stays active, so the
    highlight neither flickers nor points at a line still to come after a
    backward seek. Before any line has started, -1.
    """
    for index, line in enumerate(lines):
        if line.contains(current_time):
            return index

    started = [index for index, line in enumerate(lines) if line.start_time <= current_time]
    if not started:
        return -1
    return max(started, key=lambda index: (lines[index].start_time, -index))


def damped_offset(raw_delta: float, exponent: float = DRAG_DAMPING_EXPONENT) -> float:
    """Sub-linear response to a pull distance, so the gesture feels resistant."""
    if raw_delta <= 0:
        return 0.0
    return raw_delta ** exponent


def scroll_position_for(line_top: float, line_height: float, viewport_height: float,
                        anchor_ratio: float = SCROLL_ANCHOR_RATIO) -> float:
    """Scroll offset that puts a line's center at anchor_ratio of the viewport height."""
    return max(0.0, line_top + line_height / 2 - viewport_height * anchor_ratio)


def _begin_closing(session: LyricsSession, config: LyricsConfig):
    closing = replace(
        session,
        state=LyricsState.CLOSING,
        is_dragging=False,
        drag_source=None,
        drag_origin=None,
        wheel_total=0.0,
        last_wheel_at=None,
    )
    return closing, [ScheduleExitFinished(config.exit_transition_duration)]


def _snap_back(session: LyricsSession, config: LyricsConfig):
    # Auto-scroll was suppressed during the gesture; re-pin the active line.
    restored = replace(
        session,
        state=LyricsState.READY,
        drag_offset=0.0,
        is_dragging=False,
        drag_source=None,
        drag_origin=None,
        wheel_total=0.0,
        last_wheel_at=None,
    )
    effects = []
    if restored.active_index >= 0:
        effects.append(ScrollToLine(restored.active_index, config.scroll_anchor_ratio))
    return restored, effects


def _retime(session: LyricsSession, current_time: float, config: LyricsConfig):
    index = find_active_index(session.lines, current_time)
    updated = replace(session, current_time=current_time, active_index=index)
    effects = []
    if index != session.active_index and index >= 0 and not updated.is_dragging:
        effects.append(ScrollToLine(index, config.scroll_anchor_ratio))
    return updated, effects


def _on_drag_move(session: LyricsSession, event: DragMove, config: LyricsConfig):
    if session.drag_origin is None or session.drag_source not in (None, "pointer"):
        return session, []

    raw_delta = event.y - session.drag_origin
    if session.state == LyricsState.READY:
        if raw_delta <= 0:
            # Upward movement is a normal scroll, not a pull.
            return replace(session, drag_origin=None), []
        session = replace(session, state=LyricsState.DRAGGING, is_dragging=True, drag_source="pointer")

    offset = damped_offset(raw_delta, config.drag_damping_exponent)
    if offset >= config.drag_dismiss_threshold:
        return _begin_closing(replace(session, drag_offset=offset), config)
    return replace(session, drag_offset=offset), []


def _on_wheel(session: LyricsSession, event: Wheel, config: LyricsConfig):
    if session.drag_source == "pointer":
        return session, []

    if event.scroll_top > 0 or event.delta_y >= 0:
        if session.state == LyricsState.DRAGGING:
            return _snap_back(session, config)
        return replace(session, wheel_total=0.0, last_wheel_at=None), []

    total = session.wheel_total
    if session.last_wheel_at is not None and event.at - session.last_wheel_at > config.wheel_reset_interval:
        total = 0.0
    total += -event.delta_y

    session = replace(
        session,
        state=LyricsState.DRAGGING,
        is_dragging=True,
        drag_source="wheel",
        wheel_total=total,
        last_wheel_at=event.at,
        drag_offset=damped_offset(total, config.drag_damping_exponent),
    )
    if total >= config.wheel_dismiss_threshold:
        return _begin_closing(session, config)
    return session, [ScheduleWheelIdle(config.wheel_reset_interval)]


def transition(session: LyricsSession, event, config: LyricsConfig = LyricsConfig()):
    """
    Apply one event to a session.

    Args:
        session: Current session state
        event: One of the event dataclasses in this module
        config: Thresholds and durations

    Returns:
        Tuple of (new_session, list_of_effects)
    """
    state = session.state

    if isinstance(event, Open):
        if state != LyricsState.CLOSED:
            return session, []
        return LyricsSession(state=LyricsState.LOADING), []

    if isinstance(event, ExitFinished):
        if state != LyricsState.CLOSING:
            return session, []
        return LyricsSession(), [Detach()]

    if state in (LyricsState.CLOSED, LyricsState.CLOSING):
        return session, []

    if isinstance(event, Close):
        return _begin_closing(session, config)

    if isinstance(event, LinesLoaded):
        if state != LyricsState.LOADING:
            return session, []
        loaded = replace(
            session,
            state=LyricsState.READY,
            lines=tuple(event.lines),
            is_fallback=event.is_fallback,
            active_index=-1,
        )
        return _retime(loaded, session.current_time, config)

    if isinstance(event, Tick):
        if state == LyricsState.LOADING:
            return replace(session, current_time=event.current_time), []
        return _retime(session, event.current_time, config)

    if state == LyricsState.LOADING:
        return session, []

    if isinstance(event, LineClicked):
        if state != LyricsState.READY or not 0 <= event.index < len(session.lines):
            return session, []
        return session, [Seek(session.lines[event.index].start_time)]

    if isinstance(event, DragStart):
        if state != LyricsState.READY or event.scroll_top > 0:
            return session, []
        return replace(session, drag_origin=event.y), []

    if isinstance(event, DragMove):
        return _on_drag_move(session, event, config)

    if isinstance(event, DragEnd):
        if state == LyricsState.DRAGGING and session.drag_source == "pointer":
            return _snap_back(session, config)
        return replace(session, drag_origin=None), []

    if isinstance(event, Wheel):
        return _on_wheel(session, event, config)

    if isinstance(event, WheelIdle):
        if (state == LyricsState.DRAGGING and session.drag_source == "wheel"
                and session.last_wheel_at is not None
                and event.at - session.last_wheel_at >= config.wheel_reset_interval):
            return _snap_back(session, config)
        return session, []

    raise TypeError(f"Unknown lyrics event: {event!r}")


EffectHandler = Callable[[object], None]
SubtitleFetcher = Callable[..., List[SubtitleLine]]


@dataclass
class LyricsController:
    """
    Drives one lyrics view against a playback clock.

    Seek effects are applied to the clock directly; every other effect
    (scrolling, timers, detaching) is handed to ``on_effect`` for the host
    view to perform. At most one view is expected to be open at a time.
    """
    clock: PlaybackClock
    on_effect: Optional[EffectHandler] = None
    fetcher: SubtitleFetcher = fetch_subtitles
    config: LyricsConfig = field(default_factory=LyricsConfig)
    session: LyricsSession = field(default_factory=LyricsSession)

    def dispatch(self, event) -> LyricsSession:
        self.session, effects = transition(self.session, event, self.config)
        for effect in effects:
            if isinstance(effect, Seek):
                self.clock.seek(effect.position)
            elif self.on_effect is not None:
                self.on_effect(effect)
        return self.session

    def load_lines(self, song: Song) -> Tuple[List[SubtitleLine], bool]:
        """
        Fetch the song's subtitle lines, falling back to placeholder lyrics.

        Returns:
            Tuple of (lines, is_fallback)
        """
        if song.lyrics_url:
            try:
                return self.fetcher(song.lyrics_url, timeout=self.config.fetch_timeout), False
            except SubtitleUnavailable as e:
                logger.warning(f"Lyrics unavailable for '{song.title}': {str(e)}, using placeholder lyrics")
            except Exception as e:
                logger.warning(f"Failed to load lyrics for '{song.title}': {str(e)}, using placeholder lyrics")
        else:
            logger.info(f"No lyrics resource for '{song.title}', using placeholder lyrics")

        return generate_fallback_lines(song.title, song.artist, self.clock.duration), True

    def open(self, song: Song) -> LyricsSession:
        """Open the view for a song and block until it is READY."""
        self.dispatch(Open())
        if self.session.state != LyricsState.LOADING:
            return self.session

        self.dispatch(Tick(self.clock.current_time))
        lines, is_fallback = self.load_lines(song)
        return self.dispatch(LinesLoaded(lines, is_fallback=is_fallback))

    def tick(self) -> LyricsSession:
        return self.dispatch(Tick(self.clock.current_time))

    def click_line(self, index: int) -> LyricsSession:
        return self.dispatch(LineClicked(index))

    def close(self) -> LyricsSession:
        return self.dispatch(Close())

    @property
    def active_line(self) -> Optional[SubtitleLine]:
        index = self.session.active_index
        if 0 <= index < len(self.session.lines):
            return self.session.lines[index]
        return None
