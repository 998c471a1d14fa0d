"""Playback driver for single animations and frame sequences.

The driver is a tick-driven state machine. A host scheduler calls back once
per display tick with the current time; each tick reads the time, computes
the new active frame and local animation time, stores them, and asks for the
next tick. Nothing else mutates playback state, so no locking is needed.

Cancellation is cooperative. Every ``play()`` opens a ``PlaybackSession``
tagged with the driver's generation counter; ``stop()`` bumps the counter.
A tick delivered to a session whose generation is stale does nothing and
does not re-register, even if the host had already queued it.

Example:
    scheduler = ManualScheduler()
    driver = PlaybackDriver(scheduler)
    driver.set_mode(PlaybackMode.SEQUENCE)
    driver.set_frames(composition.ordered_frames())
    driver.play(now=0.0)

    scheduler.fire(3.0)  # host paint callback
    driver.active_frame_id, driver.local_time
"""

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from adforge.config import Settings, settings as default_settings
from adforge.exceptions import EmptySequenceError, FrameNotFoundError
from adforge.layers import Frame

from .sequence import SequenceSnapshot, build_snapshot

logger = logging.getLogger(__name__)

TickCallback = Callable[[float], None]


class PlaybackMode(str, Enum):
    """How the timeline is played."""
    SINGLE = "single"  # One continuous animation of length D
    SEQUENCE = "sequence"  # Discrete frames with per-frame delay, looping


class PlaybackState(str, Enum):
    STOPPED = "stopped"
    PLAYING_SINGLE = "playing_single"
    PLAYING_SEQUENCE = "playing_sequence"


@dataclass
class TickResult:
    """Playback position after a tick."""

    active_frame_id: Optional[str]
    local_time: float


# -----------------------------------------------------------------------------
# Schedulers
# -----------------------------------------------------------------------------


class TickScheduler(Protocol):
    """Host scheduling primitive ("call me on the next paint")."""

    def request_tick(self, callback: TickCallback) -> Any:
        """Register ``callback(now)`` for the next tick. Returns a handle."""
        ...

    def cancel(self, handle: Any) -> None:
        """Drop a pending tick or timer registration."""
        ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> Any:
        """Run ``callback()`` once after ``delay`` seconds. Returns a handle."""
        ...


class ManualScheduler:
    """Deterministic scheduler driven explicitly by ``fire()``.

    Used for headless hosts and tests. Time only moves when ``fire()`` or
    ``advance()`` is called.
    """

    def __init__(self, now: float = 0.0) -> None:
        self.now = now
        self._ids = itertools.count(1)
        self._ticks: dict[int, TickCallback] = {}
        self._timers: dict[int, tuple[float, Callable[[], None]]] = {}

    @property
    def pending_ticks(self) -> int:
        return len(self._ticks)

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    def request_tick(self, callback: TickCallback) -> int:
        handle = next(self._ids)
        self._ticks[handle] = callback
        return handle

    def cancel(self, handle: int) -> None:
        self._ticks.pop(handle, None)
        self._timers.pop(handle, None)

    def call_later(self, delay: float, callback: Callable[[], None]) -> int:
        handle = next(self._ids)
        self._timers[handle] = (self.now + delay, callback)
        return handle

    def fire(self, now: float) -> int:
        """
        Deliver one tick at ``now``, then run timers that have come due.

        Callbacks registered during this tick wait for the next ``fire()``.

        Returns:
            Number of tick callbacks invoked
        """
        self.now = now
        ticks, self._ticks = self._ticks, {}
        for callback in ticks.values():
            callback(now)
        self._run_due_timers()
        return len(ticks)

    def advance(self, seconds: float) -> int:
        """Fire a tick ``seconds`` after the current time."""
        return self.fire(self.now + seconds)

    def _run_due_timers(self) -> None:
        due = sorted(
            (when, handle) for handle, (when, _) in self._timers.items() if when <= self.now
        )
        for _, handle in due:
            entry = self._timers.pop(handle, None)
            if entry is not None:
                entry[1]()


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop.

    Ticks are spaced ``interval`` seconds apart and report
    ``time.perf_counter()`` as the current time.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        interval: float | None = None,
    ) -> None:
        self._loop = loop
        self.interval = interval if interval is not None else default_settings.TICK_INTERVAL

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def request_tick(self, callback: TickCallback) -> asyncio.TimerHandle:
        return self.loop.call_later(self.interval, lambda: callback(time.perf_counter()))

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)


# -----------------------------------------------------------------------------
# Sessions
# -----------------------------------------------------------------------------


class PlaybackSession:
    """One play() call: start time, start position and tick registration.

    Attributes:
        generation: Driver generation this session belongs to
        start_time: Clock value of the last (re)start
        initial_position: Play position at ``start_time``
    """

    def __init__(
        self,
        driver: 'PlaybackDriver',
        generation: int,
        start_time: float,
        initial_position: float,
    ) -> None:
        self._driver = driver
        self.generation = generation
        self.start_time = start_time
        self.initial_position = initial_position
        self._handle: Any = None

    @property
    def is_active(self) -> bool:
        """Whether this session still owns the driver."""
        return self._driver._generation == self.generation

    def position_at(self, now: float) -> float:
        return self.initial_position + max(0.0, now - self.start_time)

    def restart(self, now: float) -> None:
        """Rewind to position 0 at ``now`` (sequence loop)."""
        self.start_time = now
        self.initial_position = 0.0

    def schedule(self) -> None:
        self._handle = self._driver._scheduler.request_tick(self._on_tick)

    def cancel(self) -> None:
        if self._handle is not None:
            self._driver._scheduler.cancel(self._handle)
            self._handle = None

    def _on_tick(self, now: float) -> None:
        self._handle = None
        if not self.is_active:
            logger.debug(f"Dropping tick for stale session {self.generation}")
            return
        self._driver.advance_tick(now)
        if self.is_active:
            self.schedule()


# -----------------------------------------------------------------------------
# Driver
# -----------------------------------------------------------------------------


class PlaybackDriver:
    """Owns all sequencing state: active frame, local time, play/stop."""

    def __init__(
        self,
        scheduler: TickScheduler | None = None,
        clock: Callable[[], float] = time.perf_counter,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or default_settings
        self._scheduler: TickScheduler = scheduler or ManualScheduler()
        self._clock = clock

        self._mode = PlaybackMode.SINGLE
        self._state = PlaybackState.STOPPED
        self._frames: list[Frame] = []
        self._animation_duration: float = self._settings.ANIMATION_DURATION
        self._snapshot = SequenceSnapshot()

        self._active_frame_id: Optional[str] = None
        self._local_time: float = 0.0

        self._generation = 0
        self._session: Optional[PlaybackSession] = None
        self._settle_handle: Any = None

        self._frame_listeners: list[Callable[[str], None]] = []
        self._tick_listeners: list[Callable[[TickResult], None]] = []

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def mode(self) -> PlaybackMode:
        return self._mode

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state != PlaybackState.STOPPED

    @property
    def active_frame_id(self) -> Optional[str]:
        return self._active_frame_id

    @property
    def local_time(self) -> float:
        return self._local_time

    @property
    def animation_duration(self) -> float:
        return self._animation_duration

    @property
    def snapshot(self) -> SequenceSnapshot:
        return self._snapshot

    @property
    def session(self) -> Optional[PlaybackSession]:
        return self._session

    # -------------------------------------------------------------------------
    # Inputs
    # -------------------------------------------------------------------------

    def set_mode(self, mode: PlaybackMode | str) -> None:
        """Switch between single-animation and frame-sequence playback.

        Changing mode stops playback.
        """
        mode = PlaybackMode(mode)
        if mode == self._mode:
            return
        self.stop()
        self._mode = mode
        self._local_time = 0.0
        logger.info(f"Playback mode -> {mode.value}")

    def set_frames(self, frames: list[Frame], active_frame_id: Optional[str] = None) -> None:
        """
        Replace the frame list (in playback order) and rebuild the snapshot.

        The active frame is ``active_frame_id`` if given, otherwise the
        current one if it survives, otherwise the first frame.
        """
        self._frames = list(frames)
        ids = [f.id for f in self._frames]
        if active_frame_id in ids:
            self._active_frame_id = active_frame_id
        elif self._active_frame_id not in ids:
            self._active_frame_id = ids[0] if ids else None
        self._rebuild()

    def set_animation_duration(self, duration: float) -> None:
        self._animation_duration = max(0.0, duration)
        self._rebuild()

    def select_frame(self, frame_id: str) -> bool:
        """
        Make a frame active outside playback. Stops playback first.

        Returns:
            False (and no change) if the frame is not in the sequence
        """
        if frame_id not in self._snapshot.frame_ids:
            logger.warning(f"select_frame: {FrameNotFoundError(frame_id, 'playback sequence')}")
            return False
        self.stop()
        self._local_time = 0.0
        self._set_active(frame_id)
        self._rebuild()
        return True

    def on_frame_change(self, callback: Callable[[str], None]) -> None:
        """Register ``callback(frame_id)`` for active-frame switches."""
        self._frame_listeners.append(callback)

    def on_tick(self, callback: Callable[[TickResult], None]) -> None:
        """Register ``callback(result)`` run after every processed tick."""
        self._tick_listeners.append(callback)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def play(self, now: float | None = None) -> Optional[PlaybackSession]:
        """
        Start playback from the current position.

        Sequence mode starts at the active frame's offset. Single mode
        resumes from the current local time, or from 0 if the animation had
        finished.

        Args:
            now: Current clock value, defaults to the driver clock

        Returns:
            The new session, the running one if already playing, or None if
            sequence playback was requested with no playable frames
        """
        if self._session is not None and self._session.is_active:
            return self._session

        now = self._clock() if now is None else now
        self._cancel_settle()

        if self._mode == PlaybackMode.SEQUENCE:
            if self._snapshot.total <= 0:
                logger.info(f"play: {EmptySequenceError('no playable frames')}, staying stopped")
                return None
            if self._active_frame_id is None:
                self._set_active(self._snapshot.first_frame_id)
            initial = self._snapshot.offset_of(self._active_frame_id)
            state = PlaybackState.PLAYING_SEQUENCE
        else:
            initial = self._local_time if self._local_time < self._animation_duration else 0.0
            state = PlaybackState.PLAYING_SINGLE

        self._generation += 1
        self._session = PlaybackSession(self, self._generation, now, initial)
        self._state = state
        self._session.schedule()
        logger.info(f"Playback started ({self._mode.value}) at position {initial:.3f}s")
        return self._session

    def stop(self) -> None:
        """Stop playback. Any tick already queued for the session becomes a no-op."""
        session = self._session
        if session is None:
            return
        self._generation += 1
        session.cancel()
        self._session = None
        self._state = PlaybackState.STOPPED
        logger.info("Playback stopped")

    def toggle(self, now: float | None = None) -> None:
        """Toggle between playing and stopped."""
        if self.is_playing:
            self.stop()
        else:
            self.play(now)

    # -------------------------------------------------------------------------
    # Ticks
    # -------------------------------------------------------------------------

    def advance_tick(self, now: float) -> TickResult:
        """
        Advance playback to ``now``.

        This is the only place where the active frame changes during
        playback. Calling it while stopped returns the current position.

        Args:
            now: Current clock value (same clock as ``play``)

        Returns:
            TickResult with the active frame and local animation time
        """
        session = self._session
        if session is None or not session.is_active:
            return self._result()

        if self._mode == PlaybackMode.SEQUENCE:
            self._advance_sequence(session, now)
        else:
            self._advance_single(session, now)

        result = self._result()
        for callback in list(self._tick_listeners):
            self._notify(callback, result)
        return result

    def _advance_single(self, session: PlaybackSession, now: float) -> None:
        position = session.position_at(now)
        if position < self._animation_duration:
            self._local_time = position
            return

        # Finished: hold the last pose, then rewind after a short settle
        self._local_time = self._animation_duration
        self.stop()
        self._settle_handle = self._scheduler.call_later(self._settings.SETTLE_DELAY, self._settle)

    def _advance_sequence(self, session: PlaybackSession, now: float) -> None:
        snapshot = self._snapshot
        if snapshot.total <= 0:
            logger.info(f"{EmptySequenceError('sequence became empty')}, stopping")
            self.stop()
            return

        position = session.position_at(now)
        if position >= snapshot.total:
            session.restart(now)
            position = 0.0
            logger.debug("Sequence wrapped to start")

        located = snapshot.locate(position)
        if located is None:
            # Only reachable through float edge cases; hold the first frame
            located = (snapshot.first_frame_id, 0.0)
        frame_id, local = located

        if frame_id != self._active_frame_id:
            self._set_active(frame_id)
        self._local_time = local

    def _settle(self) -> None:
        self._settle_handle = None
        if not self.is_playing:
            self._local_time = 0.0
            logger.debug("Single animation rewound to 0")

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _cancel_settle(self) -> None:
        if self._settle_handle is not None:
            self._scheduler.cancel(self._settle_handle)
            self._settle_handle = None

    def _rebuild(self) -> None:
        self._snapshot = build_snapshot(self._frames, self._animation_duration)
        if self._snapshot.is_empty and self._mode == PlaybackMode.SEQUENCE:
            self.stop()

    def _set_active(self, frame_id: Optional[str]) -> None:
        self._active_frame_id = frame_id
        logger.debug(f"Active frame -> {frame_id}")
        if frame_id is None:
            return
        for callback in list(self._frame_listeners):
            self._notify(callback, frame_id)

    def _result(self) -> TickResult:
        return TickResult(active_frame_id=self._active_frame_id, local_time=self._local_time)

    @staticmethod
    def _notify(callback: Callable[[Any], None], value: Any) -> None:
        try:
            callback(value)
        except Exception:
            logger.exception(f"Playback listener {callback!r} failed")
