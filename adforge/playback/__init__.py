"""Frame sequencing and the tick-driven playback driver."""

from .sequence import SequenceSnapshot, build_snapshot
from .driver import (
    AsyncioScheduler,
    ManualScheduler,
    PlaybackDriver,
    PlaybackMode,
    PlaybackSession,
    PlaybackState,
    TickResult,
    TickScheduler,
)

__all__ = [
    'SequenceSnapshot',
    'build_snapshot',
    'AsyncioScheduler',
    'ManualScheduler',
    'PlaybackDriver',
    'PlaybackMode',
    'PlaybackSession',
    'PlaybackState',
    'TickResult',
    'TickScheduler',
]
