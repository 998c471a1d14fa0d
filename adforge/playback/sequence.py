"""Frame sequence snapshot.

Timing data derived from an ordered frame list and the shared animation
duration ``D``::

    duration(frame)  = delay(frame) + D
    offset(frame_i)  = sum of duration(frame_j) for j < i
    total            = sum of all durations

A snapshot is rebuilt whenever the frame list, the active frame or ``D``
changes and is never persisted.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from adforge.layers import Frame


@dataclass(frozen=True)
class SequenceSnapshot:
    """Read-only timing table for one sequence of frames."""

    frame_ids: tuple[str, ...] = ()
    durations: dict[str, float] = field(default_factory=dict)
    offsets: dict[str, float] = field(default_factory=dict)
    delays: dict[str, float] = field(default_factory=dict)
    total: float = 0.0
    animation_duration: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.frame_ids

    @property
    def first_frame_id(self) -> Optional[str]:
        return self.frame_ids[0] if self.frame_ids else None

    def locate(self, play_position: float) -> Optional[tuple[str, float]]:
        """
        Find the frame on screen at a play position.

        Linear scan over cumulative offsets. Frames with a duration <= 0
        have no extent and are never returned. During a frame's delay
        window the local time is clamped to 0.

        Args:
            play_position: Seconds since the start of the sequence

        Returns:
            (frame id, local animation time) or None if the position lies
            outside [0, total)
        """
        if play_position < 0:
            return None
        for frame_id in self.frame_ids:
            duration = self.durations[frame_id]
            if duration <= 0:
                continue
            start = self.offsets[frame_id]
            if start <= play_position < start + duration:
                local = max(0.0, (play_position - start) - self.delays[frame_id])
                return frame_id, local
        return None

    def offset_of(self, frame_id: str) -> float:
        """Start offset of a frame, 0 for unknown ids."""
        return self.offsets.get(frame_id, 0.0)


def build_snapshot(frames: Iterable[Frame], animation_duration: float) -> SequenceSnapshot:
    """
    Build the timing table for frames in their given order.

    Args:
        frames: Frames in playback order
        animation_duration: Shared animation duration in seconds

    Returns:
        SequenceSnapshot
    """
    frame_ids = []
    durations = {}
    offsets = {}
    delays = {}
    cursor = 0.0

    for frame in frames:
        duration = frame.delay + animation_duration
        frame_ids.append(frame.id)
        delays[frame.id] = frame.delay
        durations[frame.id] = duration
        offsets[frame.id] = cursor
        # Zero-width frames do not move the cursor backwards
        cursor += max(duration, 0.0)

    return SequenceSnapshot(
        frame_ids=tuple(frame_ids),
        durations=durations,
        offsets=offsets,
        delays=delays,
        total=cursor,
        animation_duration=animation_duration,
    )
