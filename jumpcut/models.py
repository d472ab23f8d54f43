"""Shared data types used across JumpCut."""

from dataclasses import dataclass, field
from enum import Enum


class Mode(str, Enum):
    """What happens to detected silence."""

    REMOVE = "remove"
    SPEED = "speed"


class EventKind(str, Enum):
    START = "start"
    END = "end"


@dataclass(frozen=True)
class SilenceEvent:
    """A single ``silence_start`` / ``silence_end`` line from silencedetect."""

    kind: EventKind
    timestamp: float


@dataclass(frozen=True)
class SilenceInterval:
    """A start/end time pair in seconds where the audio stays below threshold."""

    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class Segment:
    """A span of the source, played back at ``speed`` in the output."""

    start: float
    end: float
    speed: float = 1.0

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def output_duration(self) -> float:
        return self.duration / self.speed


@dataclass
class SegmentPlan:
    """Ordered segments produced for one input, plus the mode that made them.

    In remove mode the segments are the retained spans and gaps between them
    are dropped silence. In speed mode they cover ``[0, duration]`` with no
    gaps.
    """

    mode: Mode
    duration: float
    segments: list[Segment] = field(default_factory=list)

    @property
    def output_duration(self) -> float:
        return sum(s.output_duration for s in self.segments)

    @property
    def is_noop(self) -> bool:
        """True when rendering this plan would reproduce the input unchanged.

        An empty plan (everything was silence) is also treated as a no-op;
        the caller falls back to a passthrough copy.
        """
        if not self.segments:
            return True
        if any(s.speed != 1 for s in self.segments):
            return False
        tol = 1e-6
        if self.segments[0].start > tol or self.segments[-1].end < self.duration - tol:
            return False
        return all(
            abs(nxt.start - cur.end) <= tol
            for cur, nxt in zip(self.segments, self.segments[1:])
        )


@dataclass
class ProbeResult:
    """Metadata extracted from a media file via ffprobe."""

    duration: float
    has_video: bool
    has_audio: bool
