"""Filter graph builder — compiles a segment plan into an ffmpeg filter_complex.

Each segment becomes one trim chain per stream. The chains are concatenated
in plan order, video and audio separately, so a single ffmpeg pass renders
the whole edit without intermediate files.
"""

import logging
import math
from dataclasses import dataclass, field

from jumpcut.models import Segment, SegmentPlan

logger = logging.getLogger(__name__)

VIDEO_OUT = "outv"
AUDIO_OUT = "outa"

# Range accepted by a single atempo instance on every ffmpeg release.
ATEMPO_MIN = 0.5
ATEMPO_MAX = 2.0


@dataclass
class FilterGraph:
    """Per-segment chains plus the concat steps that reassemble them."""

    video_chains: list[str] = field(default_factory=list)
    audio_chains: list[str] = field(default_factory=list)
    video_labels: list[str] = field(default_factory=list)
    audio_labels: list[str] = field(default_factory=list)
    video_concat: str | None = None
    audio_concat: str = ""

    @property
    def has_video(self) -> bool:
        return self.video_concat is not None

    @property
    def output_pads(self) -> list[str]:
        pads = [AUDIO_OUT]
        if self.has_video:
            pads.insert(0, VIDEO_OUT)
        return pads

    @property
    def filter_complex(self) -> str:
        parts = [*self.video_chains, *self.audio_chains]
        if self.video_concat is not None:
            parts.append(self.video_concat)
        parts.append(self.audio_concat)
        return ";".join(parts)

    def map_args(self) -> list[str]:
        args: list[str] = []
        for pad in self.output_pads:
            args.extend(["-map", f"[{pad}]"])
        return args


def format_seconds(value: float) -> str:
    """Render a timestamp or factor with microsecond precision.

    >>> format_seconds(2.0), format_seconds(1.25), format_seconds(0.1 + 0.2)
    ('2', '1.25', '0.3')
    """
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def atempo_stages(speed: float) -> list[float]:
    """Split *speed* into atempo factors that each stay within [0.5, 2.0]."""
    if not math.isfinite(speed) or speed <= 0:
        raise ValueError(f"atempo factor must be a positive finite number, got {speed}")
    stages: list[float] = []
    remaining = speed
    while remaining > ATEMPO_MAX:
        stages.append(ATEMPO_MAX)
        remaining /= ATEMPO_MAX
    while remaining < ATEMPO_MIN:
        stages.append(ATEMPO_MIN)
        remaining /= ATEMPO_MIN
    stages.append(remaining)
    return stages


def _video_chain(seg: Segment, label: str) -> str:
    chain = (
        f"[0:v]trim=start={format_seconds(seg.start)}:end={format_seconds(seg.end)},"
        "setpts=PTS-STARTPTS"
    )
    if seg.speed != 1:
        chain += f",setpts=PTS/{format_seconds(seg.speed)}"
    return f"{chain}[{label}]"


def _audio_chain(seg: Segment, label: str) -> str:
    chain = (
        f"[0:a]atrim=start={format_seconds(seg.start)}:end={format_seconds(seg.end)},"
        "asetpts=PTS-STARTPTS"
    )
    if seg.speed != 1:
        chain += "".join(f",atempo={format_seconds(f)}" for f in atempo_stages(seg.speed))
    return f"{chain}[{label}]"


def build_filter_graph(plan: SegmentPlan, include_video: bool = True) -> FilterGraph | None:
    """Compile *plan* into a FilterGraph, or None when it is a no-op.

    Set *include_video* to False for audio-only inputs or outputs; the
    graph then carries only the audio chains and the ``outa`` pad.
    """
    if plan.is_noop:
        return None

    n = len(plan.segments)
    graph = FilterGraph()

    for i, seg in enumerate(plan.segments):
        if include_video:
            graph.video_labels.append(f"v{i}")
            graph.video_chains.append(_video_chain(seg, f"v{i}"))
        graph.audio_labels.append(f"a{i}")
        graph.audio_chains.append(_audio_chain(seg, f"a{i}"))

    if include_video:
        video_inputs = "".join(f"[{label}]" for label in graph.video_labels)
        graph.video_concat = f"{video_inputs}concat=n={n}:v=1:a=0[{VIDEO_OUT}]"
    audio_inputs = "".join(f"[{label}]" for label in graph.audio_labels)
    graph.audio_concat = f"{audio_inputs}concat=n={n}:v=0:a=1[{AUDIO_OUT}]"

    logger.debug("Generated filter graph: %s", graph.filter_complex)
    return graph
