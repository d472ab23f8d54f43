"""Segment planner — turns silence intervals into the segments to render."""

import logging
import math
from collections.abc import Sequence
from dataclasses import replace

from jumpcut.errors import InvalidArgumentError
from jumpcut.models import Mode, Segment, SegmentPlan, SilenceInterval

logger = logging.getLogger(__name__)

# Smallest span worth emitting; matches the precision of rendered timestamps.
MIN_SEGMENT = 1e-6


def plan_segments(
    silences: Sequence[SilenceInterval],
    duration: float,
    mode: Mode | str,
    speed_factor: float = 2.0,
) -> SegmentPlan:
    """Compute the ordered segment plan for one input.

    Remove mode returns only the spans between silences. Speed mode returns
    a gapless cover of ``[0, duration]`` where silent spans carry
    ``speed_factor`` and everything else plays at 1x. Silences are expected
    in ascending order; overlapping ones are merged by the cursor.
    """
    try:
        mode = Mode(mode)
    except ValueError:
        raise InvalidArgumentError(f"Unknown processing mode {mode!r}") from None
    if not math.isfinite(duration) or duration <= 0:
        raise InvalidArgumentError(f"duration must be a positive finite number, got {duration}")
    if not math.isfinite(speed_factor) or speed_factor <= 0:
        raise InvalidArgumentError(f"speed_factor must be a positive finite number, got {speed_factor}")

    segments: list[Segment] = []
    cursor = 0.0

    for silence in silences:
        start = min(max(silence.start, 0.0), duration)
        end = min(silence.end, duration)

        # Audible region before this silence
        if start - cursor > MIN_SEGMENT:
            segments.append(Segment(start=cursor, end=start))
            cursor = start

        if mode == Mode.REMOVE:
            cursor = max(cursor, end)
        elif end - cursor > MIN_SEGMENT:
            # Starts at the cursor so overlaps and sub-microsecond gaps stay covered
            segments.append(Segment(start=cursor, end=end, speed=speed_factor))
            cursor = end

    # Trailing audible region
    if duration - cursor > MIN_SEGMENT:
        segments.append(Segment(start=cursor, end=duration))
    elif mode == Mode.SPEED and segments and segments[-1].end < duration:
        segments[-1] = replace(segments[-1], end=duration)

    plan = SegmentPlan(mode=mode, duration=duration, segments=segments)
    if not segments:
        logger.warning("Entire %.2fs input is silent; nothing to cut", duration)
    else:
        logger.info(
            "Planned %d segments (%s mode): %.2fs -> %.2fs",
            len(segments), mode.value, duration, plan.output_duration,
        )
    return plan
