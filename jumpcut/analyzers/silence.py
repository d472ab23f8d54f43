"""Silence detection analyzer."""

import logging
import threading
from collections.abc import Iterable
from pathlib import Path

from jumpcut import ffutil
from jumpcut.manifest import ProcessingConfig
from jumpcut.models import EventKind, SilenceEvent, SilenceInterval

logger = logging.getLogger(__name__)


def parse_silence_events(events: Iterable[SilenceEvent]) -> list[SilenceInterval]:
    """Pair silencedetect start/end events into ordered silence intervals.

    Only a start followed by an end produces an interval. A second start
    before any end replaces the first; an end with no open start is
    ignored; a start still open when the events run out is dropped.
    Negative starts are clamped to zero and pairs that come out empty or
    inverted are skipped. Never raises.
    """
    intervals: list[SilenceInterval] = []
    pending: float | None = None

    for event in events:
        if event.kind == EventKind.START:
            pending = max(event.timestamp, 0.0)
        elif pending is not None:
            if event.timestamp > pending:
                intervals.append(SilenceInterval(start=pending, end=event.timestamp))
            else:
                logger.debug(
                    "Skipping inverted silence pair %s -> %s", pending, event.timestamp
                )
            pending = None

    if pending is not None:
        logger.debug("Dropping unterminated silence_start at %s", pending)

    return intervals


def parse_silence_intervals(stderr: str) -> list[SilenceInterval]:
    """Parse raw silencedetect output straight into intervals."""
    return parse_silence_events(ffutil.parse_silence_log(stderr))


def analyze_silence(
    input_path: Path,
    config: ProcessingConfig,
    adapter: ffutil.FFmpegAdapter,
    cancel: threading.Event | None = None,
) -> list[SilenceInterval]:
    """Run the detection pass on *input_path* and return silent intervals."""
    events = adapter.detect_silence(
        input_path,
        threshold_db=config.silence_threshold_db,
        min_duration=config.min_silence_duration,
        cancel=cancel,
    )
    silences = parse_silence_events(events)
    logger.info(
        "Detected %d silent intervals (%.2fs total) in %s",
        len(silences),
        sum(s.duration for s in silences),
        input_path,
    )
    return silences
