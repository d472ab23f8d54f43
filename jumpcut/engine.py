"""Orchestrator — runs the detect/probe/plan/build/execute pipeline."""

import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from jumpcut.analyzers.silence import analyze_silence
from jumpcut.editors.filtergraph import build_filter_graph
from jumpcut.editors.plan import plan_segments
from jumpcut.errors import InvalidArgumentError
from jumpcut.ffutil import FFmpegAdapter, is_audio_only
from jumpcut.manifest import BUFFER_FORMATS, EngineSettings, ProcessingConfig
from jumpcut.models import Mode, Segment

logger = logging.getLogger(__name__)


@dataclass
class EngineResult:
    output_path: Path
    mode: Mode = Mode.REMOVE
    silences_found: int = 0
    segments: list[Segment] = field(default_factory=list)
    duration_original: float = 0.0
    duration_final: float = 0.0
    passthrough: bool = False


def _validate_input(input_path: Path | str | None) -> Path:
    if not input_path:
        raise InvalidArgumentError("Input and output paths are required")
    input_path = Path(input_path)
    if not input_path.is_file():
        raise InvalidArgumentError(f"Input file not found: {input_path}")
    return input_path


def _render(
    input_path: Path,
    output_path: Path,
    config: ProcessingConfig,
    adapter: FFmpegAdapter,
    on_progress: Callable[[str, float], None] | None,
    cancel: threading.Event | None,
) -> EngineResult:
    def _progress(stage: str, frac: float) -> None:
        if on_progress:
            on_progress(stage, frac)

    _progress("Scanning audio for silence", 0.0)
    silences = analyze_silence(input_path, config, adapter, cancel=cancel)

    _progress("Probing media metadata", 0.40)
    probe = adapter.probe(input_path, cancel=cancel)

    _progress("Planning segments", 0.45)
    plan = plan_segments(silences, probe.duration, config.mode, config.speed_factor)
    include_video = probe.has_video and not is_audio_only(output_path)
    graph = build_filter_graph(plan, include_video=include_video)

    if graph is None:
        _progress("Copying input unchanged", 0.50)
    else:
        _progress(f"Encoding {len(plan.segments)} segments", 0.50)
    adapter.execute(input_path, graph, output_path, cancel=cancel)

    _progress("Done", 1.0)
    return EngineResult(
        output_path=output_path,
        mode=plan.mode,
        silences_found=len(silences),
        segments=plan.segments,
        duration_original=probe.duration,
        duration_final=probe.duration if graph is None else plan.output_duration,
        passthrough=graph is None,
    )


def process(
    input_path: Path | str,
    output_path: Path | str,
    config: ProcessingConfig | None = None,
    *,
    adapter: FFmpegAdapter | None = None,
    on_progress: Callable[[str, float], None] | None = None,
    cancel: threading.Event | None = None,
) -> EngineResult:
    """Cut or speed up the silence in *input_path*, writing *output_path*.

    Args:
        input_path: Media file to edit.
        output_path: Destination; the container follows its suffix.
        config: Detection thresholds and edit mode. Defaults apply when None.
        adapter: ffmpeg wrapper to use; built from the environment when None.
        on_progress: Optional callback(stage_name, fraction_complete).
        cancel: Set this event from another thread to abort the running
            ffmpeg child.
    """
    if not output_path:
        raise InvalidArgumentError("Input and output paths are required")
    input_path = _validate_input(input_path)
    config = config or ProcessingConfig()
    config.validate()

    if adapter is None:
        adapter = FFmpegAdapter(EngineSettings.from_env())
        adapter.check_available()

    return _render(input_path, Path(output_path), config, adapter, on_progress, cancel)


def process_to_buffer(
    input_path: Path | str,
    config: ProcessingConfig | None = None,
    output_format: str = "mp4",
    *,
    adapter: FFmpegAdapter | None = None,
    on_progress: Callable[[str, float], None] | None = None,
    cancel: threading.Event | None = None,
) -> bytes:
    """Like process(), but return the rendered file's bytes.

    The render goes to a uniquely named temporary file which is removed
    whether or not the call succeeds.
    """
    output_format = output_format.lower().lstrip(".")
    if output_format not in BUFFER_FORMATS:
        raise InvalidArgumentError(
            f"Unsupported output format {output_format!r}; "
            f"expected one of {', '.join(BUFFER_FORMATS)}"
        )

    fd, tmp_name = tempfile.mkstemp(prefix="jumpcut_", suffix=f".{output_format}")
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        process(
            input_path,
            tmp_path,
            config,
            adapter=adapter,
            on_progress=on_progress,
            cancel=cancel,
        )
        return tmp_path.read_bytes()
    finally:
        tmp_path.unlink(missing_ok=True)
