"""FFmpeg/ffprobe subprocess helpers."""

import json
import logging
import re
import shutil
import subprocess
import threading
from pathlib import Path

from jumpcut.editors.filtergraph import FilterGraph
from jumpcut.errors import (
    DetectionError,
    EngineExecutionError,
    FFmpegNotFoundError,
    ProbeError,
    ProcessingCancelled,
)
from jumpcut.manifest import AUDIO_ONLY_FORMATS, EngineSettings
from jumpcut.models import EventKind, ProbeResult, SilenceEvent

logger = logging.getLogger(__name__)

_NUMBER = r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?"
_SILENCE_RE = re.compile(rf"silence_(start|end): ({_NUMBER})")


def parse_silence_log(stderr: str) -> list[SilenceEvent]:
    """Extract silencedetect start/end events from ffmpeg stderr, in order."""
    events: list[SilenceEvent] = []
    for line in stderr.splitlines():
        m = _SILENCE_RE.search(line)
        if m is None:
            continue
        kind = EventKind.START if m.group(1) == "start" else EventKind.END
        events.append(SilenceEvent(kind=kind, timestamp=float(m.group(2))))
    return events


def is_audio_only(path: Path) -> bool:
    """True if the container chosen by *path*'s suffix carries no video."""
    return path.suffix.lower().lstrip(".") in AUDIO_ONLY_FORMATS


class FFmpegAdapter:
    """Runs the ffmpeg passes JumpCut needs.

    One adapter may be shared between threads; each call spawns its own
    child process and keeps no state between calls.
    """

    poll_interval = 0.2

    def __init__(self, settings: EngineSettings | None = None):
        self.settings = settings or EngineSettings()

    def check_available(self) -> None:
        """Raise FFmpegNotFoundError if ffmpeg/ffprobe cannot be found."""
        for cmd in (self.settings.ffmpeg_path, self.settings.ffprobe_path):
            if shutil.which(cmd) is None:
                raise FFmpegNotFoundError(f"{cmd} not found on PATH")

    def _run(
        self, cmd: list[str], cancel: threading.Event | None = None
    ) -> tuple[int, str, str]:
        """Run *cmd* to completion, killing it if *cancel* gets set."""
        logger.debug("Running: %s", " ".join(cmd))
        proc = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )
        try:
            if cancel is None:
                stdout, stderr = proc.communicate()
            else:
                while True:
                    try:
                        stdout, stderr = proc.communicate(timeout=self.poll_interval)
                        break
                    except subprocess.TimeoutExpired:
                        if cancel.is_set():
                            raise ProcessingCancelled(
                                f"Cancelled while running {Path(cmd[0]).name}"
                            ) from None
        except BaseException:
            proc.kill()
            proc.wait()
            raise
        return proc.returncode, stdout or "", stderr or ""

    def detect_silence(
        self,
        input_path: Path,
        threshold_db: float,
        min_duration: float,
        cancel: threading.Event | None = None,
    ) -> list[SilenceEvent]:
        """Run ffmpeg silencedetect and return its start/end events."""
        cmd = [
            self.settings.ffmpeg_path,
            "-nostdin", "-hide_banner", "-nostats",
            "-i", str(input_path),
            "-vn",
            "-af", f"silencedetect=n={threshold_db}dB:d={min_duration}",
            "-f", "null", "-",
        ]
        returncode, _, stderr = self._run(cmd, cancel)
        if returncode != 0:
            raise DetectionError(
                f"ffmpeg silencedetect failed on {input_path} (rc={returncode})",
                cmd=cmd, returncode=returncode, stderr=stderr,
            )
        return parse_silence_log(stderr)

    def probe(self, input_path: Path, cancel: threading.Event | None = None) -> ProbeResult:
        """Read duration and stream layout via ffprobe."""
        cmd = [
            self.settings.ffprobe_path,
            "-v", "error",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(input_path),
        ]
        returncode, stdout, stderr = self._run(cmd, cancel)
        if returncode != 0:
            raise ProbeError(
                f"ffprobe failed on {input_path} (rc={returncode})",
                cmd=cmd, returncode=returncode, stderr=stderr,
            )

        try:
            data = json.loads(stdout)
        except json.JSONDecodeError:
            raise ProbeError(f"ffprobe returned unreadable output for {input_path}") from None

        try:
            duration = float(data["format"]["duration"])
        except (KeyError, TypeError, ValueError):
            raise ProbeError(f"No duration metadata in {input_path}") from None
        if duration <= 0:
            raise ProbeError(f"Non-positive duration {duration} in {input_path}")

        # Cover art shows up as a single-frame video stream; it is not video.
        streams = data.get("streams", [])
        has_video = any(
            s.get("codec_type") == "video"
            and not s.get("disposition", {}).get("attached_pic")
            for s in streams
        )
        has_audio = any(s.get("codec_type") == "audio" for s in streams)

        return ProbeResult(duration=duration, has_video=has_video, has_audio=has_audio)

    def probe_duration(self, input_path: Path, cancel: threading.Event | None = None) -> float:
        return self.probe(input_path, cancel).duration

    def execute(
        self,
        input_path: Path,
        graph: FilterGraph | None,
        output_path: Path,
        cancel: threading.Event | None = None,
    ) -> Path:
        """Render *graph* over *input_path* into *output_path*.

        With no graph the input is passed through: streams are copied when
        the container is unchanged, otherwise ffmpeg transcodes with its
        defaults for the output container.
        """
        cmd = [
            self.settings.ffmpeg_path,
            "-y", "-nostdin", "-hide_banner", "-loglevel", "error",
            "-i", str(input_path),
        ]
        if graph is not None:
            cmd += ["-filter_complex", graph.filter_complex]
            cmd += graph.map_args()
            cmd += ["-shortest", "-avoid_negative_ts", "make_zero"]
        elif input_path.suffix.lower() == output_path.suffix.lower():
            cmd += ["-map", "0", "-c", "copy"]
        elif is_audio_only(output_path):
            cmd += ["-vn"]
        cmd.append(str(output_path))

        returncode, _, stderr = self._run(cmd, cancel)
        if returncode != 0:
            raise EngineExecutionError(
                f"ffmpeg failed writing {output_path} (rc={returncode})",
                cmd=cmd, returncode=returncode, stderr=stderr,
            )
        return output_path
