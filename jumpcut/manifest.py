"""JSON manifest schema — the contract between CLI/API and engine."""

import json
import math
import os
from dataclasses import dataclass, field
from pathlib import Path

from jumpcut.errors import InvalidArgumentError
from jumpcut.models import Mode

# Containers process_to_buffer can render into.
BUFFER_FORMATS = ("mp4", "mov", "avi", "mp3", "wav")
AUDIO_ONLY_FORMATS = frozenset({"mp3", "wav", "m4a", "aac", "flac", "ogg", "opus"})


@dataclass
class ProcessingConfig:
    """Configuration for silence detection and the edit applied to it."""

    silence_threshold_db: float = -30.0
    min_silence_duration: float = 0.5
    speed_factor: float = 2.0
    mode: Mode = Mode.REMOVE

    def __post_init__(self) -> None:
        if not isinstance(self.mode, Mode):
            try:
                self.mode = Mode(self.mode)
            except ValueError:
                raise InvalidArgumentError(
                    f'Mode must be either "remove" or "speed", got {self.mode!r}'
                ) from None
        for name in ("silence_threshold_db", "min_silence_duration", "speed_factor"):
            value = getattr(self, name)
            try:
                setattr(self, name, float(value))
            except (TypeError, ValueError):
                raise InvalidArgumentError(f"{name} must be a number, got {value!r}") from None

    def validate(self) -> None:
        for name in ("silence_threshold_db", "min_silence_duration", "speed_factor"):
            if not math.isfinite(getattr(self, name)):
                raise InvalidArgumentError(f"{name} must be finite")
        if self.min_silence_duration <= 0:
            raise InvalidArgumentError("min_silence_duration must be positive")
        if self.speed_factor <= 0:
            raise InvalidArgumentError("speed_factor must be positive")


@dataclass
class EngineSettings:
    """Locations of the ffmpeg and ffprobe executables."""

    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"

    @classmethod
    def from_env(cls) -> "EngineSettings":
        return cls(
            ffmpeg_path=os.environ.get("JUMPCUT_FFMPEG", "ffmpeg"),
            ffprobe_path=os.environ.get("JUMPCUT_FFPROBE", "ffprobe"),
        )


@dataclass
class Manifest:
    """Top-level editing manifest."""

    input: Path
    output: Path
    version: str = "1"
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)


def load_manifest(path: str | Path) -> Manifest:
    """Load and validate a manifest from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text())

    if "input" not in data or "output" not in data:
        raise ValueError("Manifest must contain 'input' and 'output' fields")

    try:
        processing = ProcessingConfig(**data.get("processing", {}))
    except TypeError as e:
        raise ValueError(f"Invalid 'processing' section: {e}") from None

    return Manifest(
        version=data.get("version", "1"),
        input=Path(data["input"]),
        output=Path(data["output"]),
        processing=processing,
    )
