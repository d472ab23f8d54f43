"""Shared test fixtures."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from jumpcut.ffutil import FFmpegAdapter
from jumpcut.models import ProbeResult

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_manifest_path() -> Path:
    return FIXTURES_DIR / "sample_manifest.json"


@pytest.fixture
def input_video(tmp_path: Path) -> Path:
    path = tmp_path / "input.mp4"
    path.write_bytes(b"fake video data")
    return path


@pytest.fixture
def fake_adapter() -> MagicMock:
    """An FFmpegAdapter stand-in: no silence, 10s of video, execute writes bytes."""
    adapter = MagicMock(spec=FFmpegAdapter)
    adapter.detect_silence.return_value = []
    adapter.probe.return_value = ProbeResult(duration=10.0, has_video=True, has_audio=True)

    def execute(input_path, graph, output_path, cancel=None):
        Path(output_path).write_bytes(b"RENDERED")
        return Path(output_path)

    adapter.execute.side_effect = execute
    return adapter
