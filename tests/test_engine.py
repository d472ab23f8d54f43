"""Tests for the engine module."""

from pathlib import Path
from unittest.mock import call, patch

import pytest

from jumpcut.engine import EngineResult, process, process_to_buffer
from jumpcut.errors import DetectionError, EngineExecutionError, InvalidArgumentError, ProbeError
from jumpcut.manifest import ProcessingConfig
from jumpcut.models import EventKind, Mode, ProbeResult, Segment, SilenceEvent


def _events(*pairs):
    out = []
    for s, e in pairs:
        out.append(SilenceEvent(EventKind.START, s))
        out.append(SilenceEvent(EventKind.END, e))
    return out


class TestEngineResult:
    def test_defaults(self):
        r = EngineResult(output_path=Path("out.mp4"))
        assert r.mode == Mode.REMOVE
        assert r.silences_found == 0
        assert r.segments == []
        assert r.duration_original == 0.0
        assert r.duration_final == 0.0
        assert r.passthrough is False


class TestProcessValidation:
    def test_missing_output(self, input_video, fake_adapter):
        with pytest.raises(InvalidArgumentError, match="required"):
            process(input_video, None, adapter=fake_adapter)

    def test_missing_input(self, tmp_path, fake_adapter):
        with pytest.raises(InvalidArgumentError, match="required"):
            process("", tmp_path / "out.mp4", adapter=fake_adapter)

    def test_input_not_found(self, tmp_path, fake_adapter):
        with pytest.raises(InvalidArgumentError, match="not found"):
            process(tmp_path / "nope.mp4", tmp_path / "out.mp4", adapter=fake_adapter)
        fake_adapter.detect_silence.assert_not_called()

    def test_bad_mode(self):
        with pytest.raises(InvalidArgumentError, match="remove"):
            ProcessingConfig(mode="louder")

    def test_bad_speed(self, input_video, tmp_path, fake_adapter):
        config = ProcessingConfig(speed_factor=0.0, mode="speed")
        with pytest.raises(InvalidArgumentError, match="speed_factor"):
            process(input_video, tmp_path / "out.mp4", config, adapter=fake_adapter)


class TestProcess:
    def test_remove_mode_pipeline(self, input_video, tmp_path, fake_adapter):
        fake_adapter.detect_silence.return_value = _events((1.0, 2.0), (4.0, 5.0))
        output = tmp_path / "out.mp4"

        result = process(input_video, output, adapter=fake_adapter)

        fake_adapter.detect_silence.assert_called_once_with(
            input_video, threshold_db=-30.0, min_duration=0.5, cancel=None
        )
        fake_adapter.probe.assert_called_once_with(input_video, cancel=None)
        _, graph, out_path = fake_adapter.execute.call_args[0]
        assert out_path == output
        assert "[v0][v1][v2]concat=n=3:v=1:a=0[outv]" in graph.filter_complex

        assert result.segments == [Segment(0, 1), Segment(2, 4), Segment(5, 10)]
        assert result.silences_found == 2
        assert result.duration_original == 10.0
        assert result.duration_final == pytest.approx(8.0)
        assert not result.passthrough
        assert output.read_bytes() == b"RENDERED"

    def test_speed_mode(self, input_video, tmp_path, fake_adapter):
        fake_adapter.detect_silence.return_value = _events((1.0, 2.0))
        fake_adapter.probe.return_value = ProbeResult(5.0, has_video=True, has_audio=True)
        config = ProcessingConfig(mode=Mode.SPEED, speed_factor=2.0)

        result = process(input_video, tmp_path / "out.mp4", config, adapter=fake_adapter)

        assert result.mode == Mode.SPEED
        assert result.duration_final == pytest.approx(4.5)
        graph = fake_adapter.execute.call_args[0][1]
        assert "atempo=2" in graph.filter_complex

    def test_no_silence_passes_through(self, input_video, tmp_path, fake_adapter):
        result = process(input_video, tmp_path / "out.mp4", adapter=fake_adapter)

        assert fake_adapter.execute.call_args[0][1] is None
        assert result.passthrough
        assert result.duration_final == 10.0

    def test_all_silence_passes_through(self, input_video, tmp_path, fake_adapter):
        fake_adapter.detect_silence.return_value = _events((0.0, 10.0))
        result = process(input_video, tmp_path / "out.mp4", adapter=fake_adapter)
        assert fake_adapter.execute.call_args[0][1] is None
        assert result.passthrough

    def test_audio_output_drops_video_chains(self, input_video, tmp_path, fake_adapter):
        fake_adapter.detect_silence.return_value = _events((1.0, 2.0))
        process(input_video, tmp_path / "out.mp3", adapter=fake_adapter)
        graph = fake_adapter.execute.call_args[0][1]
        assert not graph.has_video

    def test_audio_input_drops_video_chains(self, input_video, tmp_path, fake_adapter):
        fake_adapter.detect_silence.return_value = _events((1.0, 2.0))
        fake_adapter.probe.return_value = ProbeResult(10.0, has_video=False, has_audio=True)
        process(input_video, tmp_path / "out.mp4", adapter=fake_adapter)
        graph = fake_adapter.execute.call_args[0][1]
        assert graph.map_args() == ["-map", "[outa]"]

    def test_progress_reported(self, input_video, tmp_path, fake_adapter):
        stages = []
        process(
            input_video, tmp_path / "out.mp4", adapter=fake_adapter,
            on_progress=lambda stage, frac: stages.append((stage, frac)),
        )
        assert stages[0] == ("Scanning audio for silence", 0.0)
        assert stages[-1] == ("Done", 1.0)

    def test_detection_error_propagates(self, input_video, tmp_path, fake_adapter):
        fake_adapter.detect_silence.side_effect = DetectionError("silencedetect failed")
        with pytest.raises(DetectionError):
            process(input_video, tmp_path / "out.mp4", adapter=fake_adapter)
        fake_adapter.probe.assert_not_called()
        fake_adapter.execute.assert_not_called()

    def test_probe_error_propagates(self, input_video, tmp_path, fake_adapter):
        fake_adapter.probe.side_effect = ProbeError("ffprobe failed")
        with pytest.raises(ProbeError):
            process(input_video, tmp_path / "out.mp4", adapter=fake_adapter)
        fake_adapter.execute.assert_not_called()

    @patch("jumpcut.engine.FFmpegAdapter")
    def test_default_adapter_checks_binaries(self, mock_cls, input_video, tmp_path, fake_adapter):
        mock_cls.return_value = fake_adapter
        process(input_video, tmp_path / "out.mp4")
        assert fake_adapter.method_calls[0] == call.check_available()


class TestProcessToBuffer:
    def test_returns_bytes_and_cleans_up(self, input_video, fake_adapter):
        fake_adapter.detect_silence.return_value = _events((1.0, 2.0))

        data = process_to_buffer(input_video, output_format="mov", adapter=fake_adapter)

        assert data == b"RENDERED"
        tmp_out = fake_adapter.execute.call_args[0][2]
        assert tmp_out.suffix == ".mov"
        assert not tmp_out.exists()

    def test_cleans_up_on_failure(self, input_video, fake_adapter):
        seen = []

        def failing_execute(input_path, graph, output_path, cancel=None):
            seen.append(output_path)
            output_path.write_bytes(b"partial")
            raise EngineExecutionError("ffmpeg failed")

        fake_adapter.execute.side_effect = failing_execute

        with pytest.raises(EngineExecutionError):
            process_to_buffer(input_video, adapter=fake_adapter)
        assert seen and not seen[0].exists()

    def test_unique_temp_files(self, input_video, fake_adapter):
        process_to_buffer(input_video, adapter=fake_adapter)
        process_to_buffer(input_video, adapter=fake_adapter)
        first, second = (c.args[2] for c in fake_adapter.execute.call_args_list)
        assert first != second

    def test_bad_format(self, input_video, fake_adapter):
        with pytest.raises(InvalidArgumentError, match="Unsupported output format"):
            process_to_buffer(input_video, output_format="mkv", adapter=fake_adapter)
        fake_adapter.detect_silence.assert_not_called()
