"""Unit tests for the ``python -m vidmark`` entry point."""

import asyncio
import os
import signal
import sys

import pytest

import vidmark.__main__ as cli
from vidmark.core.errors import AssetLoadError, DecodeError, ProcessingCancelled
from vidmark.pipeline import PipelineResult


@pytest.fixture
def inputs(tmp_path):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"video-bytes")
    logo = tmp_path / "logo.png"
    logo.write_bytes(b"logo-bytes")
    return video, logo


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


def install_pipeline(monkeypatch, *, result=None, error=None):
    calls = []

    async def fake_watermark_video(video, watermark, **kwargs):
        calls.append((video, watermark, kwargs))
        if error is not None:
            raise error
        return result

    monkeypatch.setattr(cli, "watermark_video", fake_watermark_video)
    return calls


class TestMain:

    def test_success_writes_output(self, monkeypatch, inputs, tmp_path, capsys):
        video, logo = inputs
        calls = install_pipeline(monkeypatch, result=PipelineResult(data=b"mp4", frame_count=3))
        output = tmp_path / "out" / "result.mp4"

        code = cli.main([str(video), str(logo), "-o", str(output)])

        assert code == 0
        assert output.read_bytes() == b"mp4"
        assert calls[0][0] == b"video-bytes"
        assert calls[0][1] == b"logo-bytes"
        assert cli.STATUS_COMPLETE in capsys.readouterr().out

    def test_default_output_path(self, monkeypatch, inputs):
        video, logo = inputs
        install_pipeline(monkeypatch, result=PipelineResult(data=b"mp4", frame_count=1))

        assert cli.main([str(video), str(logo)]) == 0
        assert (video.parent / "clip_watermarked.mp4").read_bytes() == b"mp4"

    def test_config_settings_reach_pipeline(self, monkeypatch, inputs, tmp_path):
        video, logo = inputs
        calls = install_pipeline(monkeypatch, result=PipelineResult(data=b"x", frame_count=1))
        config = tmp_path / "vidmark.conf"
        config.write_text("encode.crf = 30\nencode.fallback_fps = 12\n")

        cli.main([str(video), str(logo), "--config", str(config)])

        kwargs = calls[0][2]
        assert kwargs["settings"].crf == 30
        assert kwargs["fallback_fps"] == 12.0

    @pytest.mark.parametrize(
        "error,message",
        [
            (AssetLoadError("bad png"), "Watermark could not be loaded."),
            (DecodeError("bad mp4"), "Video could not be decoded."),
        ],
    )
    def test_failure_reports_stage(self, monkeypatch, inputs, capsys, error, message):
        video, logo = inputs
        install_pipeline(monkeypatch, error=error)

        code = cli.main([str(video), str(logo)])

        assert code == 1
        assert message in capsys.readouterr().err
        assert not (video.parent / "clip_watermarked.mp4").exists()

    def test_missing_input(self, monkeypatch, tmp_path, capsys):
        calls = install_pipeline(monkeypatch)

        code = cli.main([str(tmp_path / "missing.mp4"), str(tmp_path / "logo.png")])

        assert code == 1
        assert calls == []


class TestDefaultOutputPath:

    def test_matroska_uses_mkv(self, tmp_path):
        assert cli.default_output_path(tmp_path / "a.webm", "matroska").name == "a_watermarked.mkv"


def install_interrupting_pipeline(monkeypatch, *, finish: bool):
    """Pipeline fake that delivers SIGINT to this process mid-run."""

    async def fake_watermark_video(video, watermark, *, cancel_event, **kwargs):
        os.kill(os.getpid(), signal.SIGINT)
        await asyncio.wait_for(cancel_event.wait(), timeout=5)
        if finish:
            # Signal landed while the output was being finalized.
            return PipelineResult(data=b"mp4", frame_count=1)
        raise ProcessingCancelled("Cancelled after 0 frames")

    monkeypatch.setattr(cli, "watermark_video", fake_watermark_video)


@pytest.mark.skipif(sys.platform == "win32", reason="needs loop signal handlers")
class TestInterrupt:

    def test_sigint_during_run_exits_130(self, monkeypatch, inputs, capsys):
        video, logo = inputs
        install_interrupting_pipeline(monkeypatch, finish=False)

        code = cli.main([str(video), str(logo)])

        assert code == 130
        assert "Processing cancelled." in capsys.readouterr().err
        assert not (video.parent / "clip_watermarked.mp4").exists()

    def test_sigint_during_finalize_is_not_reported_as_success(self, monkeypatch, inputs, capsys):
        video, logo = inputs
        install_interrupting_pipeline(monkeypatch, finish=True)

        code = cli.main([str(video), str(logo)])

        assert code == 130
        assert cli.STATUS_COMPLETE not in capsys.readouterr().out
        assert not (video.parent / "clip_watermarked.mp4").exists()
