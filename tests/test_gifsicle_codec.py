"""
Tests for the gifsicle/gifski codec command construction.

subprocess.run is replaced; no external tool is executed.
"""

import subprocess
from pathlib import Path

import pytest

from gif_miner.codec import GifsicleCodec, frame_range_selector
from gif_miner.config import CodecConfig, ResizeMethod
from gif_miner.errors import CodecError, InvalidParameterError


class FakeRun:
    def __init__(self, returncode=0, stdout="", stderr=""):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.commands = []

    def __call__(self, cmd, **kwargs):
        self.commands.append(cmd)
        return subprocess.CompletedProcess(cmd, self.returncode, self.stdout, self.stderr)


@pytest.fixture
def fake_run(monkeypatch):
    runner = FakeRun()
    monkeypatch.setattr(subprocess, "run", runner)
    return runner


@pytest.fixture
def codec():
    return GifsicleCodec(CodecConfig(gifsicle_path="gifsicle", gifski_path="gifski"))


class TestFrameRangeSelector:
    def test_range(self):
        assert frame_range_selector(0, 99) == "#0-99"

    def test_single(self):
        assert frame_range_selector(7, 7) == "#7"


class TestCommands:
    """Test argument lists passed to the tools."""

    def test_explode_batch(self, codec, fake_run):
        codec.explode(Path("in.gif"), Path("out/frame"), index_range=(100, 199))
        assert fake_run.commands[-1] == ["gifsicle", "--explode", "in.gif", "#100-199", "-o", "out/frame"]

    def test_explode_previews(self, codec, fake_run):
        codec.explode(Path("in.gif"), Path("out/preview"), index_range=(0, 0), resize=(120, 120))
        assert fake_run.commands[-1] == [
            "gifsicle", "--explode", "--resize", "120x120", "--resize-method", "mix",
            "in.gif", "#0", "-o", "out/preview",
        ]

    def test_explode_unoptimized(self, codec, fake_run):
        codec.explode(Path("in.gif"), Path("frames/frame"), unoptimize=True)
        assert fake_run.commands[-1] == ["gifsicle", "--explode", "--unoptimize", "in.gif", "-o", "frames/frame"]

    def test_select(self, codec, fake_run):
        codec.select(Path("in.gif"), [0, 3, 4], Path("out.gif.temp"))
        assert fake_run.commands[-1] == ["gifsicle", "in.gif", "--no-warnings", "#0", "#3", "#4", "-o", "out.gif.temp"]

    def test_set_delays(self, codec, fake_run):
        codec.set_delays(Path("a.gif"), [3, 20], Path("b.gif"))
        assert fake_run.commands[-1] == [
            "gifsicle", "a.gif", "--no-warnings", "--delay", "3", "#0", "--delay", "20", "#1", "-o", "b.gif",
        ]

    def test_remux_caps_colors(self, codec, fake_run):
        codec.remux([(Path("f.0"), 20), (Path("f.2"), 60)], Path("out.gif"), colors=512)
        assert fake_run.commands[-1] == [
            "gifsicle", "--no-warnings", "f.0", "--delay", "20", "f.2", "--delay", "60",
            "--colors", "256", "--optimize=3", "-o", "out.gif",
        ]

    def test_encode(self, codec, fake_run):
        codec.encode([Path("u/0.png"), Path("u/1.png")], Path("e.gif"), quality=90, fps=2.727, width=100, height=80)
        assert fake_run.commands[-1] == [
            "gifski", "-o", "e.gif", "-Q", "90", "-r", "2.73", "-W", "100", "-H", "80", "u/0.png", "u/1.png",
        ]

    def test_resize(self, codec, fake_run):
        codec.resize(Path("a.gif"), Path("b.gif"), 64, 48, method=ResizeMethod.LANCZOS3, optimize=False)
        assert fake_run.commands[-1] == [
            "gifsicle", "--no-warnings", "--resize", "64x48", "--resize-method", "lanczos3",
            "--resize-colors", "256", "--dither", "a.gif", "-o", "b.gif",
        ]

    def test_resize_rejects_bad_dimensions(self, codec, fake_run):
        with pytest.raises(InvalidParameterError):
            codec.resize(Path("a.gif"), Path("b.gif"), 0, 48)
        assert fake_run.commands == []

    def test_metadata_parses_stdout(self, codec, fake_run):
        fake_run.stdout = "* in.gif 2 images\n  logical screen 4x4\n  + image #0 4x4\n    delay 0.1s\n"
        meta = codec.metadata(Path("in.gif"))
        assert fake_run.commands[-1] == ["gifsicle", "--info", "in.gif"]
        assert meta.frame_count == 2
        assert meta.delays == [0.1]

    def test_copy_frames_range(self, codec, fake_run):
        codec.copy_frames(Path("in.gif"), Path("slice.gif"), index_range=(3, 8))
        assert fake_run.commands[-1] == ["gifsicle", "in.gif", "#3-8", "-o", "slice.gif"]

    def test_copy_frames_unoptimized(self, codec, fake_run):
        codec.copy_frames(Path("restored.gif"), Path("unopt.gif"), unoptimize=True)
        assert fake_run.commands[-1] == ["gifsicle", "--unoptimize", "restored.gif", "-o", "unopt.gif"]

    def test_delete_frames(self, codec, fake_run):
        codec.delete_frames(Path("in.gif"), (4, 4), Path("cut.gif"))
        assert fake_run.commands[-1] == ["gifsicle", "in.gif", "--no-warnings", "--delete", "#4", "-o", "cut.gif"]

    def test_optimize_in_place(self, codec, fake_run):
        codec.optimize(Path("out.gif"))
        assert fake_run.commands[-1] == ["gifsicle", "-b", "-O3", "out.gif"]


class TestFailures:
    """Test diagnostics on failure."""

    def test_nonzero_exit(self, codec, fake_run):
        fake_run.returncode = 1
        fake_run.stderr = "gifsicle: in.gif: not a GIF"
        with pytest.raises(CodecError, match="not a GIF") as exc_info:
            codec.select(Path("in.gif"), [0], Path("out.gif"))
        assert exc_info.value.command[0] == "gifsicle"
        assert exc_info.value.diagnostic == "gifsicle: in.gif: not a GIF"

    def test_missing_tool(self, codec, monkeypatch):
        def raise_missing(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        monkeypatch.setattr(subprocess, "run", raise_missing)
        with pytest.raises(CodecError, match="not found"):
            codec.version()

    def test_timeout(self, codec, monkeypatch):
        def raise_timeout(cmd, **kwargs):
            raise subprocess.TimeoutExpired(cmd, 600)

        monkeypatch.setattr(subprocess, "run", raise_timeout)
        with pytest.raises(CodecError, match="timed out"):
            codec.metadata(Path("in.gif"))

    def test_quantize_without_output(self, codec, fake_run, tmp_path):
        with pytest.raises(CodecError, match="no output"):
            codec.quantize(Path("in.gif"), 256, tmp_path / "optimized.gif")
