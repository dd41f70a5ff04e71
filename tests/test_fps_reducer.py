"""
Tests for frame rate reduction.
"""

import pytest

from gif_miner.config import FpsReduceConfig, ProgressStage
from gif_miner.errors import InvalidParameterError
from gif_miner.modules.fps_reducer import FrameRateReducer, reduce_frame_rate

from conftest import FakeCodec


class TestReduceFrameRate:
    """Test the pure reduction."""

    def test_reference_sequence(self):
        kept, delays = reduce_frame_rate([10, 10, 10, 200, 10, 10], 3, 50, 500)
        assert kept == [0, 3, 4]
        assert delays == [30, 200, 20]

    def test_slow_frame_clamped(self):
        kept, delays = reduce_frame_rate([800, 20], 2, 50, 500)
        assert kept == [0, 1]
        assert delays == [500, 20]

    def test_run_capped_by_interval(self):
        kept, delays = reduce_frame_rate([10] * 7, 3, 50, 500)
        assert kept == [0, 3, 6]
        assert delays == [30, 30, 10]

    def test_merged_delay_clamped(self):
        kept, delays = reduce_frame_rate([40, 40, 40], 3, 50, 100)
        assert kept == [0]
        assert delays == [100]

    def test_slow_frame_resets_run(self):
        kept, delays = reduce_frame_rate([10, 60, 10, 10], 4, 50, 500)
        assert kept == [0, 1, 2]
        assert delays == [10, 60, 20]

    def test_threshold_is_inclusive(self):
        kept, _ = reduce_frame_rate([50, 50], 2, 50, 500)
        assert kept == [0, 1]

    def test_output_shape(self):
        kept, delays = reduce_frame_rate([5, 70, 5, 5, 5, 90, 5], 2, 50, 500)
        assert len(kept) == len(delays)
        assert kept == sorted(set(kept))
        assert kept[0] == 0

    def test_interval_too_small(self):
        with pytest.raises(InvalidParameterError):
            reduce_frame_rate([10, 10], 1, 50, 500)

    def test_empty_delays(self):
        with pytest.raises(InvalidParameterError):
            reduce_frame_rate([], 2, 50, 500)


class TestFrameRateReducer:
    """Test codec-backed application."""

    def test_apply_selects_and_sets_delays(self, tmp_path, source_gif, sink):
        codec = FakeCodec.with_count(6)
        reducer = FrameRateReducer(codec, FpsReduceConfig(keep_interval=3), sink=sink)
        output = tmp_path / "out.gif"

        result = reducer.apply(source_gif, output, delays=[10, 10, 10, 200, 10, 10])

        select = codec.calls_to("select")[0]
        assert select["indices"] == [0, 3, 4]
        assert select["output"] == tmp_path / "out.gif.temp"

        set_delays = codec.calls_to("set_delays")[0]
        assert set_delays["delays_cs"] == [3, 20, 2]
        assert set_delays["output"] == output

        assert output.exists()
        assert not (tmp_path / "out.gif.temp").exists()
        assert result.dropped == 3
        assert sink.stages()[-1] == ProgressStage.COMPLETE

    def test_apply_reads_delays_from_metadata(self, tmp_path, source_gif):
        codec = FakeCodec.with_count(4)  # 0.1 s each
        reducer = FrameRateReducer(codec, FpsReduceConfig(keep_interval=2, delay_threshold=50))

        result = reducer.apply(source_gif, tmp_path / "out.gif")

        # 100 ms frames are all slow, nothing is dropped
        assert result.kept_indices == [0, 1, 2, 3]
        assert codec.calls_to("set_delays")[0]["delays_cs"] == [10, 10, 10, 10]

    def test_temp_removed_on_failure(self, tmp_path, source_gif):
        from gif_miner.errors import CodecError

        codec = FakeCodec.with_count(3)
        codec.fail_on["set_delays"] = CodecError("gifsicle set delays failed", diagnostic="bad input")
        reducer = FrameRateReducer(codec, FpsReduceConfig(keep_interval=2))

        with pytest.raises(CodecError, match="bad input"):
            reducer.apply(source_gif, tmp_path / "out.gif", delays=[10, 10, 10])

        assert not (tmp_path / "out.gif.temp").exists()
