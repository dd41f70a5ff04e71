"""
Tests for artifact naming helpers and validators.
"""

from pathlib import Path

from gif_miner.config import DedupConfig, ExtractionConfig
from gif_miner.utils import (
    batch_all_exist,
    canonicalize_artifacts,
    extraction_dir,
    is_nonempty_file,
    list_artifacts,
    safe_base_name,
    temp_artifact_path,
    validate_dedup_options,
    validate_extraction_config,
    validate_frame_delays,
    validate_frame_range,
    validate_reduce_params,
)


class TestSafeBaseName:
    def test_alphanumeric_kept(self):
        assert safe_base_name(Path("/tmp/Cat01.gif")) == "Cat01"

    def test_other_characters_encoded(self):
        assert safe_base_name(Path("my cat-1.gif")) == "my_32cat_451"

    def test_non_ascii(self):
        assert safe_base_name(Path("猫.gif")) == f"_{ord('猫')}"

    def test_extraction_dir(self, tmp_path):
        assert extraction_dir(tmp_path, Path("a b.gif"), "previews") == tmp_path / "_a_32b_previews"

    def test_temp_artifact_path(self, tmp_path):
        path = temp_artifact_path(tmp_path, Path("a b.gif"), "unoptimized")
        assert path == tmp_path / "_a_32b_temp_unoptimized.gif"

    def test_is_nonempty_file(self, tmp_path):
        path = tmp_path / "x.gif"
        assert not is_nonempty_file(path)
        path.touch()
        assert not is_nonempty_file(path)
        path.write_bytes(b"GIF")
        assert is_nonempty_file(path)


class TestArtifacts:
    """Test canonical artifact naming."""

    def test_renames_padded(self, tmp_path):
        (tmp_path / "frame.0042").write_bytes(b"a")
        (tmp_path / "frame.043").write_bytes(b"b")

        missing = canonicalize_artifacts(tmp_path, "frame", 42, 43)

        assert missing == []
        assert (tmp_path / "frame.42").read_bytes() == b"a"
        assert (tmp_path / "frame.43").read_bytes() == b"b"
        assert not (tmp_path / "frame.0042").exists()

    def test_reports_missing(self, tmp_path):
        (tmp_path / "frame.000").write_bytes(b"a")
        assert canonicalize_artifacts(tmp_path, "frame", 0, 2) == [1, 2]
        assert (tmp_path / "frame.0").exists()

    def test_ignores_other_prefix_and_range(self, tmp_path):
        (tmp_path / "preview.000").write_bytes(b"a")
        (tmp_path / "frame.005").write_bytes(b"b")
        canonicalize_artifacts(tmp_path, "frame", 0, 1)
        assert (tmp_path / "preview.000").exists()
        assert (tmp_path / "frame.005").exists()

    def test_existing_canonical_untouched(self, tmp_path):
        (tmp_path / "frame.7").write_bytes(b"new")
        (tmp_path / "frame.007").write_bytes(b"old")
        canonicalize_artifacts(tmp_path, "frame", 7, 7)
        assert (tmp_path / "frame.7").read_bytes() == b"new"

    def test_batch_all_exist(self, tmp_path):
        for i in range(3):
            (tmp_path / f"preview.{i}").write_bytes(b"x")
        assert batch_all_exist(tmp_path, "preview", 0, 2)
        assert not batch_all_exist(tmp_path, "preview", 0, 3)
        assert not batch_all_exist(tmp_path, "frame", 0, 0)

    def test_list_artifacts_numeric_order(self, tmp_path):
        for name in ["frame.10", "frame.002", "frame.1", "frame.png", "other.3"]:
            (tmp_path / name).write_bytes(b"x")
        assert [p.name for p in list_artifacts(tmp_path, "frame")] == ["frame.1", "frame.002", "frame.10"]


class TestValidators:
    """Test (is_valid, error) validators."""

    def test_dedup_defaults_valid(self):
        assert validate_dedup_options(DedupConfig()) == (True, None)

    def test_dedup_quality(self):
        is_valid, error = validate_dedup_options(DedupConfig(quality=0))
        assert not is_valid
        assert "Quality" in error

    def test_dedup_colors(self):
        is_valid, error = validate_dedup_options(DedupConfig(target_colors=1))
        assert not is_valid
        assert "colors" in error

    def test_reduce(self):
        assert validate_reduce_params(2, [10]) == (True, None)
        assert not validate_reduce_params(1, [10])[0]
        assert not validate_reduce_params(2, [])[0]
        assert not validate_reduce_params(2, [10, -1])[0]

    def test_extraction(self):
        assert validate_extraction_config(ExtractionConfig()) == (True, None)
        assert not validate_extraction_config(ExtractionConfig(batch_size=0))[0]
        assert not validate_extraction_config(ExtractionConfig(poll_interval=0))[0]

    def test_frame_range(self):
        assert validate_frame_range(0, 0, 1) == (True, None)
        assert validate_frame_range(3, 9) == (True, None)
        assert "after end index" in validate_frame_range(5, 2, 10)[1]
        assert not validate_frame_range(-1, 2, 10)[0]
        assert not validate_frame_range(0, 10, 10)[0]

    def test_frame_delays(self):
        assert validate_frame_delays([10, 20], 2) == (True, None)
        assert not validate_frame_delays([10], 2)[0]
        assert not validate_frame_delays([10, -5], 2)[0]
