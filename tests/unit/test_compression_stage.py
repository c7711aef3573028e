"""
Unit tests for the compression pass and codecs
==============================================

Tests for pipeline/stages/compression.py and compression_codecs.py including:
- Artifacts written next to originals, originals untouched
- No-op strategy
- Per-file failures keep originals; strict mode raises
- Codec profiles and level validation
"""

from unittest.mock import patch

import pytest

from base_classes import CompressionReport
from build_errors import CompressionError
from compression_codecs import (
    CompressionAlgorithm, CompressionProfile, compress_bytes, decompress_bytes,
    is_compressed_artifact
)
from pipeline.stages.compression import (
    CodecCompressor, CompressionPass, NoOpCompressor, create_compressor
)
from pipeline_configs import PipelineConfig


@pytest.fixture
def output_dir(tmp_path):
    root = tmp_path / "post-a"
    (root / "images").mkdir(parents=True)
    (root / "body.md").write_text("# Title\n" + "lorem ipsum " * 200)
    (root / "index.json").write_text('{"title":"T"}')
    (root / "images" / "diagram.svg").write_text("<svg>" + "<g/>" * 100 + "</svg>")
    return root


class TestCodecs:
    """Test codec dispatch"""

    @pytest.mark.parametrize("algorithm", [
        CompressionAlgorithm.BROTLI,
        CompressionAlgorithm.GZIP,
        CompressionAlgorithm.ZSTD,
        CompressionAlgorithm.LZ4,
    ])
    def test_codec_decompresses_back(self, algorithm):
        data = b"static content " * 500
        compressed, stats = compress_bytes(data, CompressionProfile(algorithm))

        assert decompress_bytes(compressed, algorithm) == data
        assert stats["original_size"] == len(data)
        assert stats["compressed_size"] < len(data)

    def test_gzip_output_is_deterministic(self):
        profile = CompressionProfile(CompressionAlgorithm.GZIP)

        first, _ = compress_bytes(b"same bytes", profile)
        second, _ = compress_bytes(b"same bytes", profile)

        assert first == second

    def test_default_levels(self):
        assert CompressionProfile(CompressionAlgorithm.BROTLI).level == 11
        assert CompressionProfile(CompressionAlgorithm.GZIP).level == 9
        assert CompressionProfile(CompressionAlgorithm.NONE).level is None

    def test_level_out_of_range(self):
        with pytest.raises(ValueError, match="between 0 and 11"):
            CompressionProfile(CompressionAlgorithm.BROTLI, level=12)

    def test_unknown_algorithm_name(self):
        with pytest.raises(ValueError, match="Unknown compression algorithm"):
            CompressionAlgorithm.from_name("rar")

    def test_algorithm_name_case_insensitive(self):
        assert CompressionAlgorithm.from_name(" Brotli ") == CompressionAlgorithm.BROTLI

    def test_artifact_suffixes(self):
        assert is_compressed_artifact("index.json.br")
        assert is_compressed_artifact("bundle.js.gz")
        assert not is_compressed_artifact("index.json")


class TestCodecCompressor:
    """Test CodecCompressor functionality"""

    def test_writes_artifacts_next_to_originals(self, output_dir):
        original = (output_dir / "body.md").read_bytes()
        compressor = CodecCompressor(CompressionProfile(CompressionAlgorithm.BROTLI))

        report = compressor.compress_directory(output_dir)

        assert report.files_compressed == 3
        assert (output_dir / "body.md.br").exists()
        assert (output_dir / "images" / "diagram.svg.br").exists()
        assert (output_dir / "body.md").read_bytes() == original
        assert decompress_bytes((output_dir / "body.md.br").read_bytes(),
                                CompressionAlgorithm.BROTLI) == original

    def test_second_pass_skips_artifacts(self, output_dir):
        compressor = CodecCompressor(CompressionProfile(CompressionAlgorithm.GZIP))
        compressor.compress_directory(output_dir)

        report = compressor.compress_directory(output_dir)

        assert report.files_skipped == 3
        assert not (output_dir / "body.md.gz.gz").exists()

    def test_min_size_skips_small_files(self, output_dir):
        compressor = CodecCompressor(CompressionProfile(CompressionAlgorithm.ZSTD), min_size=100)

        report = compressor.compress_directory(output_dir)

        assert not (output_dir / "index.json.zst").exists()
        assert (output_dir / "body.md.zst").exists()
        assert report.files_skipped == 1

    def test_failure_keeps_original(self, output_dir):
        compressor = CodecCompressor(CompressionProfile(CompressionAlgorithm.BROTLI))
        report = CompressionReport()

        with patch("pipeline.stages.compression.compress_bytes", side_effect=RuntimeError("codec")):
            result = compressor.compress_file(output_dir / "body.md", report)

        assert result is None
        assert report.files_failed == 1
        assert (output_dir / "body.md").exists()
        assert not (output_dir / "body.md.br").exists()
        assert not (output_dir / ".body.md.br.tmp").exists()

    def test_strict_mode_raises(self, output_dir):
        compressor = CodecCompressor(CompressionProfile(CompressionAlgorithm.BROTLI), strict=True)

        with patch("pipeline.stages.compression.compress_bytes", side_effect=RuntimeError("codec")):
            with pytest.raises(CompressionError):
                compressor.compress_file(output_dir / "body.md", CompressionReport())

        assert (output_dir / "body.md").exists()

    def test_rejects_none_profile(self):
        with pytest.raises(ValueError):
            CodecCompressor(CompressionProfile(CompressionAlgorithm.NONE))


class TestCompressionPass:
    """Test the pass hook and strategy selection"""

    def test_noop_writes_nothing(self, output_dir):
        before = sorted(p.name for p in output_dir.rglob("*"))

        compression = CompressionPass(NoOpCompressor())
        report = compression.run_directory(output_dir)

        assert sorted(p.name for p in output_dir.rglob("*")) == before
        assert report.files_compressed == 0
        assert not compression.enabled

    def test_defaults_to_noop(self):
        assert isinstance(CompressionPass().compressor, NoOpCompressor)

    def test_run_file(self, output_dir):
        compression = CompressionPass(CodecCompressor(CompressionProfile(CompressionAlgorithm.LZ4)))

        report = compression.run_file(output_dir / "index.json")

        assert report.files_compressed == 1
        assert (output_dir / "index.json.lz4").exists()
        assert compression.enabled

    def test_create_compressor_from_config(self, tmp_path):
        disabled = create_compressor(PipelineConfig(source_root=tmp_path))
        enabled = create_compressor(PipelineConfig(source_root=tmp_path, compression="gzip",
                                                   compression_level=5, strict_compression=True))

        assert isinstance(disabled, NoOpCompressor)
        assert isinstance(enabled, CodecCompressor)
        assert enabled.profile.level == 5
        assert enabled.strict is True

    def test_reports_merge(self):
        first = CompressionReport(files_seen=2, files_compressed=1, bytes_in=10, bytes_out=4)
        second = CompressionReport(files_seen=1, files_failed=1)

        merged = first.merge(second)

        assert merged.files_seen == 3
        assert merged.files_compressed == 1
        assert merged.files_failed == 1
        assert merged.bytes_in == 10
