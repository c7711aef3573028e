"""
Compression Pass
================

Best-effort post-write pass over the output tree. Compressed artifacts are
written next to the originals (body.md -> body.md.br), so skipping the pass
or losing an artifact never affects the canonical output.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from base_classes import Compressor, CompressionReport
from build_errors import CompressionError
from compression_codecs import (
    CompressionAlgorithm, CompressionProfile, compress_bytes, is_compressed_artifact
)

logger = logging.getLogger(__name__)


class NoOpCompressor(Compressor):
    """Compression switched off: visits nothing, writes nothing"""

    def compress_file(self, path: Path, report: CompressionReport) -> Optional[Path]:
        return None

    def compress_directory(self, path: Path) -> CompressionReport:
        logger.debug(f"Compression disabled, skipping {path}")
        return CompressionReport()


class CodecCompressor(Compressor):
    """Writes <file><suffix> for every file using one codec profile"""

    def __init__(self,
                 profile: CompressionProfile,
                 min_size: int = 0,
                 strict: bool = False):
        if profile.algorithm == CompressionAlgorithm.NONE:
            raise ValueError("Use NoOpCompressor when compression is disabled")
        self.profile = profile
        self.min_size = min_size
        self.strict = strict

    def artifact_path(self, path: Path) -> Path:
        return path.with_name(path.name + self.profile.suffix)

    def compress_file(self, path: Path, report: CompressionReport) -> Optional[Path]:
        path = Path(path)
        report.files_seen += 1

        if is_compressed_artifact(path.name) or path.is_symlink():
            report.files_skipped += 1
            return None

        artifact = self.artifact_path(path)
        tmp_path = artifact.with_name(f".{artifact.name}.tmp")
        try:
            data = path.read_bytes()
            if len(data) < self.min_size:
                report.files_skipped += 1
                return None

            compressed, stats = compress_bytes(data, self.profile)
            tmp_path.write_bytes(compressed)
            os.replace(tmp_path, artifact)
        except Exception as e:
            tmp_path.unlink(missing_ok=True)
            report.files_failed += 1
            logger.warning(f"Compression failed for {path}, keeping original: {e}")
            if self.strict:
                raise CompressionError(f"Compressing {path} failed: {e}") from e
            return None

        report.files_compressed += 1
        report.bytes_in += stats['original_size']
        report.bytes_out += stats['compressed_size']
        report.artifacts.append(artifact)
        logger.debug(f"{self.profile.algorithm.value} {path.name}: "
                     f"{stats['original_size']} -> {stats['compressed_size']} bytes")
        return artifact

    def compress_directory(self, path: Path) -> CompressionReport:
        report = CompressionReport()
        for dirpath, dirnames, filenames in os.walk(path):
            dirnames.sort()
            for filename in sorted(filenames):
                self.compress_file(Path(dirpath) / filename, report)
        return report


class CompressionPass:
    """Hook the driver calls after each write; the strategy is injectable"""

    def __init__(self, compressor: Optional[Compressor] = None):
        self.compressor = compressor or NoOpCompressor()

    @property
    def enabled(self) -> bool:
        return not isinstance(self.compressor, NoOpCompressor)

    def run_directory(self, path: Path) -> CompressionReport:
        report = self.compressor.compress_directory(Path(path))
        if report.files_compressed or report.files_failed:
            logger.info(f"Compressed {report.files_compressed} files under {path} "
                        f"({report.files_failed} failed)")
        return report

    def run_file(self, path: Path) -> CompressionReport:
        report = CompressionReport()
        self.compressor.compress_file(Path(path), report)
        return report


def create_compressor(config) -> Compressor:
    """Build the compression strategy selected by a PipelineConfig"""
    profile = config.compression_profile()
    if profile.algorithm == CompressionAlgorithm.NONE:
        return NoOpCompressor()
    return CodecCompressor(
        profile,
        min_size=config.min_compress_size,
        strict=config.strict_compression,
    )
