"""
Compression Codecs
==================

Algorithm registry for the post-build compression pass. Each algorithm
maps to a library codec, a default level and the suffix of the artifact
written next to the original file.
"""

import gzip
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, Optional, Tuple

import brotli
import lz4.frame
import zstandard as zstd

logger = logging.getLogger(__name__)


class CompressionAlgorithm(Enum):
    """Available compression algorithms"""
    NONE = "none"
    BROTLI = "brotli"
    GZIP = "gzip"
    ZSTD = "zstd"
    LZ4 = "lz4"

    @classmethod
    def from_name(cls, name: str) -> 'CompressionAlgorithm':
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ', '.join(a.value for a in cls)
            raise ValueError(f"Unknown compression algorithm '{name}' (expected one of: {valid})")


# Artifact suffix per algorithm
ARTIFACT_SUFFIXES: Dict[CompressionAlgorithm, str] = {
    CompressionAlgorithm.BROTLI: '.br',
    CompressionAlgorithm.GZIP: '.gz',
    CompressionAlgorithm.ZSTD: '.zst',
    CompressionAlgorithm.LZ4: '.lz4',
}

# (min, max, default) levels
LEVEL_RANGES: Dict[CompressionAlgorithm, Tuple[int, int, int]] = {
    CompressionAlgorithm.BROTLI: (0, 11, 11),
    CompressionAlgorithm.GZIP: (1, 9, 9),
    CompressionAlgorithm.ZSTD: (1, 22, 19),
    CompressionAlgorithm.LZ4: (0, 16, 12),
}


@dataclass
class CompressionProfile:
    """Compression settings for one pass"""
    algorithm: CompressionAlgorithm
    level: Optional[int] = None

    def __post_init__(self):
        if self.algorithm == CompressionAlgorithm.NONE:
            self.level = None
            return
        low, high, default = LEVEL_RANGES[self.algorithm]
        if self.level is None:
            self.level = default
        elif not low <= self.level <= high:
            raise ValueError(
                f"{self.algorithm.value} level must be between {low} and {high}, got {self.level}"
            )

    @property
    def suffix(self) -> str:
        return ARTIFACT_SUFFIXES.get(self.algorithm, '')


def is_compressed_artifact(filename: str) -> bool:
    """True if the file name carries any known artifact suffix"""
    return any(filename.endswith(suffix) for suffix in ARTIFACT_SUFFIXES.values())


def compress_bytes(data: bytes, profile: CompressionProfile) -> Tuple[bytes, Dict[str, Any]]:
    """Compress data using the selected profile"""
    start_time = time.time()
    stats = {
        "algorithm": profile.algorithm.value,
        "level": profile.level,
        "original_size": len(data),
        "compressed_size": 0,
        "compression_ratio": 0.0,
        "compression_time": 0.0
    }

    if profile.algorithm == CompressionAlgorithm.NONE:
        compressed = data
    elif profile.algorithm == CompressionAlgorithm.BROTLI:
        compressed = brotli.compress(data, quality=profile.level)
    elif profile.algorithm == CompressionAlgorithm.GZIP:
        # mtime pinned so repeated builds are byte-identical
        compressed = gzip.compress(data, compresslevel=profile.level, mtime=0)
    elif profile.algorithm == CompressionAlgorithm.ZSTD:
        cctx = zstd.ZstdCompressor(level=profile.level)
        compressed = cctx.compress(data)
    elif profile.algorithm == CompressionAlgorithm.LZ4:
        compressed = lz4.frame.compress(data, compression_level=profile.level)
    else:
        raise ValueError(f"Unsupported algorithm: {profile.algorithm}")

    stats["compressed_size"] = len(compressed)
    stats["compression_ratio"] = len(compressed) / len(data) if len(data) > 0 else 1.0
    stats["compression_time"] = time.time() - start_time

    return compressed, stats


def decompress_bytes(data: bytes, algorithm: CompressionAlgorithm) -> bytes:
    """Decompress data"""
    if algorithm == CompressionAlgorithm.NONE:
        return data
    if algorithm == CompressionAlgorithm.BROTLI:
        return brotli.decompress(data)
    if algorithm == CompressionAlgorithm.GZIP:
        return gzip.decompress(data)
    if algorithm == CompressionAlgorithm.ZSTD:
        return zstd.ZstdDecompressor().decompress(data)
    if algorithm == CompressionAlgorithm.LZ4:
        return lz4.frame.decompress(data)
    raise ValueError(f"Unsupported algorithm: {algorithm}")
