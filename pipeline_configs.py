"""
Pipeline Configurations
=======================

Configuration for the content build pipeline, with presets for the
common ways a site gets built and an environment overlay for CI.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Any, Optional, Mapping, Tuple
from pathlib import Path
import logging
import os

from build_errors import ConfigurationError
from compression_codecs import CompressionAlgorithm, CompressionProfile

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_SUBDIR = Path('.build') / 'dist'

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off', ''}


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got '{value}'")


@dataclass
class PipelineConfig:
    """Configuration settings for the content build pipeline"""

    # Layout; the source root defaults to the working directory rather than
    # the parent of the build script's directory
    source_root: Path = field(default_factory=Path.cwd)
    output_root: Optional[Path] = None
    metadata_filenames: Tuple[str, ...] = ('index.yaml', 'index.yml')
    reserved_prefix: str = '.'

    # Manifest settings
    url_prefix: str = '/blog'
    index_document: str = 'index.md'
    manifest_filename: str = 'index.json'
    include_timestamps: bool = False

    # Discovery behaviour
    sort_units: bool = True
    validate_all_units_first: bool = True

    # Compression settings
    compression: str = 'none'
    compression_level: Optional[int] = None
    strict_compression: bool = False
    min_compress_size: int = 0

    # Reporting
    show_progress: bool = False
    report_path: Optional[Path] = None

    def __post_init__(self) -> None:
        """Validate configuration parameters"""
        self.source_root = Path(os.path.abspath(Path(self.source_root).expanduser()))
        if self.output_root is None:
            self.output_root = self.source_root / DEFAULT_OUTPUT_SUBDIR
        self.output_root = Path(os.path.abspath(Path(self.output_root).expanduser()))
        if self.report_path is not None:
            self.report_path = Path(os.path.abspath(Path(self.report_path).expanduser()))

        self.metadata_filenames = tuple(self.metadata_filenames)
        if not self.metadata_filenames:
            raise ConfigurationError("metadata_filenames cannot be empty")
        for name in self.metadata_filenames:
            if not name or '/' in name or '\\' in name:
                raise ConfigurationError(f"Invalid metadata filename: '{name}'")
        if self.manifest_filename in self.metadata_filenames:
            raise ConfigurationError("manifest_filename cannot be a metadata filename")
        if not self.reserved_prefix:
            raise ConfigurationError("reserved_prefix cannot be empty")
        if not self.url_prefix.startswith('/'):
            raise ConfigurationError(f"url_prefix must start with '/': {self.url_prefix}")
        if self.min_compress_size < 0:
            raise ConfigurationError("min_compress_size cannot be negative")

        try:
            self.compression_profile()
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    def compression_profile(self) -> CompressionProfile:
        """Profile selected by the compression settings"""
        return CompressionProfile(
            algorithm=CompressionAlgorithm.from_name(self.compression),
            level=self.compression_level,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source_root': str(self.source_root),
            'output_root': str(self.output_root),
            'metadata_filenames': list(self.metadata_filenames),
            'url_prefix': self.url_prefix,
            'include_timestamps': self.include_timestamps,
            'sort_units': self.sort_units,
            'validate_all_units_first': self.validate_all_units_first,
            'compression': self.compression,
            'compression_level': self.compression_level,
        }

    @classmethod
    def from_env(cls,
                 environ: Optional[Mapping[str, str]] = None,
                 base: Optional['PipelineConfig'] = None) -> 'PipelineConfig':
        """Overlay CONTENT_* environment variables onto a base config"""
        environ = os.environ if environ is None else environ
        base = base or cls()
        overrides: Dict[str, Any] = {}

        if environ.get('CONTENT_ROOT'):
            overrides['source_root'] = Path(environ['CONTENT_ROOT'])
            # Re-derive the default output root under the new source root
            if base.output_root == base.source_root / DEFAULT_OUTPUT_SUBDIR:
                overrides['output_root'] = None
        if environ.get('CONTENT_OUTPUT'):
            overrides['output_root'] = Path(environ['CONTENT_OUTPUT'])
        if environ.get('CONTENT_COMPRESSION'):
            overrides['compression'] = environ['CONTENT_COMPRESSION']
        if environ.get('CONTENT_COMPRESSION_LEVEL'):
            try:
                overrides['compression_level'] = int(environ['CONTENT_COMPRESSION_LEVEL'])
            except ValueError:
                raise ConfigurationError(
                    f"CONTENT_COMPRESSION_LEVEL must be an integer, "
                    f"got '{environ['CONTENT_COMPRESSION_LEVEL']}'"
                )
        if environ.get('CONTENT_URL_PREFIX'):
            overrides['url_prefix'] = environ['CONTENT_URL_PREFIX']
        if 'CONTENT_TIMESTAMPS' in environ:
            overrides['include_timestamps'] = _parse_bool(
                'CONTENT_TIMESTAMPS', environ['CONTENT_TIMESTAMPS'])
        if 'CONTENT_SORT_UNITS' in environ:
            overrides['sort_units'] = _parse_bool(
                'CONTENT_SORT_UNITS', environ['CONTENT_SORT_UNITS'])

        if overrides:
            logger.debug(f"Environment overrides: {sorted(overrides)}")
        return replace(base, **overrides)


class ConfigPresets:
    """Pre-configured settings for common use cases"""

    @staticmethod
    def local_preview(source_root: Optional[Path] = None) -> PipelineConfig:
        """
        Fast local builds
        - No compression
        - No timestamps, so rebuilds are byte-identical
        """
        return PipelineConfig(
            source_root=source_root or Path.cwd(),
            compression='none',
            include_timestamps=False,
        )

    @staticmethod
    def production(source_root: Optional[Path] = None) -> PipelineConfig:
        """
        Full site build
        - Brotli at maximum quality next to every file
        - Creation/edit timestamps in every manifest
        """
        return PipelineConfig(
            source_root=source_root or Path.cwd(),
            compression='brotli',
            compression_level=11,
            include_timestamps=True,
        )

    @staticmethod
    def publish(source_root: Optional[Path] = None) -> PipelineConfig:
        """
        Build staged for upload
        - Brotli artifacts
        - Timestamp-free manifests
        """
        return PipelineConfig(
            source_root=source_root or Path.cwd(),
            compression='brotli',
            compression_level=11,
            include_timestamps=False,
        )
