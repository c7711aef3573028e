"""
Pipeline stages for the content build system.
"""

from .discovery import UnitDiscoverer
from .metadata import MetadataLoader
from .staging import StagingCopier
from .manifest import ManifestWriter
from .compression import CompressionPass, CodecCompressor, NoOpCompressor, create_compressor

__all__ = [
    'UnitDiscoverer',
    'MetadataLoader',
    'StagingCopier',
    'ManifestWriter',
    'CompressionPass',
    'CodecCompressor',
    'NoOpCompressor',
    'create_compressor',
]
