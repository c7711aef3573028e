"""
Content build pipeline modules.
"""

# Import pipeline stages
from .stages.discovery import UnitDiscoverer
from .stages.metadata import MetadataLoader
from .stages.staging import StagingCopier
from .stages.manifest import ManifestWriter
from .stages.compression import CompressionPass

__all__ = [
    'UnitDiscoverer',
    'MetadataLoader',
    'StagingCopier',
    'ManifestWriter',
    'CompressionPass',
]
