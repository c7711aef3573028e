"""
Build Errors
============

Exception hierarchy for the content build pipeline. Every stage failure
is fatal: nothing here is retried, the driver records where the run
stopped and re-raises.
"""

from typing import Optional


class BuildError(Exception):
    """Base class for all fatal pipeline errors"""

    def __init__(self,
                 message: str,
                 unit: Optional[str] = None,
                 stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.unit = unit
        self.stage = stage

    def __str__(self) -> str:
        prefix = f"[{self.stage}] " if self.stage else ""
        if self.unit:
            return f"{prefix}{self.unit}: {self.message}"
        return f"{prefix}{self.message}"


class DiscoveryError(BuildError):
    """A content unit has no metadata document"""


class ParseError(BuildError):
    """A metadata document is malformed or violates the schema"""


class FilesystemError(BuildError):
    """Copy, delete or write failed"""


class CompressionError(BuildError):
    """Compressing an output file failed in strict mode"""


class ConfigurationError(BuildError, ValueError):
    """Invalid pipeline configuration or unsafe paths"""
