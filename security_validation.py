"""
Security and Path Validation Module
===================================

Guards the destructive parts of a build. The output root is wiped on
every run, so it must never be the source tree, one of its ancestors,
or a directory that discovery would pick up as a content unit.
"""

import unicodedata
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, List, Union
import logging

from build_errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class SecurityConfig:
    """Security configuration settings"""
    forbidden_output_roots: List[Path] = None
    max_path_depth: int = 64
    reject_symlinked_output: bool = True

    def __post_init__(self):
        if self.forbidden_output_roots is None:
            self.forbidden_output_roots = [Path.home().resolve()]


class PathValidator:
    """Validates source and output paths before a build touches them"""

    def __init__(self, config: Optional[SecurityConfig] = None):
        self.config = config or SecurityConfig()

    def validate_path(self, path: Union[str, Path]) -> Path:
        """Normalize a path and reject obviously unsafe values"""
        path_str = unicodedata.normalize('NFKC', str(path))
        if path_str != str(path):
            logger.warning(f"Path required Unicode normalization: {path} -> {path_str}")

        if '\x00' in path_str:
            raise ConfigurationError(f"Path contains null bytes: {path_str!r}")

        resolved = Path(path_str).expanduser().resolve()
        if len(resolved.parts) > self.config.max_path_depth:
            raise ConfigurationError(f"Path too deep: {resolved}")
        return resolved

    def validate_source_root(self, source_root: Union[str, Path]) -> Path:
        """The source root must be an existing directory"""
        source = self.validate_path(source_root)
        if not source.exists():
            raise ConfigurationError(f"Source root does not exist: {source}")
        if not source.is_dir():
            raise ConfigurationError(f"Source root is not a directory: {source}")
        return source

    def validate_output_root(self,
                             source_root: Path,
                             output_root: Union[str, Path],
                             reserved_prefix: str = '.') -> Path:
        """Check that wiping the output root cannot destroy content"""
        if self.config.reject_symlinked_output and Path(str(output_root)).expanduser().is_symlink():
            raise ConfigurationError(f"Output root must not be a symbolic link: {output_root}")

        output = self.validate_path(output_root)

        if output == Path(output.anchor):
            raise ConfigurationError(f"Refusing to use filesystem root as output: {output}")
        if output == source_root:
            raise ConfigurationError(f"Output root cannot be the source root: {output}")
        if source_root.is_relative_to(output):
            raise ConfigurationError(
                f"Output root {output} contains the source root {source_root}"
            )
        for forbidden in self.config.forbidden_output_roots:
            if output == Path(forbidden).resolve():
                raise ConfigurationError(f"Refusing to use {output} as output root")

        # Inside the source tree the output must sit under a reserved entry,
        # otherwise the next run would discover it as a unit
        if output.is_relative_to(source_root):
            top_level = output.relative_to(source_root).parts[0]
            if not top_level.startswith(reserved_prefix):
                raise ConfigurationError(
                    f"Output root {output} lies inside the source tree under "
                    f"'{top_level}', which does not start with '{reserved_prefix}'"
                )

        if output.exists() and not output.is_dir():
            raise ConfigurationError(f"Output root exists but is not a directory: {output}")
        return output

    def validate_report_path(self, report_path: Union[str, Path], output_root: Path) -> Path:
        """Reports must survive the next clean, so keep them out of the output tree"""
        report = self.validate_path(report_path)
        if report.is_relative_to(output_root):
            raise ConfigurationError(
                f"Report path {report} lies inside the output root {output_root}"
            )
        return report
