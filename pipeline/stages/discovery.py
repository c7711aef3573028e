"""
Unit Discovery
==============

Lists the top-level entries of the source tree and turns every eligible
directory into a Unit with a located metadata document.
"""

import logging
import os
from pathlib import Path
from typing import List, Sequence

from base_classes import Unit
from build_errors import DiscoveryError, FilesystemError
from compression_codecs import ARTIFACT_SUFFIXES

logger = logging.getLogger(__name__)

STAGE = 'DISCOVER_UNITS'


class UnitDiscoverer:
    """Finds content units directly below a source root"""

    def __init__(self,
                 source_root: Path,
                 metadata_filenames: Sequence[str] = ('index.yaml', 'index.yml'),
                 reserved_prefix: str = '.',
                 sort_units: bool = True,
                 manifest_filename: str = 'index.json'):
        self.source_root = Path(source_root)
        self.metadata_filenames = tuple(metadata_filenames)
        self.reserved_prefix = reserved_prefix
        self.sort_units = sort_units
        # Names the global manifest and its compressed copies occupy in the output root
        self.reserved_names = {manifest_filename}
        self.reserved_names.update(manifest_filename + suffix for suffix in ARTIFACT_SUFFIXES.values())

    def list_candidates(self) -> List[str]:
        """Names of eligible directories, in listing or sorted order"""
        try:
            entries = os.listdir(self.source_root)
        except OSError as e:
            raise FilesystemError(
                f"Cannot list source root {self.source_root}: {e}", stage=STAGE
            ) from e

        names = []
        for name in entries:
            if name.startswith(self.reserved_prefix):
                logger.debug(f"Skipping reserved entry: {name}")
                continue
            if not (self.source_root / name).is_dir():
                logger.debug(f"Skipping file: {name}")
                continue
            if name in self.reserved_names:
                raise DiscoveryError(
                    f"Unit folder {name} would collide with the global manifest in the output root",
                    unit=name,
                    stage=STAGE,
                )
            names.append(name)

        if self.sort_units:
            names.sort()
        return names

    def locate_metadata(self, folder_name: str) -> Path:
        """Primary metadata filename first, then each fallback"""
        unit_dir = self.source_root / folder_name
        for filename in self.metadata_filenames:
            candidate = unit_dir / filename
            if candidate.is_file():
                return candidate
        raise DiscoveryError(
            f"Unable to find metadata for {folder_name} "
            f"(looked for {', '.join(self.metadata_filenames)})",
            unit=folder_name,
            stage=STAGE,
        )

    def make_unit(self, folder_name: str) -> Unit:
        return Unit(
            folder_name=folder_name,
            source_path=self.source_root / folder_name,
            metadata_path=self.locate_metadata(folder_name),
        )

    def discover(self) -> List[Unit]:
        """Every eligible unit; fails on the first unit without metadata"""
        units = [self.make_unit(name) for name in self.list_candidates()]
        logger.info(f"Discovered {len(units)} content units in {self.source_root}")
        return units
