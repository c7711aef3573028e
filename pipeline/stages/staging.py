"""
Staging
=======

Copies a unit's source folder into the output tree and strips the
metadata document from the copy.
"""

import logging
import shutil
from pathlib import Path

from base_classes import Unit
from build_errors import FilesystemError

logger = logging.getLogger(__name__)

STAGE = 'STAGE_COPY'


class StagingCopier:
    """Materializes one unit's output directory"""

    def stage(self, unit: Unit, destination: Path) -> Path:
        destination = Path(destination)
        if destination.exists():
            raise FilesystemError(
                f"Destination already exists: {destination}",
                unit=unit.folder_name, stage=STAGE,
            )

        logger.debug(f"cp -r {unit.source_path} {destination}")
        try:
            shutil.copytree(unit.source_path, destination, symlinks=True)
        except (OSError, shutil.Error) as e:
            raise FilesystemError(
                f"Copying {unit.source_path} failed: {e}",
                unit=unit.folder_name, stage=STAGE,
            ) from e

        staged_metadata = destination / unit.metadata_filename
        logger.debug(f"rm {staged_metadata}")
        try:
            staged_metadata.unlink()
        except OSError as e:
            raise FilesystemError(
                f"Removing {staged_metadata} failed: {e}",
                unit=unit.folder_name, stage=STAGE,
            ) from e

        return destination
