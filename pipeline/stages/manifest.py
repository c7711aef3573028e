"""
Manifest Writer
===============

Serializes unit metadata into the per-unit and global JSON manifests.
Output is compact JSON, matching what the site frontend fetches.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from base_classes import GlobalManifest, UnitMetadata
from build_errors import FilesystemError

logger = logging.getLogger(__name__)

JSON_SEPARATORS = (',', ':')


def dumps_manifest(data: Dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False, separators=JSON_SEPARATORS)


class ManifestWriter:
    """Writes index.json documents into the output tree"""

    def __init__(self, manifest_filename: str = 'index.json'):
        self.manifest_filename = manifest_filename

    def _write(self, path: Path, data: Dict[str, Any],
               unit: Optional[str] = None, stage: Optional[str] = None) -> Path:
        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                f.write(dumps_manifest(data))
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise FilesystemError(f"Writing {path} failed: {e}", unit=unit, stage=stage) from e
        logger.debug(f"Wrote {path}")
        return path

    def write_unit_manifest(self, metadata: UnitMetadata, destination: Path) -> Path:
        """Write <destination>/index.json for one unit"""
        return self._write(
            Path(destination) / self.manifest_filename,
            metadata.to_dict(),
            unit=metadata.folder_name,
            stage='WRITE_UNIT_MANIFEST',
        )

    def write_global_manifest(self, contents: Sequence[UnitMetadata], output_root: Path) -> Path:
        """Write <output_root>/index.json listing every unit verbatim"""
        manifest = GlobalManifest(contents=list(contents))
        path = self._write(
            Path(output_root) / self.manifest_filename,
            manifest.to_dict(),
            stage='WRITE_GLOBAL_MANIFEST',
        )
        logger.info(f"Wrote global manifest with {len(manifest.contents)} entries")
        return path
