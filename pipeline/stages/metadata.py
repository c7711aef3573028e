"""
Metadata Loading
================

Parses a unit's YAML metadata document into a fixed-shape record.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional

import yaml

from base_classes import MetadataDocument
from build_errors import ParseError, FilesystemError

logger = logging.getLogger(__name__)

STAGE = 'LOAD_METADATA'

RECOGNIZED_KEYS = ('title', 'tags')


class MetadataLoader:
    """Loads and validates metadata documents"""

    def load(self, path: Path, unit: Optional[str] = None) -> MetadataDocument:
        path = Path(path)
        try:
            text = path.read_text(encoding='utf-8')
        except UnicodeDecodeError as e:
            raise ParseError(f"{path.name} is not valid UTF-8: {e}", unit=unit, stage=STAGE) from e
        except OSError as e:
            raise FilesystemError(f"Cannot read {path}: {e}", unit=unit, stage=STAGE) from e

        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ParseError(f"Malformed YAML in {path.name}: {e}", unit=unit, stage=STAGE) from e
        except RecursionError as e:
            raise ParseError(f"{path.name} is nested too deeply", unit=unit, stage=STAGE) from e

        return self.validate(raw, source=path.name, unit=unit)

    def validate(self,
                 raw: Any,
                 source: str = '<document>',
                 unit: Optional[str] = None) -> MetadataDocument:
        """Project a parsed document onto the title/tags schema"""
        if not isinstance(raw, dict):
            kind = 'empty' if raw is None else type(raw).__name__
            raise ParseError(f"{source} must be a mapping, got {kind}", unit=unit, stage=STAGE)

        title = raw.get('title')
        if not isinstance(title, str):
            raise ParseError(f"{source} needs a string 'title'", unit=unit, stage=STAGE)

        tags = self._normalize_tags(raw.get('tags'), source, unit)

        ignored = sorted(str(k) for k in raw if k not in RECOGNIZED_KEYS)
        if ignored:
            logger.debug(f"Ignoring unrecognized keys in {source}: {', '.join(ignored)}")

        return MetadataDocument(title=title, tags=tags)

    def _normalize_tags(self, tags: Any, source: str, unit: Optional[str]) -> List[str]:
        if tags is None:
            return []
        if not isinstance(tags, list):
            raise ParseError(f"'tags' in {source} must be a list", unit=unit, stage=STAGE)

        for tag in tags:
            if not isinstance(tag, str):
                raise ParseError(
                    f"'tags' in {source} must contain strings, got {tag!r}",
                    unit=unit, stage=STAGE,
                )
        return list(tags)
