"""
Base Classes for Content Build Pipeline
=======================================

Contains core data structures and abstract base classes used throughout the pipeline.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Dict, Any, Optional


@dataclass(frozen=True)
class Unit:
    """One content folder with its metadata document"""
    folder_name: str
    source_path: Path
    metadata_path: Path

    @property
    def metadata_filename(self) -> str:
        return self.metadata_path.name


@dataclass
class MetadataDocument:
    """Validated projection of a metadata document (title, tags)"""
    title: str
    tags: List[str] = field(default_factory=list)


@dataclass
class UnitMetadata:
    """Normalized metadata written to a unit manifest and the global index"""
    title: str
    folder_name: str
    folder_url: str
    index_url: str
    meta_url: str
    tags: List[str] = field(default_factory=list)

    # Only set by the timestamped pipeline variant
    date_created_iso: Optional[str] = None
    date_last_edited_iso: Optional[str] = None

    @classmethod
    def for_unit(cls,
                 unit: Unit,
                 document: MetadataDocument,
                 url_prefix: str = '/blog',
                 index_document: str = 'index.md',
                 timestamp: Optional[str] = None) -> 'UnitMetadata':
        """Combine a unit and its document, deriving the URL fields"""
        folder_url = f"{url_prefix.rstrip('/')}/{unit.folder_name}"
        return cls(
            title=document.title,
            folder_name=unit.folder_name,
            folder_url=folder_url,
            index_url=f"{folder_url}/{index_document}",
            meta_url=f"{folder_url}/{unit.metadata_filename}",
            tags=list(document.tags),
            date_created_iso=timestamp,
            date_last_edited_iso=timestamp,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the camelCase keys of the published manifest"""
        data: Dict[str, Any] = {
            'title': self.title,
            'folderName': self.folder_name,
        }
        if self.date_created_iso is not None:
            data['dateCreatedISO'] = self.date_created_iso
        if self.date_last_edited_iso is not None:
            data['dateLastEditedISO'] = self.date_last_edited_iso
        data['folderURL'] = self.folder_url
        data['indexURL'] = self.index_url
        data['metaURL'] = self.meta_url
        data['tags'] = list(self.tags)
        return data


@dataclass
class GlobalManifest:
    """Index of every unit in discovery order"""
    contents: List[UnitMetadata] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'contents': [meta.to_dict() for meta in self.contents]}


@dataclass
class CompressionReport:
    """Outcome of one compression pass"""
    files_seen: int = 0
    files_compressed: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    bytes_in: int = 0
    bytes_out: int = 0
    artifacts: List[Path] = field(default_factory=list)

    def merge(self, other: 'CompressionReport') -> 'CompressionReport':
        return CompressionReport(
            files_seen=self.files_seen + other.files_seen,
            files_compressed=self.files_compressed + other.files_compressed,
            files_skipped=self.files_skipped + other.files_skipped,
            files_failed=self.files_failed + other.files_failed,
            bytes_in=self.bytes_in + other.bytes_in,
            bytes_out=self.bytes_out + other.bytes_out,
            artifacts=self.artifacts + other.artifacts,
        )


class Compressor(ABC):
    """Abstract compression strategy used by the compression pass"""

    @abstractmethod
    def compress_file(self, path: Path, report: CompressionReport) -> Optional[Path]:
        pass

    @abstractmethod
    def compress_directory(self, path: Path) -> CompressionReport:
        pass
