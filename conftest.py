"""
Shared fixtures for the content build pipeline tests.
"""

from pathlib import Path
from typing import Dict, Optional

import pytest

from pipeline_configs import PipelineConfig


@pytest.fixture
def content_tree(tmp_path):
    """Factory writing {folder: {relative_path: text}} under a fresh source root"""
    source_root = tmp_path / "site"
    source_root.mkdir()

    def make(units: Optional[Dict[str, Dict[str, str]]] = None) -> Path:
        for folder, files in (units or {}).items():
            unit_dir = source_root / folder
            unit_dir.mkdir(parents=True, exist_ok=True)
            for rel_path, text in files.items():
                target = unit_dir / rel_path
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(text, encoding="utf-8")
        return source_root

    return make


@pytest.fixture
def make_config(tmp_path):
    """Factory for configs whose output lives outside the source tree"""
    def make(source_root: Path, **overrides) -> PipelineConfig:
        overrides.setdefault("output_root", tmp_path / "dist")
        return PipelineConfig(source_root=source_root, **overrides)

    return make
