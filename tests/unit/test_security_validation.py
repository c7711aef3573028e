"""
Unit tests for path validation
==============================

Tests for security_validation.py including:
- Source root checks
- Output roots that would destroy content on clean
- Report path placement
"""

import os

import pytest

from build_errors import ConfigurationError
from security_validation import PathValidator, SecurityConfig


@pytest.fixture
def validator():
    return PathValidator(SecurityConfig(forbidden_output_roots=[]))


@pytest.fixture
def source(tmp_path):
    root = tmp_path / "site"
    root.mkdir()
    return root.resolve()


class TestPathValidator:
    """Test PathValidator functionality"""

    def test_valid_source_root(self, validator, source):
        assert validator.validate_source_root(source) == source

    def test_missing_source_root(self, validator, tmp_path):
        with pytest.raises(ConfigurationError, match="does not exist"):
            validator.validate_source_root(tmp_path / "missing")

    def test_source_root_is_file(self, validator, tmp_path):
        path = tmp_path / "file.txt"
        path.write_text("x")

        with pytest.raises(ConfigurationError, match="not a directory"):
            validator.validate_source_root(path)

    def test_null_byte_rejected(self, validator):
        with pytest.raises(ConfigurationError, match="null bytes"):
            validator.validate_path("site\x00/dist")

    def test_output_outside_source(self, validator, source, tmp_path):
        output = validator.validate_output_root(source, tmp_path / "dist")

        assert output == (tmp_path / "dist").resolve()

    def test_output_under_reserved_entry(self, validator, source):
        output = validator.validate_output_root(source, source / ".build" / "dist")

        assert output == source / ".build" / "dist"

    def test_output_equal_to_source(self, validator, source):
        with pytest.raises(ConfigurationError, match="cannot be the source root"):
            validator.validate_output_root(source, source)

    def test_output_containing_source(self, validator, source):
        with pytest.raises(ConfigurationError, match="contains the source root"):
            validator.validate_output_root(source, source.parent)

    def test_output_filesystem_root(self, validator, source):
        with pytest.raises(ConfigurationError):
            validator.validate_output_root(source, source.anchor)

    def test_output_discoverable_as_unit(self, validator, source):
        with pytest.raises(ConfigurationError, match="does not start with"):
            validator.validate_output_root(source, source / "dist")

    def test_forbidden_output_root(self, source, tmp_path):
        validator = PathValidator(SecurityConfig(forbidden_output_roots=[tmp_path / "home"]))

        with pytest.raises(ConfigurationError, match="Refusing"):
            validator.validate_output_root(source, tmp_path / "home")

    def test_output_is_file(self, validator, source, tmp_path):
        target = tmp_path / "dist"
        target.write_text("x")

        with pytest.raises(ConfigurationError, match="not a directory"):
            validator.validate_output_root(source, target)

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlinked_output_rejected(self, validator, source, tmp_path):
        real = tmp_path / "real"
        real.mkdir()
        link = tmp_path / "link"
        os.symlink(real, link)

        with pytest.raises(ConfigurationError, match="symbolic link"):
            validator.validate_output_root(source, link)

    def test_report_inside_output_rejected(self, validator, tmp_path):
        output = (tmp_path / "dist").resolve()

        with pytest.raises(ConfigurationError, match="inside the output root"):
            validator.validate_report_path(output / "report.json", output)

    def test_report_outside_output(self, validator, tmp_path):
        output = (tmp_path / "dist").resolve()

        assert validator.validate_report_path(tmp_path / "r.json", output) == (tmp_path / "r.json").resolve()
