"""Tests for import plan loading."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from polyaccess.core.services import (
    ConfigLoadError,
    load_import_plan,
    load_yaml_config,
    substitute_env_vars,
)


class TestSubstituteEnvVars:
    """Test cases for substitute_env_vars."""

    def test_substitutes_variable(self):
        """${VAR} is replaced by the environment value."""
        with patch.dict(os.environ, {"LEGACY_DIR": "D:/legacy"}):
            assert substitute_env_vars("${LEGACY_DIR}/nw.accdb") == "D:/legacy/nw.accdb"

    def test_default_value(self):
        """${VAR:-default} falls back when unset."""
        with patch.dict(os.environ, {}, clear=True):
            assert substitute_env_vars("${LEGACY_DIR:-C:/data}") == "C:/data"

    def test_missing_required(self):
        """Unset variables without a default raise."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigLoadError, match="LEGACY_DIR"):
                substitute_env_vars("${LEGACY_DIR}")

    def test_nested(self):
        """Substitution recurses into lists and dicts."""
        with patch.dict(os.environ, {"DB": "northwind"}):
            assert substitute_env_vars({"a": ["${DB}", 1]}) == {"a": ["northwind", 1]}


class TestLoadYamlConfig:
    """Test cases for load_yaml_config."""

    def test_missing_file(self, tmp_path: Path):
        """Missing files raise ConfigLoadError."""
        with pytest.raises(ConfigLoadError, match="not found"):
            load_yaml_config(tmp_path / "missing.yaml")

    def test_empty_file(self, tmp_path: Path):
        """Empty files raise ConfigLoadError."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(ConfigLoadError, match="Empty"):
            load_yaml_config(path)

    def test_invalid_yaml(self, tmp_path: Path):
        """Unparseable YAML raises ConfigLoadError."""
        path = tmp_path / "bad.yaml"
        path.write_text("tables: [unclosed\n")
        with pytest.raises(ConfigLoadError, match="Invalid YAML"):
            load_yaml_config(path)

    def test_non_mapping(self, tmp_path: Path):
        """The top level must be a mapping."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigLoadError, match="mapping"):
            load_yaml_config(path)


class TestLoadImportPlan:
    """Test cases for load_import_plan."""

    def test_full_plan(self, tmp_path: Path):
        """Bare names and entry mappings both parse."""
        path = tmp_path / "plan.yaml"
        path.write_text(
            "source_path: ${LEGACY_DIR:-C:/data}/northwind.accdb\n"
            "database_id: northwind\n"
            "stop_on_error: true\n"
            "tables:\n"
            "  - Customers\n"
            "  - name: Orders\n"
            "    force: true\n"
            "queries:\n"
            "  - qryActiveCustomers\n"
        )
        with patch.dict(os.environ, {}, clear=True):
            plan = load_import_plan(path)

        assert plan.source_path == "C:/data/northwind.accdb"
        assert plan.stop_on_error
        assert [t.name for t in plan.tables] == ["Customers", "Orders"]
        assert plan.tables[0].force is None
        assert plan.tables[1].force is True
        assert [q.name for q in plan.queries] == ["qryActiveCustomers"]

    def test_missing_database(self, tmp_path: Path):
        """Plans must name their target database."""
        path = tmp_path / "plan.yaml"
        path.write_text("source_path: C:/data/nw.accdb\ntables: [Customers]\n")
        with pytest.raises(ConfigLoadError, match="Invalid import plan"):
            load_import_plan(path)
