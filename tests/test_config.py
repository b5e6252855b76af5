"""Unit tests for the allow-lists, ProjectChoice and GeneratorConfig (nodeforge.config).

Tests cover:
- validate_project_name boundaries
- ProjectChoice validation and immutability
- GeneratorConfig defaults, from_env, failure policy
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from nodeforge.config import (
    Database,
    Framework,
    GeneratorConfig,
    Orm,
    PackageManager,
    ProjectChoice,
    choices_of,
    validate_project_name,
)


# ---------------------------------------------------------------------------
# Allow-lists
# ---------------------------------------------------------------------------


class TestAllowLists:
    @pytest.mark.unit
    def test_package_managers(self):
        assert choices_of(PackageManager) == ["npm", "yarn", "pnpm", "bun"]

    @pytest.mark.unit
    def test_frameworks(self):
        assert choices_of(Framework) == ["express", "fastify"]

    @pytest.mark.unit
    def test_databases(self):
        assert choices_of(Database) == ["mysql", "postgresql", "sqlite"]

    @pytest.mark.unit
    def test_orms(self):
        assert choices_of(Orm) == ["prisma", "drizzle", "typeorm", "sequelize"]


# ---------------------------------------------------------------------------
# Project name validation
# ---------------------------------------------------------------------------


class TestValidateProjectName:
    @pytest.mark.unit
    def test_two_characters_rejected(self):
        assert validate_project_name("ab") is not None

    @pytest.mark.unit
    def test_three_characters_accepted(self):
        assert validate_project_name("abc") is None

    @pytest.mark.unit
    def test_current_directory_accepted(self):
        assert validate_project_name(".") is None

    @pytest.mark.unit
    def test_empty_rejected(self):
        assert validate_project_name("") is not None

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["/tmp/outside", "apps/api", "..\\shared", "../myapp"])
    def test_path_separators_rejected(self, name):
        assert validate_project_name(name) == "Project name must not contain path separators"


# ---------------------------------------------------------------------------
# ProjectChoice
# ---------------------------------------------------------------------------


class TestProjectChoice:
    @pytest.mark.unit
    def test_valid_choice(self, make_choice):
        choice = make_choice()
        assert choice.name == "myapp"
        assert choice.package_manager is PackageManager.NPM
        assert choice.framework is Framework.EXPRESS
        assert choice.database is Database.SQLITE
        assert choice.orm is Orm.PRISMA
        assert choice.use_lint is False
        assert choice.synchronize is False

    @pytest.mark.unit
    def test_short_name_rejected(self, make_choice):
        with pytest.raises(ValidationError):
            make_choice(name="ab")

    @pytest.mark.unit
    def test_absolute_path_rejected(self, make_choice, tmp_path: Path):
        with pytest.raises(ValidationError, match="path separators"):
            make_choice(name=str(tmp_path / "outside"))

    @pytest.mark.unit
    def test_current_directory_name(self, make_choice):
        choice = make_choice(name=".")
        assert choice.uses_current_directory

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "field, value",
        [
            ("package_manager", "pip"),
            ("framework", "koa"),
            ("database", "mongodb"),
            ("orm", "mongoose"),
        ],
    )
    def test_value_outside_allow_list_rejected(self, make_choice, field, value):
        with pytest.raises(ValidationError):
            make_choice(**{field: value})

    @pytest.mark.unit
    def test_frozen(self, make_choice):
        choice = make_choice()
        with pytest.raises(ValidationError):
            choice.orm = Orm.DRIZZLE


# ---------------------------------------------------------------------------
# GeneratorConfig
# ---------------------------------------------------------------------------


class TestGeneratorConfig:
    @pytest.mark.unit
    def test_defaults(self):
        config = GeneratorConfig()
        assert config.base_dir == Path.cwd()
        assert config.source_dir == "src"
        assert config.install_failure_policy == "fatal"
        assert config.fail_fast is True
        assert config.command_timeout == 600
        assert config.skip_install is False
        assert config.patch_manifest_name is True
        assert config.verbose is False

    @pytest.mark.unit
    def test_warn_policy(self):
        config = GeneratorConfig(install_failure_policy="warn")
        assert config.fail_fast is False

    @pytest.mark.unit
    def test_unknown_policy_rejected(self):
        with pytest.raises(ValidationError):
            GeneratorConfig(install_failure_policy="retry")

    @pytest.mark.unit
    def test_timeout_lower_bound(self):
        with pytest.raises(ValidationError):
            GeneratorConfig(command_timeout=1)

    @pytest.mark.unit
    def test_from_env(self, tmp_path: Path):
        env = {
            "NODEFORGE_BASE_DIR": str(tmp_path),
            "NODEFORGE_SOURCE_DIR": "app",
            "NODEFORGE_INSTALL_FAILURE_POLICY": "WARN",
            "NODEFORGE_COMMAND_TIMEOUT": "120",
            "NODEFORGE_SKIP_INSTALL": "true",
            "NODEFORGE_PATCH_MANIFEST_NAME": "0",
            "NODEFORGE_VERBOSE": "yes",
        }
        with patch.dict(os.environ, env, clear=False):
            config = GeneratorConfig.from_env()
        assert config.base_dir == tmp_path
        assert config.source_dir == "app"
        assert config.install_failure_policy == "warn"
        assert config.command_timeout == 120
        assert config.skip_install is True
        assert config.patch_manifest_name is False
        assert config.verbose is True

    @pytest.mark.unit
    def test_from_env_without_variables(self):
        cleaned = {k: v for k, v in os.environ.items() if not k.startswith("NODEFORGE_")}
        with patch.dict(os.environ, cleaned, clear=True):
            config = GeneratorConfig.from_env()
        assert config == GeneratorConfig(base_dir=config.base_dir)
        assert config.install_failure_policy == "fatal"
