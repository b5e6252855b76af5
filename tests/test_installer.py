"""Unit tests for dependency installation (nodeforge.installer).

Tests cover:
- Package manager verb / dev flag table
- (ORM, database) package routing and unsupported selections
- Install plan ordering
- Execution with fatal and warn failure policies
- Lint tooling and .eslintrc.json
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from nodeforge.config import GeneratorConfig, ProjectChoice
from nodeforge.errors import ExternalCommandFailure, UnsupportedCombination
from nodeforge.installer import (
    BASE_DEV_PACKAGES,
    LINT_DEV_PACKAGES,
    DependencyInstaller,
    orm_packages,
    package_manager_commands,
    plan_install,
    plan_lint,
)
from nodeforge.scaffolder.files import FileWriter


def _commands(runner: AsyncMock) -> list[list[str]]:
    return [list(call.args[0]) for call in runner.await_args_list]


def _unknown_orm_choice() -> ProjectChoice:
    # bypasses validation the way a stale or hand-built record would
    return ProjectChoice.model_construct(
        name="myapp",
        package_manager="npm",
        framework="express",
        database="postgresql",
        orm="unknown",
        use_lint=False,
        synchronize=False,
    )


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


class TestPackageManagerCommands:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "manager, expected",
        [
            ("npm", ("install", "--save-dev")),
            ("yarn", ("add", "--dev")),
            ("pnpm", ("add", "--save-dev")),
            ("bun", ("add", "--dev")),
        ],
    )
    def test_verbs_and_flags(self, manager, expected):
        assert package_manager_commands(manager) == expected

    @pytest.mark.unit
    def test_unknown_manager(self):
        with pytest.raises(UnsupportedCombination, match="package manager"):
            package_manager_commands("pip")


class TestOrmPackages:
    @pytest.mark.unit
    def test_drizzle_postgresql(self):
        packages = orm_packages("drizzle", "postgresql")
        assert "drizzle-orm" in packages
        assert "pg" in packages

    @pytest.mark.unit
    def test_drizzle_sqlite(self):
        assert "better-sqlite3" in orm_packages("drizzle", "sqlite")

    @pytest.mark.unit
    def test_sequelize_postgresql(self):
        assert orm_packages("sequelize", "postgresql") == ("sequelize", "pg", "pg-hstore")

    @pytest.mark.unit
    def test_typeorm_mysql(self):
        assert orm_packages("typeorm", "mysql") == ("typeorm", "reflect-metadata", "mysql2")

    @pytest.mark.unit
    @pytest.mark.parametrize("database", ["mysql", "postgresql", "sqlite"])
    def test_prisma_ignores_database(self, database):
        assert orm_packages("prisma", database) == ("prisma",)

    @pytest.mark.unit
    def test_unknown_orm(self):
        with pytest.raises(UnsupportedCombination) as excinfo:
            orm_packages("unknown", "postgresql")
        assert excinfo.value.orm == "unknown"

    @pytest.mark.unit
    def test_unknown_database(self):
        with pytest.raises(UnsupportedCombination, match="drizzle \\+ oracle"):
            orm_packages("drizzle", "oracle")


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------


class TestPlanInstall:
    @pytest.mark.unit
    def test_order_for_npm(self, make_choice):
        steps = plan_install(make_choice(orm="drizzle", database="postgresql"))
        assert [step.command for step in steps] == [
            ("npm", "install", "--save-dev", *BASE_DEV_PACKAGES),
            ("npm", "install", "express"),
            ("npm", "install", "drizzle-orm", "pg"),
        ]

    @pytest.mark.unit
    def test_bun_uses_add_and_dev(self, make_choice):
        steps = plan_install(make_choice(package_manager="bun", framework="fastify"))
        assert steps[0].command[:3] == ("bun", "add", "--dev")
        assert steps[1].command == ("bun", "add", "fastify")
        assert steps[2].command == ("bun", "add", "prisma")

    @pytest.mark.unit
    def test_unknown_orm(self):
        with pytest.raises(UnsupportedCombination):
            plan_install(_unknown_orm_choice())

    @pytest.mark.unit
    def test_lint_plan(self, make_choice):
        step = plan_lint(make_choice(package_manager="yarn"))
        assert step.command == ("yarn", "add", "--dev", *LINT_DEV_PACKAGES)
        assert str(step) == "yarn add --dev eslint @typescript-eslint/parser @typescript-eslint/eslint-plugin"


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class TestInstall:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_runs_every_step_in_project_root(self, config, runner, make_choice, tmp_path: Path):
        installer = DependencyInstaller(config, runner=runner)
        report = await installer.install(make_choice(orm="drizzle", database="sqlite"), tmp_path)
        assert _commands(runner) == [
            ["npm", "install", "--save-dev", *BASE_DEV_PACKAGES],
            ["npm", "install", "express"],
            ["npm", "install", "drizzle-orm", "better-sqlite3"],
        ]
        for call in runner.await_args_list:
            assert call.kwargs["cwd"] == tmp_path
        assert report.success
        assert len(report.executed) == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_orm_has_no_side_effects(self, config, runner, tmp_path: Path):
        installer = DependencyInstaller(config, runner=runner)
        with pytest.raises(UnsupportedCombination):
            await installer.install(_unknown_orm_choice(), tmp_path)
        runner.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fatal_policy_stops_at_first_failure(self, config, make_choice, tmp_path: Path):
        runner = AsyncMock(return_value=(1, "", "network down"))
        installer = DependencyInstaller(config, runner=runner)
        with pytest.raises(ExternalCommandFailure, match="Error installing base packages"):
            await installer.install(make_choice(), tmp_path)
        assert runner.await_count == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_warn_policy_continues(self, make_choice, tmp_path: Path):
        config = GeneratorConfig(base_dir=tmp_path, install_failure_policy="warn")
        runner = AsyncMock(side_effect=[(0, "", ""), (1, "", "404"), (0, "", "")])
        installer = DependencyInstaller(config, runner=runner)
        report = await installer.install(make_choice(), tmp_path)
        assert runner.await_count == 3
        assert not report.success
        assert [step.label for step in report.failed] == ["framework"]
        assert len(report.executed) == 2
        assert len(report.warnings) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_package_manager(self, config, make_choice, tmp_path: Path):
        runner = AsyncMock(side_effect=FileNotFoundError("pnpm"))
        installer = DependencyInstaller(config, runner=runner)
        with pytest.raises(ExternalCommandFailure, match="pnpm"):
            await installer.install(make_choice(package_manager="pnpm"), tmp_path)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_skip_install(self, make_choice, runner, tmp_path: Path):
        config = GeneratorConfig(base_dir=tmp_path, skip_install=True)
        report = await DependencyInstaller(config, runner=runner).install(make_choice(), tmp_path)
        runner.assert_not_awaited()
        assert report.executed == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_command_timeout_forwarded(self, make_choice, runner, tmp_path: Path):
        config = GeneratorConfig(base_dir=tmp_path, command_timeout=45)
        await DependencyInstaller(config, runner=runner).install(make_choice(), tmp_path)
        assert all(call.kwargs["timeout"] == 45 for call in runner.await_args_list)


class TestInstallLint:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_installs_tooling_and_writes_config(self, config, runner, make_choice, tmp_path: Path):
        installer = DependencyInstaller(config, runner=runner)
        report = await installer.install_lint(make_choice(use_lint=True), tmp_path, FileWriter(tmp_path))
        assert _commands(runner) == [["npm", "install", "--save-dev", *LINT_DEV_PACKAGES]]
        eslintrc = json.loads((tmp_path / ".eslintrc.json").read_text(encoding="utf-8"))
        assert "@typescript-eslint" in eslintrc["plugins"]
        assert report.success

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_existing_config_needs_confirmation(self, config, runner, make_choice, tmp_path: Path):
        (tmp_path / ".eslintrc.json").write_text("{}", encoding="utf-8")
        confirm = MagicMock(return_value=False)
        installer = DependencyInstaller(config, runner=runner)
        await installer.install_lint(make_choice(use_lint=True), tmp_path, FileWriter(tmp_path, confirm))
        confirm.assert_called_once_with(Path(".eslintrc.json"))
        assert (tmp_path / ".eslintrc.json").read_text(encoding="utf-8") == "{}"
