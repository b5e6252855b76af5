"""Dependency installation through the selected package manager.

All package routing lives in the tables below: package manager to install
verb and dev flag, and (ORM, database) to the ordered package list.  The
installer derives the complete list of commands before it runs the first
one, so an unsupported selection fails without touching the project.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .config import Database, GeneratorConfig, Orm, PackageManager, ProjectChoice
from .errors import ExternalCommandFailure, UnsupportedCombination
from .progress import ProgressReporter
from .scaffolder.files import FileWriter
from .scaffolder.templates import TemplateStore
from .utils import CommandRunner, console, format_command, print_warning, run_checked

# ---------------------------------------------------------------------------
# Package tables
# ---------------------------------------------------------------------------

# package manager -> (install verb, dev flag)
PACKAGE_MANAGER_COMMANDS: dict[PackageManager, tuple[str, str]] = {
    PackageManager.NPM: ("install", "--save-dev"),
    PackageManager.YARN: ("add", "--dev"),
    PackageManager.PNPM: ("add", "--save-dev"),
    PackageManager.BUN: ("add", "--dev"),
}

BASE_DEV_PACKAGES: tuple[str, ...] = (
    "typescript@latest",
    "ts-node@latest",
    "@types/node@latest",
    "prettier",
)

LINT_DEV_PACKAGES: tuple[str, ...] = (
    "eslint",
    "@typescript-eslint/parser",
    "@typescript-eslint/eslint-plugin",
)

ORM_PACKAGES: dict[Orm, dict[Database, tuple[str, ...]]] = {
    Orm.DRIZZLE: {
        Database.MYSQL: ("drizzle-orm", "mysql2"),
        Database.POSTGRESQL: ("drizzle-orm", "pg"),
        Database.SQLITE: ("drizzle-orm", "better-sqlite3"),
    },
    Orm.SEQUELIZE: {
        Database.MYSQL: ("sequelize", "mysql2"),
        Database.POSTGRESQL: ("sequelize", "pg", "pg-hstore"),
        Database.SQLITE: ("sequelize", "sqlite3"),
    },
    Orm.TYPEORM: {
        Database.MYSQL: ("typeorm", "reflect-metadata", "mysql2"),
        Database.POSTGRESQL: ("typeorm", "reflect-metadata", "pg"),
        Database.SQLITE: ("typeorm", "reflect-metadata", "sqlite3"),
    },
}

# ORMs whose package does not depend on the database
STANDALONE_ORM_PACKAGES: dict[Orm, tuple[str, ...]] = {
    Orm.PRISMA: ("prisma",),
}


def package_manager_commands(package_manager: str) -> tuple[str, str]:
    """Return ``(install verb, dev flag)`` for *package_manager*.

    Raises:
        UnsupportedCombination: For a package manager outside the table.
    """
    try:
        return PACKAGE_MANAGER_COMMANDS[package_manager]  # type: ignore[index]
    except KeyError:
        raise UnsupportedCombination(
            "", message=f"Unsupported package manager: {package_manager}"
        ) from None


def orm_packages(orm: str, database: str) -> tuple[str, ...]:
    """Return the ORM and driver packages for the (ORM, database) pair.

    Raises:
        UnsupportedCombination: If the ORM, or the pair, is not in the table.
    """
    if orm in STANDALONE_ORM_PACKAGES:
        return STANDALONE_ORM_PACKAGES[orm]  # type: ignore[index]
    if orm not in ORM_PACKAGES:
        raise UnsupportedCombination(_value(orm))
    by_database = ORM_PACKAGES[orm]  # type: ignore[index]
    if database not in by_database:
        raise UnsupportedCombination(_value(orm), _value(database))
    return by_database[database]  # type: ignore[index]


# ---------------------------------------------------------------------------
# Install plan
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InstallStep:
    """One package-manager invocation."""

    label: str
    command: tuple[str, ...]

    def __str__(self) -> str:
        return format_command(list(self.command))


def plan_install(choice: ProjectChoice) -> list[InstallStep]:
    """Derive the ordered dependency install commands for *choice*.

    Base toolchain first, then the framework, then the ORM and its driver.
    Nothing is executed here.
    """
    manager = _value(choice.package_manager)
    verb, dev_flag = package_manager_commands(_value(choice.package_manager))
    packages = orm_packages(_value(choice.orm), _value(choice.database))
    return [
        InstallStep("base packages", (manager, verb, dev_flag, *BASE_DEV_PACKAGES)),
        InstallStep("framework", (manager, verb, _value(choice.framework))),
        InstallStep("database and ORM", (manager, verb, *packages)),
    ]


def plan_lint(choice: ProjectChoice) -> InstallStep:
    manager = _value(choice.package_manager)
    verb, dev_flag = package_manager_commands(_value(choice.package_manager))
    return InstallStep("ESLint", (manager, verb, dev_flag, *LINT_DEV_PACKAGES))


def _value(member: object) -> str:
    # model_construct() can leave plain strings in enum fields
    return getattr(member, "value", member)  # type: ignore[return-value]


@dataclass
class InstallReport:
    """What the install stage did."""

    executed: list[InstallStep] = field(default_factory=list)
    failed: list[InstallStep] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed


# ---------------------------------------------------------------------------
# Installer
# ---------------------------------------------------------------------------


class DependencyInstaller:
    """Runs the install plan for a ``ProjectChoice`` inside the project root.

    With ``install_failure_policy="fatal"`` the first failing command raises
    :class:`ExternalCommandFailure`; with ``"warn"`` it is reported and the
    remaining commands still run.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        reporter: ProgressReporter | None = None,
        runner: CommandRunner | None = None,
        store: TemplateStore | None = None,
    ) -> None:
        self.config = config
        self.reporter = reporter or ProgressReporter()
        self.runner = runner
        self.store = store or TemplateStore()

    async def install(self, choice: ProjectChoice, root: Path) -> InstallReport:
        """Install the base toolchain, framework and ORM packages.

        Raises:
            UnsupportedCombination: Before any command runs, if the selection
                has no package set.
            ExternalCommandFailure: If a command fails under the fatal policy.
        """
        steps = plan_install(choice)
        report = InstallReport()
        for step in steps:
            await self._run_step(step, root, report)
        return report

    async def install_lint(
        self, choice: ProjectChoice, root: Path, writer: FileWriter
    ) -> InstallReport:
        """Install the ESLint toolchain and write ``.eslintrc.json``."""
        report = InstallReport()
        await self._run_step(plan_lint(choice), root, report)
        await writer.write(".eslintrc.json", self.store.render("eslintrc.json", {}))
        return report

    async def _run_step(self, step: InstallStep, root: Path, report: InstallReport) -> None:
        self.reporter.update(f"Installing {step.label}...")
        if self.config.skip_install:
            console.print(f"[dim]Skipping install:[/dim] {step}")
            return
        try:
            await run_checked(
                list(step.command),
                cwd=root,
                timeout=self.config.command_timeout,
                runner=self.runner,
            )
        except ExternalCommandFailure as exc:
            report.failed.append(step)
            if self.config.fail_fast:
                raise ExternalCommandFailure(
                    f"Error installing {step.label}: {exc}",
                    command=exc.command,
                    returncode=exc.returncode,
                    stderr=exc.stderr,
                ) from exc
            message = f"Warning: installing {step.label} failed: {exc}"
            print_warning(message)
            report.warnings.append(message)
            return
        report.executed.append(step)
