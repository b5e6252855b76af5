"""nodeforge configuration.

Holds the fixed allow-lists the prompts offer, the immutable
``ProjectChoice`` record gathered once per run, and ``GeneratorConfig``,
the runtime settings that shape how the scaffold and install stages behave.
All models use Pydantic v2 so that an invalid selection is rejected at
construction time, before anything touches the filesystem.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_PROJECT_NAME_LENGTH = 3
_PATH_SEPARATORS = ("/", "\\")
CURRENT_DIRECTORY = "."


# ---------------------------------------------------------------------------
# Allow-lists
# ---------------------------------------------------------------------------


class PackageManager(str, Enum):
    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"
    BUN = "bun"


class Framework(str, Enum):
    EXPRESS = "express"
    FASTIFY = "fastify"


class Database(str, Enum):
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"


class Orm(str, Enum):
    PRISMA = "prisma"
    DRIZZLE = "drizzle"
    TYPEORM = "typeorm"
    SEQUELIZE = "sequelize"


def choices_of(enum_cls: type[Enum]) -> list[str]:
    """Return the allowed string values of *enum_cls* in declaration order."""
    return [member.value for member in enum_cls]


def validate_project_name(name: str) -> str | None:
    """Return an error message for an unusable project name, else ``None``.

    ``"."`` means "scaffold into the current directory" and is always
    accepted; anything else must be at least three characters long and name
    a single folder below the base directory.
    """
    if name == CURRENT_DIRECTORY:
        return None
    if len(name) < MIN_PROJECT_NAME_LENGTH:
        return f"Project name should be at least {MIN_PROJECT_NAME_LENGTH} characters"
    if any(sep in name for sep in _PATH_SEPARATORS):
        return "Project name must not contain path separators"
    return None


# ---------------------------------------------------------------------------
# Operator selections
# ---------------------------------------------------------------------------


class ProjectChoice(BaseModel):
    """Validated, immutable record of every selection made for one run."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Project directory name, or '.' for the current directory")
    package_manager: PackageManager
    framework: Framework
    database: Database
    orm: Orm
    use_lint: bool = Field(default=False)
    synchronize: bool = Field(
        default=False,
        description="TypeORM only: synchronize the schema on application start",
    )

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        error = validate_project_name(value)
        if error:
            raise ValueError(error)
        return value

    @property
    def uses_current_directory(self) -> bool:
        return self.name == CURRENT_DIRECTORY


# ---------------------------------------------------------------------------
# Runtime settings
# ---------------------------------------------------------------------------


InstallFailurePolicy = Literal["fatal", "warn"]

_TRUTHY = {"1", "true", "yes", "on"}


class GeneratorConfig(BaseModel):
    """Runtime settings for a ``nodeforge create`` run.

    Instances are created once by the CLI entry point (usually through
    :meth:`from_env`) and passed to the builder, installer and pipeline.
    """

    base_dir: Path = Field(default_factory=Path.cwd)
    source_dir: str = Field(default="src", description="Folder that holds the application code")
    install_failure_policy: InstallFailurePolicy = Field(
        default="fatal",
        description="'fatal' aborts the run on a failed install command, 'warn' reports and continues",
    )
    command_timeout: int = Field(default=600, ge=10, description="Per-command timeout in seconds")
    skip_install: bool = Field(default=False, description="Print install commands instead of running them")
    patch_manifest_name: bool = Field(
        default=True, description="Run 'npm pkg set name=<project>' after writing package.json"
    )
    verbose: bool = Field(default=False)

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        """Build a ``GeneratorConfig`` from environment variables.

        Recognised variables (all optional):
            NODEFORGE_BASE_DIR, NODEFORGE_SOURCE_DIR,
            NODEFORGE_INSTALL_FAILURE_POLICY, NODEFORGE_COMMAND_TIMEOUT,
            NODEFORGE_SKIP_INSTALL, NODEFORGE_PATCH_MANIFEST_NAME,
            NODEFORGE_VERBOSE.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("NODEFORGE_BASE_DIR"):
            kwargs["base_dir"] = Path(os.environ["NODEFORGE_BASE_DIR"])
        if os.environ.get("NODEFORGE_SOURCE_DIR"):
            kwargs["source_dir"] = os.environ["NODEFORGE_SOURCE_DIR"]
        if os.environ.get("NODEFORGE_INSTALL_FAILURE_POLICY"):
            kwargs["install_failure_policy"] = os.environ["NODEFORGE_INSTALL_FAILURE_POLICY"].lower()
        if os.environ.get("NODEFORGE_COMMAND_TIMEOUT"):
            kwargs["command_timeout"] = int(os.environ["NODEFORGE_COMMAND_TIMEOUT"])
        if os.environ.get("NODEFORGE_SKIP_INSTALL"):
            kwargs["skip_install"] = os.environ["NODEFORGE_SKIP_INSTALL"].lower() in _TRUTHY
        if os.environ.get("NODEFORGE_PATCH_MANIFEST_NAME"):
            kwargs["patch_manifest_name"] = (
                os.environ["NODEFORGE_PATCH_MANIFEST_NAME"].lower() in _TRUTHY
            )
        if os.environ.get("NODEFORGE_VERBOSE"):
            kwargs["verbose"] = os.environ["NODEFORGE_VERBOSE"].lower() in _TRUTHY
        return cls(**kwargs)

    @property
    def fail_fast(self) -> bool:
        return self.install_failure_policy == "fatal"
