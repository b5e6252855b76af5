"""Project structure builder.

Takes a ``ProjectChoice`` and lays down the Node.js backend skeleton: the
source folders, the framework entry point, the ORM configuration, and the
env / gitignore / README / manifest files.  Steps run in a fixed order and
stop at the first fatal error.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..config import CURRENT_DIRECTORY, Database, GeneratorConfig, Orm, ProjectChoice
from ..errors import (
    DirectoryConflict,
    ExternalCommandFailure,
    PermissionDenied,
    WriteFailure,
)
from ..progress import ProgressReporter
from ..utils import CommandRunner, print_warning, run_checked
from .files import ConfirmOverwrite, FileWriter
from .templates import TemplateStore

# ---------------------------------------------------------------------------
# Layout and lookup tables
# ---------------------------------------------------------------------------

SOURCE_FOLDERS: tuple[str, ...] = (
    "controllers",
    "routes",
    "services",
    "utils",
    "models",
    "middlewares",
    "config",
)

TYPEORM_FOLDERS: tuple[str, ...] = ("entities", "migrations", "subscribers")

# Driver / dialect names the generated TypeScript code expects
DIALECTS: dict[Database, str] = {
    Database.MYSQL: "mysql",
    Database.POSTGRESQL: "postgres",
    Database.SQLITE: "sqlite",
}

DEFAULT_PORTS: dict[Database, int] = {
    Database.MYSQL: 3306,
    Database.POSTGRESQL: 5432,
}

DOC_LINKS: dict[str, str] = {
    "express": "https://expressjs.com/",
    "fastify": "https://fastify.dev/",
    "mysql": "https://www.mysql.com/",
    "postgresql": "https://www.postgresql.org/",
    "sqlite": "https://www.sqlite.org/",
    "prisma": "https://www.prisma.io/",
    "drizzle": "https://orm.drizzle.team/",
    "typeorm": "https://typeorm.io/",
    "sequelize": "https://sequelize.org/",
}

TYPEORM_DATA_SOURCE = """\
// TypeORM data source for {{ database }}
import "reflect-metadata";
import { DataSource } from "typeorm";

export const AppDataSource = new DataSource({
    type: "{{ dialect }}",
{% if database == "sqlite" %}
    database: process.env.DB_NAME ?? "{{ database_name }}.sqlite",
{% else %}
    host: process.env.DB_HOST ?? "localhost",
    port: Number(process.env.DB_PORT ?? {{ database_port }}),
    username: process.env.DB_USER,
    password: process.env.DB_PASSWORD,
    database: process.env.DB_NAME ?? "{{ database_name }}",
{% endif %}
    entities: ["{{ source_dir }}/entities/**/*.ts"],
    migrations: ["{{ source_dir }}/migrations/**/*.ts"],
    subscribers: ["{{ source_dir }}/subscribers/**/*.ts"],
    synchronize: {{ "true" if synchronize else "false" }},
});
"""


@dataclass
class BuildResult:
    """Outcome of :meth:`ProjectStructureBuilder.build`."""

    root: Path
    project_name: str
    written: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class ProjectStructureBuilder:
    """Creates the on-disk project for one ``ProjectChoice``.

    Args:
        config: Runtime settings (base directory, source folder, policies).
        store: Template store; defaults to the packaged templates.
        confirm: Called with a relative path before an existing file is
            replaced.  Declining keeps the file.
        reporter: Progress reporter updated as each step starts.
        runner: Command runner used for the manifest name patch.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        store: TemplateStore | None = None,
        confirm: ConfirmOverwrite | None = None,
        reporter: ProgressReporter | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self.config = config
        self.store = store or TemplateStore()
        self.confirm = confirm
        self.reporter = reporter or ProgressReporter()
        self.runner = runner

    # -- Public API --------------------------------------------------------

    async def build(self, choice: ProjectChoice) -> BuildResult:
        """Generate the project structure and return what was written.

        Raises:
            DirectoryConflict: The target folder exists and is not empty.
            PermissionDenied: The OS refused a folder or file creation.
            TemplateMissing: A required template is not in the store.
            WriteFailure: A file could not be written.
            ExternalCommandFailure: The manifest patch failed and the
                failure policy is ``fatal``.
        """
        self.reporter.update("Creating project structure...")
        root, project_name = await self.resolve_target(choice)
        result = BuildResult(root=root, project_name=project_name)
        writer = FileWriter(root, self.confirm, self.reporter, verbose=self.config.verbose)
        context = self.build_context(choice, project_name)

        # 1. Source folders
        await self.create_directories(writer, choice)

        # 2. Framework entry point (optional template)
        self.reporter.update(f"Writing {choice.framework.value} entry point...")
        await self._write_entry_file(writer, choice, context, result)

        # 3. ORM configuration
        self.reporter.update(f"Configuring {choice.orm.value}...")
        await self._write_orm_config(writer, choice, context)

        # 4. Project files
        self.reporter.update("Writing project files...")
        await writer.write(".env", "")
        await writer.write(".gitignore", self.store.render("gitignore", context))
        await writer.write("README.md", self.store.render("README.md", context))
        await writer.write("tsconfig.json", self.store.render("tsconfig.json", context))
        manifest_written = await writer.write(
            "package.json", self.store.render("package.json", context)
        )

        # 5. Manifest name patch
        if manifest_written and self.config.patch_manifest_name:
            await self._patch_manifest_name(root, project_name, result)

        result.written = list(writer.written)
        result.skipped = list(writer.skipped)
        return result

    async def resolve_target(self, choice: ProjectChoice) -> tuple[Path, str]:
        """Return the project root and the effective project name.

        ``"."`` scaffolds into the base directory itself and takes its
        folder name.  Any other name becomes a new folder below it; an
        existing empty folder is reused.
        """
        base = self.config.base_dir.resolve()
        if choice.name == CURRENT_DIRECTORY:
            if not base.is_dir():
                raise WriteFailure(base, "current directory is not accessible")
            return base, base.name

        root = base / choice.name
        if root.exists():
            if not root.is_dir() or any(root.iterdir()):
                raise DirectoryConflict(root)
            return root, choice.name
        try:
            await asyncio.to_thread(root.mkdir)
        except PermissionError as exc:
            raise PermissionDenied(root, exc.strerror or "") from exc
        except FileExistsError as exc:
            raise DirectoryConflict(root) from exc
        except OSError as exc:
            raise WriteFailure(root, str(exc)) from exc
        return root, choice.name

    async def create_directories(self, writer: FileWriter, choice: ProjectChoice) -> list[Path]:
        """Create the source folder set; existing folders are kept as they are."""
        folders = list(SOURCE_FOLDERS)
        if choice.orm is Orm.TYPEORM:
            folders.extend(TYPEORM_FOLDERS)
        source = Path(self.config.source_dir)
        paths = [await writer.make_dir(source)]
        for folder in folders:
            paths.append(await writer.make_dir(source / folder))
        return paths

    def build_context(self, choice: ProjectChoice, project_name: str) -> dict[str, Any]:
        """Assemble the variables every template is rendered with."""
        return {
            "project_name": project_name,
            "package_manager": choice.package_manager.value,
            "framework": choice.framework.value,
            "database": choice.database.value,
            "orm": choice.orm.value,
            "use_lint": choice.use_lint,
            "synchronize": choice.synchronize,
            "source_dir": self.config.source_dir,
            "dialect": DIALECTS[choice.database],
            "database_port": DEFAULT_PORTS.get(choice.database),
            "database_name": _database_name(project_name, choice.database),
            "links": {
                "framework": DOC_LINKS[choice.framework.value],
                "database": DOC_LINKS[choice.database.value],
                "orm": DOC_LINKS[choice.orm.value],
            },
        }

    # -- Steps -------------------------------------------------------------

    async def _write_entry_file(
        self,
        writer: FileWriter,
        choice: ProjectChoice,
        context: dict[str, Any],
        result: BuildResult,
    ) -> None:
        key = f"main/{choice.framework.value}"
        if not self.store.has(key):
            message = (
                f"Warning: Template file for {choice.framework.value} framework not found. "
                "Skipping main file creation."
            )
            print_warning(message)
            result.warnings.append(message)
            return
        content = self.store.render(key, context)
        await writer.write(Path(self.config.source_dir) / "main.ts", content)

    async def _write_orm_config(
        self, writer: FileWriter, choice: ProjectChoice, context: dict[str, Any]
    ) -> None:
        db_config = Path(self.config.source_dir) / "config" / "db.ts"
        if choice.orm is Orm.DRIZZLE:
            content = self.store.render(f"config/db/drizzle-{choice.database.value}", context)
            await writer.write(db_config, content)
        elif choice.orm is Orm.SEQUELIZE:
            await writer.write(db_config, self.store.render("config/db/sequelize", context))
        elif choice.orm is Orm.TYPEORM:
            content = self.store.render_string(TYPEORM_DATA_SOURCE, context)
            await writer.write(Path(self.config.source_dir) / "data-source.ts", content)
        # prisma generates its own schema on `prisma init`

    async def _patch_manifest_name(self, root: Path, project_name: str, result: BuildResult) -> None:
        try:
            await run_checked(
                ["npm", "pkg", "set", f"name={project_name}"],
                cwd=root,
                timeout=self.config.command_timeout,
                runner=self.runner,
            )
        except ExternalCommandFailure as exc:
            if self.config.fail_fast:
                raise
            message = f"Warning: could not set the package name: {exc}"
            print_warning(message)
            result.warnings.append(message)


def _database_name(project_name: str, database: Database) -> str:
    """Derive a database identifier from the project name.

    Parts that name a different database engine are dropped so the generated
    connection config only ever mentions the selected one.
    """
    foreign = {
        word
        for other in Database
        if other is not database
        for word in (other.value, DIALECTS[other])
    }
    cleaned = "".join(ch if ch.isalnum() else "_" for ch in project_name.lower())
    parts = [
        part
        for part in cleaned.split("_")
        if part and not any(word in part for word in foreign)
    ]
    return "_".join(parts) or "app"
