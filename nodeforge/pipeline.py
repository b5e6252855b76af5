"""nodeforge create pipeline.

Drives a single scaffolding run as a strictly linear state machine:

CollectChoice -> BuildStructure -> InstallDependencies -> [InstallLint] -> Done

Any stage may move to ``Failed``, which, like ``Done``, is terminal.  There
are no retries and nothing runs in parallel.

Usage::

    nodeforge create
    python -m nodeforge create
"""

from __future__ import annotations

import asyncio
import sys
import time
from dataclasses import dataclass, field
from enum import Enum

from pydantic import ValidationError

from nodeforge import __version__
from nodeforge.config import GeneratorConfig, ProjectChoice
from nodeforge.errors import NodeforgeError
from nodeforge.installer import DependencyInstaller, InstallReport, plan_install
from nodeforge.progress import ProgressReporter, RichProgressReporter
from nodeforge.prompts import PromptCollector
from nodeforge.scaffolder import BuildResult, FileWriter, ProjectStructureBuilder, TemplateStore
from nodeforge.utils import (
    CommandRunner,
    console,
    format_duration,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)

# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------


class Stage(str, Enum):
    COLLECT_CHOICE = "collect_choice"
    BUILD_STRUCTURE = "build_structure"
    INSTALL_DEPENDENCIES = "install_dependencies"
    INSTALL_LINT = "install_lint"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STAGES = frozenset({Stage.DONE, Stage.FAILED})


@dataclass
class PipelineResult:
    """Final state of a run, plus whatever each stage produced."""

    stage: Stage = Stage.COLLECT_CHOICE
    history: list[Stage] = field(default_factory=list)
    choice: ProjectChoice | None = None
    build: BuildResult | None = None
    install: InstallReport | None = None
    error: str | None = None
    failed_stage: Stage | None = None
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.stage is Stage.DONE


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class CreatePipeline:
    """Runs one ``nodeforge create`` from prompts to installed dependencies.

    Attributes:
        config: Runtime settings shared by every stage.
        collector: Source of the ``ProjectChoice`` and overwrite answers.
        reporter: Spinner handed to each stage.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        collector: PromptCollector | None = None,
        reporter: ProgressReporter | None = None,
        runner: CommandRunner | None = None,
        store: TemplateStore | None = None,
    ) -> None:
        self.config = config
        self.reporter = reporter or ProgressReporter()
        self.collector = collector or PromptCollector(reporter=self.reporter)
        self.store = store or TemplateStore()
        self.builder = ProjectStructureBuilder(
            config,
            store=self.store,
            confirm=self.collector.confirm_overwrite,
            reporter=self.reporter,
            runner=runner,
        )
        self.installer = DependencyInstaller(
            config, reporter=self.reporter, runner=runner, store=self.store
        )
        self.result = PipelineResult()

    async def run(self, choice: ProjectChoice | None = None) -> PipelineResult:
        """Execute every stage in order and return the final result.

        Args:
            choice: Pre-collected selections.  When omitted the operator is
                prompted for them.
        """
        self.result = PipelineResult()
        start = time.monotonic()
        try:
            self._enter(Stage.COLLECT_CHOICE)
            choice = choice or self.collector.collect()
            # an unsupported selection fails here, before anything is written
            plan_install(choice)
            self.result.choice = choice

            self._enter(Stage.BUILD_STRUCTURE)
            self.reporter.start("Creating project structure...")
            console.print("Starting to create project structure...")
            build = await self.builder.build(choice)
            self.result.build = build
            print_success("Project structure created successfully.")

            self._enter(Stage.INSTALL_DEPENDENCIES)
            self.reporter.update("Installing dependencies...")
            console.print("Starting to install dependencies...")
            self.result.install = await self.installer.install(choice, build.root)
            if self.result.install.success:
                print_success("Dependencies installed successfully.")
            else:
                print_warning("Some dependencies could not be installed; see the warnings above.")

            if choice.use_lint:
                self._enter(Stage.INSTALL_LINT)
                self.reporter.update("Setting up ESLint...")
                console.print("Setting up ESLint...")
                writer = FileWriter(
                    build.root,
                    self.collector.confirm_overwrite,
                    self.reporter,
                    verbose=self.config.verbose,
                )
                lint = await self.installer.install_lint(choice, build.root, writer)
                self.result.install.executed.extend(lint.executed)
                self.result.install.failed.extend(lint.failed)
                self.result.install.warnings.extend(lint.warnings)
                if lint.success:
                    print_success("ESLint setup completed successfully.")
                else:
                    print_warning("ESLint tooling could not be installed; see the warnings above.")

            self._enter(Stage.DONE)
        except NodeforgeError as exc:
            self._fail(exc)
        finally:
            self.reporter.stop()
            self.result.duration = time.monotonic() - start

        if self.result.success:
            self._print_summary()
        return self.result

    # -- State handling ----------------------------------------------------

    def _enter(self, stage: Stage) -> None:
        if self.result.stage in TERMINAL_STAGES:
            raise RuntimeError(f"Pipeline already finished in stage {self.result.stage.value}")
        self.result.stage = stage
        self.result.history.append(stage)

    def _fail(self, exc: Exception) -> None:
        self.result.failed_stage = self.result.stage
        self.result.error = str(exc)
        self.result.stage = Stage.FAILED
        self.result.history.append(Stage.FAILED)
        self.reporter.stop()
        label = self.result.failed_stage.value.replace("_", " ")
        print_error(f"Error during {label}: {exc}")

    def _print_summary(self) -> None:
        choice = self.result.choice
        build = self.result.build
        if choice is None or build is None:
            return
        print_summary_table(
            {
                "Project": build.project_name,
                "Location": str(build.root),
                "Package manager": choice.package_manager.value,
                "Framework": choice.framework.value,
                "Database": choice.database.value,
                "ORM": choice.orm.value,
                "ESLint": "yes" if choice.use_lint else "no",
                "Files written": str(len(build.written)),
                "Elapsed": format_duration(self.result.duration),
            },
            title="Project created",
        )
        next_steps = []
        if not choice.uses_current_directory:
            next_steps.append(f"cd {build.project_name}")
        next_steps.append(f"{choice.package_manager.value} run dev")
        console.print("[bold]Next steps:[/bold] " + " && ".join(next_steps))


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``nodeforge`` and ``python -m nodeforge``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="nodeforge",
        description="Scaffold a TypeScript Node.js backend project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  nodeforge create\n"
            "  NODEFORGE_INSTALL_FAILURE_POLICY=warn nodeforge create\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser(
        "create",
        help="Create a Node.js project structured for backend development",
        description=(
            "Create a Node.js project structured for backend development "
            "and customized to your needs"
        ),
    )

    parser.parse_args(argv)

    try:
        config = GeneratorConfig.from_env()
    except (ValidationError, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] Invalid configuration: {exc}")
        sys.exit(1)

    pipeline = CreatePipeline(config, reporter=RichProgressReporter())
    try:
        result = asyncio.run(pipeline.run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Aborted.[/bold red]")
        sys.exit(130)

    if result.success:
        console.print("[bold green]Project created successfully![/bold green]")
    else:
        console.print("[bold red]Project creation failed.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
