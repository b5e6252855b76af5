"""Interactive collection of the operator's project choices.

Uses ``rich.prompt`` for rendering.  Each answer is run through a parser
that raises :class:`~nodeforge.errors.InvalidInput` on bad values; the
prompt reports the message and asks again, indefinitely.  A closed input
stream is the only way out short of Ctrl-C and raises
:class:`~nodeforge.errors.InputAborted`.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any, TextIO, TypeVar

from rich.console import Console
from rich.prompt import InvalidResponse, Prompt

from .config import (
    Database,
    Framework,
    Orm,
    PackageManager,
    ProjectChoice,
    choices_of,
    validate_project_name,
)
from .errors import InputAborted, InvalidInput
from .progress import ProgressReporter
from .utils import console as default_console

E = TypeVar("E", bound=Enum)

_YES = {"y", "yes"}
_NO = {"n", "no"}


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------


def parse_project_name(raw: str) -> str:
    name = raw.strip()
    error = validate_project_name(name)
    if error:
        raise InvalidInput(error)
    return name


def parse_choice(enum_cls: type[E], raw: str) -> E:
    """Map *raw* onto a member of *enum_cls*, ignoring case and whitespace."""
    value = raw.strip().lower()
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(choices_of(enum_cls))
        raise InvalidInput(f"'{raw.strip()}' is not one of: {allowed}") from None


def parse_yes_no(raw: str) -> bool:
    value = raw.strip().lower()
    if value in _YES:
        return True
    if value in _NO:
        return False
    raise InvalidInput("Please answer with 'y' or 'n'")


# ---------------------------------------------------------------------------
# Prompt plumbing
# ---------------------------------------------------------------------------


class _ParsedPrompt(Prompt):
    """A rich ``Prompt`` whose answer is converted by an arbitrary parser."""

    def __init__(self, label: str, parser: Callable[[str], Any], **kwargs: Any) -> None:
        super().__init__(label, **kwargs)
        self.parser = parser

    def process_response(self, value: str) -> Any:
        try:
            return self.parser(value)
        except InvalidInput as exc:
            raise InvalidResponse(f"[prompt.invalid]{exc}") from exc


class _StrictStream:
    """Makes a text stream answer like ``input()``.

    Lines come back without their newline and end-of-file raises ``EOFError``.
    """

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def readline(self) -> str:
        line = self._stream.readline()
        if not line:
            raise EOFError("input stream closed")
        return line.rstrip("\r\n")


# ---------------------------------------------------------------------------
# Collector
# ---------------------------------------------------------------------------


class PromptCollector:
    """Asks the operator for every field of a ``ProjectChoice``.

    Args:
        console: Console used to render prompts.  Defaults to the shared one.
        stream: Optional input stream; ``None`` reads from the terminal.
        reporter: Progress reporter paused while a question is on screen.
    """

    def __init__(
        self,
        console: Console | None = None,
        stream: TextIO | None = None,
        reporter: ProgressReporter | None = None,
    ) -> None:
        self.console = console or default_console
        self.stream = _StrictStream(stream) if stream is not None else None
        self.reporter = reporter or ProgressReporter()

    def collect(self) -> ProjectChoice:
        """Run the full questionnaire and return the validated record."""
        name = self.ask_project_name()
        package_manager = self.ask_choice("Select your package manager", PackageManager)
        framework = self.ask_choice("Select your NodeJS framework", Framework)
        database = self.ask_choice("Select your database", Database)
        orm = self.ask_choice("Select your ORM", Orm)
        use_lint = self.ask_confirm("Do you want to use ESLint?", default=False)
        synchronize = False
        if orm is Orm.TYPEORM:
            synchronize = self.ask_confirm(
                "Synchronize the database schema on application start?", default=False
            )
        return ProjectChoice(
            name=name,
            package_manager=package_manager,
            framework=framework,
            database=database,
            orm=orm,
            use_lint=use_lint,
            synchronize=synchronize,
        )

    def ask_project_name(self) -> str:
        return self._ask("Project name (enter '.' for current folder)", parse_project_name)

    def ask_choice(self, label: str, enum_cls: type[E]) -> E:
        options = choices_of(enum_cls)
        return self._ask(
            label,
            lambda raw: parse_choice(enum_cls, raw),
            choices=options,
            default=options[0],
        )

    def ask_confirm(self, label: str, default: bool | None = None) -> bool:
        if default is None:
            return self._ask(label, parse_yes_no, choices=["y", "n"])
        return self._ask(
            label, parse_yes_no, choices=["y", "n"], default="y" if default else "n"
        )

    def confirm_overwrite(self, path: Path) -> bool:
        """Ask whether an existing file may be replaced."""
        return self.ask_confirm(f"File {path} already exists. Do you want to overwrite it?")

    def _ask(
        self,
        label: str,
        parser: Callable[[str], Any],
        *,
        choices: list[str] | None = None,
        default: Any = ...,
    ) -> Any:
        prompt = _ParsedPrompt(label, parser, console=self.console, choices=choices)
        with self.reporter.paused():
            try:
                result = prompt(default=default, stream=self.stream)
            except EOFError as exc:
                raise InputAborted("Input stream closed while waiting for an answer") from exc
            except OSError as exc:
                raise InputAborted(f"Could not read from the input stream: {exc}") from exc
        # rich returns the default object itself, unparsed, on an empty answer
        if default is not ... and result is default:
            return parser(default)
        return result
