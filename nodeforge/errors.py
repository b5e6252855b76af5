"""Error types raised while scaffolding a project.

Everything derives from :class:`NodeforgeError` so the pipeline can turn any
of them into a failed run with a single ``except`` clause.
"""

from __future__ import annotations

from pathlib import Path


class NodeforgeError(Exception):
    """Base class for every fatal scaffolding error."""


class InvalidInput(NodeforgeError):
    """Raised for a value outside an allow-list; the prompts recover by asking again."""


class InputAborted(NodeforgeError):
    """Raised when the input stream closes while a prompt is waiting."""


class DirectoryConflict(NodeforgeError):
    """Raised when the target directory already exists and is not empty."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Directory '{path}' already exists and is not empty")


class PermissionDenied(NodeforgeError):
    """Raised when the OS refuses to create a directory or file."""

    def __init__(self, path: Path, reason: str = "") -> None:
        self.path = path
        message = f"Permission denied: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class WriteFailure(NodeforgeError):
    """Raised when a generated file cannot be written."""

    def __init__(self, path: Path, reason: str = "") -> None:
        self.path = path
        super().__init__(f"Error creating {path}: {reason}" if reason else f"Error creating {path}")


class TemplateMissing(NodeforgeError):
    """Raised when a required template is not in the template store."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Template '{key}' not found")


class UnsupportedCombination(NodeforgeError):
    """Raised when no package set is known for the selected ORM and database."""

    def __init__(self, orm: str, database: str = "", message: str = "") -> None:
        self.orm = orm
        self.database = database
        if not message:
            if database:
                message = f"Unsupported ORM/database combination: {orm} + {database}"
            else:
                message = f"Unsupported ORM: {orm}"
        super().__init__(message)


class ExternalCommandFailure(NodeforgeError):
    """Raised when a package-manager command exits non-zero or cannot start."""

    def __init__(self, message: str, command: str = "", returncode: int | None = None, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)
