"""Writes generated files and folders under a project root.

Every file goes through :meth:`FileWriter.write`, which asks before it
replaces anything that already exists.  Declining skips the file; the run
carries on.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path

from ..errors import PermissionDenied, WriteFailure
from ..progress import ProgressReporter
from ..utils import print_info

ConfirmOverwrite = Callable[[Path], bool]


def never_overwrite(path: Path) -> bool:
    return False


class FileWriter:
    """Creates files and folders relative to *root*.

    Attributes:
        written: Files written (or overwritten) during this run.
        skipped: Existing files the operator chose to keep.
        created_dirs: Folders that did not exist before.
    """

    def __init__(
        self,
        root: Path,
        confirm: ConfirmOverwrite | None = None,
        reporter: ProgressReporter | None = None,
        verbose: bool = False,
    ) -> None:
        self.root = root
        self.confirm = confirm or never_overwrite
        self.reporter = reporter or ProgressReporter()
        self.verbose = verbose
        self.written: list[Path] = []
        self.skipped: list[Path] = []
        self.created_dirs: list[Path] = []

    async def make_dir(self, relative: str | Path) -> Path:
        """Create a folder; one that already exists is left alone."""
        path = self.root / relative
        if path.is_dir():
            self._note(f"Folder '{relative}' already exists. Skipping creation.")
            return path
        try:
            await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)
        except PermissionError as exc:
            raise PermissionDenied(path, exc.strerror or "") from exc
        except OSError as exc:
            raise WriteFailure(path, str(exc)) from exc
        self.created_dirs.append(path)
        self._note(f"Created folder '{relative}'")
        return path

    async def write(self, relative: str | Path, content: str) -> bool:
        """Write *content* to ``root/relative``.

        Returns:
            ``True`` if the file was written, ``False`` if the operator kept
            the existing one.

        Raises:
            PermissionDenied: The OS refused the write.
            WriteFailure: Any other I/O error, or the path is a folder.
        """
        path = self.root / relative
        if path.is_dir():
            raise WriteFailure(path, "a folder with that name already exists")
        if path.exists():
            with self.reporter.paused():
                overwrite = self.confirm(Path(relative))
            if not overwrite:
                self._note(f"Skipping creation of {relative}")
                self.skipped.append(path)
                return False
            self._note(f"Overwriting {relative}")

        try:
            await asyncio.to_thread(_write_file, path, content)
        except PermissionError as exc:
            raise PermissionDenied(path, exc.strerror or "") from exc
        except OSError as exc:
            raise WriteFailure(path, str(exc)) from exc
        self.written.append(path)
        self._note(f"Successfully created {relative}")
        return True

    def _note(self, message: str) -> None:
        if self.verbose:
            print_info(message)


def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
