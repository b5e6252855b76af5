"""Progress reporting for the scaffold stages.

Stages never touch a global spinner.  The pipeline hands each of them a
``ProgressReporter`` and they call ``start`` / ``update`` / ``stop`` on it,
wrapping interactive prompts in :meth:`ProgressReporter.paused` so the
spinner does not redraw over the question.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from rich.progress import Progress, TaskID

from .utils import create_progress


class ProgressReporter:
    """No-op reporter; subclasses draw something."""

    def __init__(self) -> None:
        self.message = ""
        self.running = False

    def start(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        self.running = True

    def update(self, message: str) -> None:
        self.message = message

    def stop(self) -> None:
        self.running = False

    @contextmanager
    def paused(self) -> Iterator[None]:
        """Stop the indicator for the duration of the block, then resume it."""
        was_running = self.running
        if was_running:
            self.stop()
        try:
            yield
        finally:
            if was_running:
                self.start()


class RichProgressReporter(ProgressReporter):
    """Spinner backed by a ``rich.progress.Progress`` with a single task."""

    def __init__(self, progress: Progress | None = None) -> None:
        super().__init__()
        self._progress = progress or create_progress()
        self._task: TaskID | None = None

    def start(self, message: str | None = None) -> None:
        super().start(message)
        if self._task is None:
            self._task = self._progress.add_task(self.message, total=None)
        else:
            self._progress.update(self._task, description=self.message)
        self._progress.start()

    def update(self, message: str) -> None:
        super().update(message)
        if self._task is not None:
            self._progress.update(self._task, description=message)

    def stop(self) -> None:
        if not self.running:
            return
        super().stop()
        self._progress.stop()
