"""Shared pytest fixtures for the nodeforge test suite.

Provides reusable fixtures for:
- Generator configuration rooted in a temporary directory
- ProjectChoice factories
- Scripted prompt input and a silent console
- Mock package-manager runners
"""

from __future__ import annotations

import io
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest
from rich.console import Console

from nodeforge.config import GeneratorConfig, ProjectChoice
from nodeforge.prompts import PromptCollector
from nodeforge.scaffolder.templates import TemplateStore, _DEFAULT_TEMPLATE_DIR


# ---------------------------------------------------------------------------
# Configuration & choices
# ---------------------------------------------------------------------------

@pytest.fixture
def config(tmp_path: Path) -> GeneratorConfig:
    """Generator settings that scaffold into ``tmp_path``."""
    return GeneratorConfig(base_dir=tmp_path)


@pytest.fixture
def make_choice() -> Callable[..., ProjectChoice]:
    """Factory for ``ProjectChoice`` records with sensible defaults."""

    def _make(**overrides: Any) -> ProjectChoice:
        fields: dict[str, Any] = {
            "name": "myapp",
            "package_manager": "npm",
            "framework": "express",
            "database": "sqlite",
            "orm": "prisma",
            "use_lint": False,
        }
        fields.update(overrides)
        return ProjectChoice(**fields)

    return _make


# ---------------------------------------------------------------------------
# Prompt input
# ---------------------------------------------------------------------------

@pytest.fixture
def quiet_console() -> Console:
    """A console that renders into memory instead of the terminal."""
    return Console(file=io.StringIO(), width=120)


@pytest.fixture
def make_collector(quiet_console: Console) -> Callable[..., PromptCollector]:
    """Build a ``PromptCollector`` that reads the given answer lines."""

    def _make(*lines: str) -> PromptCollector:
        stream = io.StringIO("".join(f"{line}\n" for line in lines))
        return PromptCollector(console=quiet_console, stream=stream)

    return _make


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

@pytest.fixture
def packaged_templates() -> dict[str, str]:
    """Sources of every packaged template, keyed by logical name."""
    store = TemplateStore()
    return {
        key: (_DEFAULT_TEMPLATE_DIR / f"{key}.j2").read_text(encoding="utf-8")
        for key in store.list_templates()
    }


# ---------------------------------------------------------------------------
# Mock subprocess helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def runner() -> AsyncMock:
    """Command runner that reports success for every command."""
    return AsyncMock(return_value=(0, "", ""))
