"""Shared pytest fixtures for crossdoc tests.

This module provides:
- Paths to the checked-in fixture project (``tests/crossdoc/fixtures``)
- The decoded extractor output of that project
- Its validated configuration
- Environment and root logger isolation between tests
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from crossdoc.config import CrossDocConfig, load_config
from crossdoc.serialization import SourceTrees, load_source_trees

if TYPE_CHECKING:
    from collections.abc import Iterator

FIXTURES_DIR = Path(__file__).parent / "crossdoc" / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the directory holding the fixture project files."""
    return FIXTURES_DIR


@pytest.fixture
def sources_path() -> Path:
    """Return the path of the fixture extractor output."""
    return FIXTURES_DIR / "sources.json"


@pytest.fixture
def config_path() -> Path:
    """Return the path of the fixture ``crossdoc.toml``."""
    return FIXTURES_DIR / "crossdoc.toml"


@pytest.fixture
def source_trees(sources_path: Path) -> SourceTrees:
    """Decode the fixture extractor output."""
    return load_source_trees(sources_path)


@pytest.fixture
def config(config_path: Path) -> CrossDocConfig:
    """Load the fixture project configuration."""
    return load_config(config_path)


@pytest.fixture(autouse=True)
def _clean_crossdoc_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop ``CROSSDOC_*`` variables inherited from the developer shell."""
    for name in ("LOG_LEVEL", "LOG_JSON", "LAYOUT", "UNMATCHED_MODULES"):
        monkeypatch.delenv(f"CROSSDOC_{name}", raising=False)


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    """Undo ``setup_logging`` calls made by the CLI under test."""
    root = logging.getLogger()
    before = set(root.handlers)
    level = root.level
    yield
    for handler in root.handlers[:]:
        if type(handler) is logging.StreamHandler and handler not in before:
            root.removeHandler(handler)
    root.setLevel(level)
