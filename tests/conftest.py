"""Central Pytest Fixtures for photofinish.

Fixtures included:
- Environment: isolated configuration (no PHOTOFINISH_* variables, fresh cache),
  search_paths, restore_package_logger
- Reconciliation: reconciler, end_to_end_candidates, local_photo_candidates
- Files: write_candidates (YAML/JSON candidate files for the CLI)
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

import pytest
import yaml

from photofinish import config
from photofinish.config import reset_config
from photofinish.reconcile import (
    ContainerValues,
    MediaCandidates,
    PropertyStoreValues,
    TemporalReconciler,
)
from photofinish.utils.logging import PACKAGE_NAME

# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Clear PHOTOFINISH_* variables and the config cache around each test."""
    for name in list(os.environ):
        if name.upper().startswith("PHOTOFINISH_"):
            monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def search_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Limit config discovery to one temp file; returns its path."""
    path = tmp_path / "photofinish.yaml"
    monkeypatch.setattr(config, "CONFIG_SEARCH_PATHS", [path])
    return path


@pytest.fixture
def restore_package_logger() -> Iterator[logging.Logger]:
    """Restore the package logger's handlers and level after a test."""
    package_logger = logging.getLogger(PACKAGE_NAME)
    handlers = list(package_logger.handlers)
    level = package_logger.level
    propagate = package_logger.propagate
    yield package_logger
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = propagate


# =============================================================================
# Reconciliation
# =============================================================================


@pytest.fixture
def reconciler() -> TemporalReconciler:
    """Reconciler that interprets aware file system times in UTC."""
    return TemporalReconciler(local_zone=ZoneInfo("UTC"))


@pytest.fixture
def end_to_end_candidates() -> MediaCandidates:
    """A phone video: UTC container time and a local-time filename."""
    return MediaCandidates(
        container=ContainerValues(
            creation_time=datetime(2021, 6, 1, 6, 0, 0),
            duration=timedelta(seconds=30),
        ),
        original_filename="20210601_140000.mp4",
        comment="Beach day",
    )


@pytest.fixture
def local_photo_candidates() -> MediaCandidates:
    """A camera photo with only a local date taken."""
    return MediaCandidates(
        property_store=PropertyStoreValues(date_taken=datetime(2021, 7, 1, 12, 0, 0)),
        original_filename="IMG_0001.jpg",
    )


# =============================================================================
# Files
# =============================================================================


@pytest.fixture
def write_candidates(tmp_path: Path) -> Callable[..., Path]:
    """Write a candidate mapping to a YAML (default) or JSON file."""

    def _write(data: dict[str, Any], name: str = "candidates.yaml") -> Path:
        path = tmp_path / name
        if path.suffix == ".json":
            path.write_text(json.dumps(data), encoding="utf-8")
        else:
            path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return path

    return _write
