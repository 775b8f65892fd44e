"""Shared test configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from indexer_service.config import clear_settings_cache
from tests.helpers import config_yaml

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture
def config_path(tmp_path: Path) -> Iterator[Path]:
    """Write a complete config file and point CONFIG_PATH at it."""
    path = tmp_path / "config.yaml"
    path.write_text(config_yaml(str(tmp_path / "logs")))

    old_config = os.environ.get("CONFIG_PATH")
    os.environ["CONFIG_PATH"] = str(path)
    clear_settings_cache()

    yield path

    if old_config is None:
        os.environ.pop("CONFIG_PATH", None)
    else:
        os.environ["CONFIG_PATH"] = old_config
    clear_settings_cache()
