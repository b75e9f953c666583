"""Pytest configuration for playlist-sync."""

from __future__ import annotations

import os
import shutil

import pytest


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    del config
    if os.environ.get("PLAYLIST_SYNC_CI") != "1" and shutil.which("zip"):
        return
    skip_external = pytest.mark.skip(reason="Skipping tests that need zip/unzip.")
    for item in items:
        if "external" in item.keywords:
            item.add_marker(skip_external)
