"""Shared fixtures for gtpbridge tests."""

from __future__ import annotations

import os

import pytest

_ENV_PREFIXES = ("KATAGO_", "GTPBRIDGE_")


@pytest.fixture(autouse=True)
def clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop engine settings inherited from the developer's shell.

    ``GTPBRIDGE_TEST_*`` is kept since it tunes the test timings.
    """
    for key in list(os.environ):
        if key.startswith("GTPBRIDGE_TEST_"):
            continue
        if key.startswith(_ENV_PREFIXES):
            monkeypatch.delenv(key)
