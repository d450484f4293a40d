"""Conftest.py (root-level).

We keep this in root pytest fixtures in pytest's doctest plugin to be available, as well
as avoiding conftest.py from being included in the wheel, in addition to pytest_plugin
for pytester only being available via the root directory.

See "pytest_plugins in non-top-level conftest files" in
https://docs.pytest.org/en/stable/deprecations.html
"""

from __future__ import annotations

import typing as t

import pytest
from _pytest.doctest import DoctestItem

from gtpbridge.board import Board, parse_board
from gtpbridge.client import GtpClient
from gtpbridge.config import EngineSettings

pytest_plugins = ["pytester"]


@pytest.fixture(autouse=True)
def add_doctest_fixtures(
    request: pytest.FixtureRequest,
    doctest_namespace: dict[str, t.Any],
) -> None:
    """Configure doctest fixtures for pytest-doctest."""
    if isinstance(request._pyfuncitem, DoctestItem):
        doctest_namespace["Board"] = Board
        doctest_namespace["parse_board"] = parse_board
        doctest_namespace["GtpClient"] = GtpClient
        doctest_namespace["EngineSettings"] = EngineSettings
