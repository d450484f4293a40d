"""Helpers for testing gtpbridge and code built on it."""

from __future__ import annotations

import os
import pathlib
import sys
import typing as t

from gtpbridge.test import fake_engine

#: Script implementing the fake GTP engine
FAKE_ENGINE_PATH = pathlib.Path(fake_engine.__file__)

#: Warm-up used against the fake engine, which needs none
#: Can be configured via :envvar:`GTPBRIDGE_TEST_WARMUP`
TEST_WARMUP_SECONDS = float(os.getenv("GTPBRIDGE_TEST_WARMUP", 0.05))

#: Grace period for ``quit`` in tests
TEST_QUIT_TIMEOUT_SECONDS = float(os.getenv("GTPBRIDGE_TEST_QUIT_TIMEOUT", 0.8))


def write_engine_wrapper(directory: pathlib.Path) -> pathlib.Path:
    """Write an executable that launches the fake engine.

    The client spawns a single executable, so the interpreter and script are
    wrapped in a shell script.
    """
    path = directory / "fake-engine"
    path.write_text(
        f'#!/bin/sh\nexec "{sys.executable}" "{FAKE_ENGINE_PATH}" "$@"\n',
        encoding="utf-8",
    )
    path.chmod(0o755)
    return path


def write_engine_config(path: pathlib.Path, **options: t.Any) -> pathlib.Path:
    """Write a fake engine ``-config`` file.

    >>> import tempfile
    >>> with tempfile.TemporaryDirectory() as tmp:
    ...     cfg = write_engine_config(pathlib.Path(tmp) / "e.cfg", banner=True)
    ...     print(cfg.read_text(), end="")
    banner = true
    """
    lines = []
    for key, value in options.items():
        if isinstance(value, bool):
            value = "true" if value else "false"
        lines.append(f"{key} = {value}")
    path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
    return path


__all__ = [
    "FAKE_ENGINE_PATH",
    "TEST_QUIT_TIMEOUT_SECONDS",
    "TEST_WARMUP_SECONDS",
    "write_engine_config",
    "write_engine_wrapper",
]
