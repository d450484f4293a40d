"""gtpbridge pytest plugin."""

from __future__ import annotations

import typing as t

import pytest
import pytest_asyncio

from gtpbridge.client import GtpClient
from gtpbridge.config import EngineSettings
from gtpbridge.test import (
    TEST_QUIT_TIMEOUT_SECONDS,
    TEST_WARMUP_SECONDS,
    write_engine_config,
    write_engine_wrapper,
)

if t.TYPE_CHECKING:
    import pathlib
    from collections.abc import AsyncIterator


@pytest.fixture(scope="session")
def fake_engine_executable(tmp_path_factory: pytest.TempPathFactory) -> pathlib.Path:
    """Executable running :mod:`gtpbridge.test.fake_engine`."""
    return write_engine_wrapper(tmp_path_factory.mktemp("engine"))


@pytest.fixture
def fake_engine_options() -> dict[str, t.Any]:
    """Options written to the fake engine config. Override to change behaviour."""
    return {}


@pytest.fixture
def fake_engine_config(
    tmp_path: pathlib.Path,
    fake_engine_options: dict[str, t.Any],
) -> pathlib.Path:
    """Config file built from :func:`fake_engine_options`."""
    return write_engine_config(tmp_path / "fake_gtp.cfg", **fake_engine_options)


@pytest.fixture
def engine_settings_factory(
    tmp_path: pathlib.Path,
    fake_engine_executable: pathlib.Path,
) -> t.Callable[..., EngineSettings]:
    """Return a factory building settings for a fake engine with *options*.

    >>> def test_example(engine_settings_factory) -> None:
    ...     settings = engine_settings_factory(genmove="D4")
    ...     assert settings.mode == "gtp"
    """
    counter = 0

    def factory(**options: t.Any) -> EngineSettings:
        nonlocal counter
        counter += 1
        config = write_engine_config(tmp_path / f"fake_gtp_{counter}.cfg", **options)
        return EngineSettings(
            executable=str(fake_engine_executable),
            config_path=str(config),
            model_path=str(tmp_path / "model.bin.gz"),
            warmup=TEST_WARMUP_SECONDS,
            quit_timeout=TEST_QUIT_TIMEOUT_SECONDS,
        )

    return factory


@pytest.fixture
def engine_settings(
    tmp_path: pathlib.Path,
    fake_engine_executable: pathlib.Path,
    fake_engine_config: pathlib.Path,
) -> EngineSettings:
    """Settings for a fake engine configured by :func:`fake_engine_options`."""
    return EngineSettings(
        executable=str(fake_engine_executable),
        config_path=str(fake_engine_config),
        model_path=str(tmp_path / "model.bin.gz"),
        warmup=TEST_WARMUP_SECONDS,
        quit_timeout=TEST_QUIT_TIMEOUT_SECONDS,
    )


@pytest_asyncio.fixture
async def gtp_client(engine_settings: EngineSettings) -> AsyncIterator[GtpClient]:
    """Started :class:`GtpClient` talking to the fake engine.

    The engine is shut down after the test.
    """
    client = GtpClient.from_settings(engine_settings)
    await client.start()
    yield client
    await client.quit()
