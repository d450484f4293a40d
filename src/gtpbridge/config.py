"""Engine settings, optionally read from the environment."""

from __future__ import annotations

import dataclasses
import os
import typing as t

from gtpbridge.client import DEFAULT_MODE, DEFAULT_QUIT_TIMEOUT, DEFAULT_WARMUP

#: Fallback install directory when :envvar:`KATAGO_HOME` is unset
DEFAULT_KATAGO_HOME = "/path/to/katago"


def _env_value(environ: t.Mapping[str, str], name: str) -> str | None:
    raw = environ.get(name)
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _env_float(environ: t.Mapping[str, str], name: str, default: float) -> float:
    value = _env_value(environ, name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        message = f"{name} must be a number, got {value!r}"
        raise ValueError(message) from None


@dataclasses.dataclass(frozen=True)
class EngineSettings:
    """How to launch a GTP engine.

    Examples
    --------
    >>> settings = EngineSettings.from_env({"KATAGO_HOME": "/opt/katago"})
    >>> settings.executable
    '/opt/katago/katago'
    >>> settings.config_path
    '/opt/katago/default_gtp.cfg'
    >>> settings.warmup
    2.0
    """

    executable: str
    config_path: str
    model_path: str
    mode: str = DEFAULT_MODE
    warmup: float = DEFAULT_WARMUP
    quit_timeout: float = DEFAULT_QUIT_TIMEOUT

    @classmethod
    def from_env(
        cls,
        environ: t.Mapping[str, str] | None = None,
    ) -> EngineSettings:
        """Read settings from :envvar:`KATAGO_HOME` and friends.

        ``KATAGO_PATH``, ``KATAGO_CONFIG`` and ``KATAGO_MODEL`` override the
        individual paths derived from ``KATAGO_HOME``; ``GTPBRIDGE_WARMUP``
        and ``GTPBRIDGE_QUIT_TIMEOUT`` override the timings. Blank values
        count as unset.
        """
        if environ is None:
            environ = os.environ
        home = _env_value(environ, "KATAGO_HOME") or DEFAULT_KATAGO_HOME
        return cls(
            executable=_env_value(environ, "KATAGO_PATH") or f"{home}/katago",
            config_path=(
                _env_value(environ, "KATAGO_CONFIG") or f"{home}/default_gtp.cfg"
            ),
            model_path=_env_value(environ, "KATAGO_MODEL") or f"{home}/a.bin.gz",
            warmup=_env_float(environ, "GTPBRIDGE_WARMUP", DEFAULT_WARMUP),
            quit_timeout=_env_float(
                environ,
                "GTPBRIDGE_QUIT_TIMEOUT",
                DEFAULT_QUIT_TIMEOUT,
            ),
        )


__all__ = ["DEFAULT_KATAGO_HOME", "EngineSettings"]
