"""Exception hierarchy used across gtpbridge."""

from __future__ import annotations


class GtpBridgeError(Exception):
    """Root exception for gtpbridge."""


class SpawnError(GtpBridgeError):
    """Engine process could not be started.

    The underlying :class:`OSError` is available as ``__cause__``.
    """

    def __init__(self, executable: str, reason: str | None = None) -> None:
        message = f"Failed to start engine: {executable}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.executable = executable


class NotStarted(GtpBridgeError):
    """Command submitted while no ready engine process exists."""


class ProcessExited(GtpBridgeError):
    """Engine process terminated while work was outstanding."""

    def __init__(self, returncode: int | None, *args: object) -> None:
        super().__init__(f"Engine process exited with code {returncode!r}")
        self.returncode = returncode


class CommandError(GtpBridgeError):
    """Base for failures tied to a single command."""

    def __init__(self, message: str, *, command: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.command = command


class EngineRejected(CommandError):
    """Engine answered a command with a ``?`` failure frame."""


class ProtocolViolation(CommandError):
    """Engine answered with a frame that is neither ``=`` nor ``?``."""

    def __init__(self, frame: str, *, command: str | None = None) -> None:
        super().__init__(f"Unexpected response: {frame!r}", command=command)
        self.frame = frame


class InvalidVertex(GtpBridgeError, ValueError):
    """Vertex or color string could not be interpreted."""

    def __init__(self, value: str, size: int | None = None) -> None:
        message = f"Invalid vertex: {value!r}"
        if size is not None:
            message += f" (board size {size})"
        super().__init__(message)
        self.value = value


class InvalidColor(GtpBridgeError, ValueError):
    """Color string is not black or white."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid color: {value!r}")
        self.value = value


__all__ = sorted(
    {
        "CommandError",
        "EngineRejected",
        "GtpBridgeError",
        "InvalidColor",
        "InvalidVertex",
        "NotStarted",
        "ProcessExited",
        "ProtocolViolation",
        "SpawnError",
    }
)
