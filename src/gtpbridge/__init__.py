"""gtpbridge, an async client for GTP board-game engines."""

from .__about__ import (
    __author__,
    __copyright__,
    __description__,
    __email__,
    __license__,
    __package_name__,
    __title__,
    __version__,
)
from .board import Board, parse_board
from .client import GtpClient
from .config import EngineSettings
from .errors import (
    EngineRejected,
    GtpBridgeError,
    NotStarted,
    ProcessExited,
    ProtocolViolation,
    SpawnError,
)
from .game import Game, GameStatus

__all__ = (
    "Board",
    "EngineRejected",
    "EngineSettings",
    "Game",
    "GameStatus",
    "GtpBridgeError",
    "GtpClient",
    "NotStarted",
    "ProcessExited",
    "ProtocolViolation",
    "SpawnError",
    "__author__",
    "__copyright__",
    "__description__",
    "__email__",
    "__license__",
    "__package_name__",
    "__title__",
    "__version__",
    "parse_board",
)
