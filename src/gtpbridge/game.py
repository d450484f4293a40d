"""Typed GTP commands and per-board game state on top of :class:`GtpClient`."""

from __future__ import annotations

import enum
import logging
import typing as t

from gtpbridge.board import (
    MAX_BOARD_SIZE,
    PASS,
    RESIGN,
    Board,
    normalize_color,
    normalize_vertex,
    opponent,
    parse_board,
)
from gtpbridge.errors import NotStarted, ProcessExited, SpawnError

if t.TYPE_CHECKING:
    from gtpbridge._types import Color, Vertex
    from gtpbridge.client import GtpClient

logger = logging.getLogger(__name__)

DEFAULT_BOARD_SIZE = 19
DEFAULT_KOMI = 6.5
HANDICAP_KOMI = 0.5
MAX_HANDICAP = 9

#: Failures after which the engine is unusable for this game.
_FATAL_ERRORS = (NotStarted, ProcessExited, SpawnError)


def default_komi(handicap: int) -> float:
    """Komi to use when the caller did not pick one.

    >>> default_komi(0)
    6.5
    >>> default_komi(4)
    0.5
    """
    return DEFAULT_KOMI if handicap < 2 else HANDICAP_KOMI


def format_komi(komi: float) -> str:
    """Render komi without float noise.

    >>> format_komi(6.5)
    '6.5'
    >>> format_komi(7.0)
    '7'
    """
    return f"{komi:g}"


class GameStatus(str, enum.Enum):
    """Lifecycle of a game as shown to players."""

    IDLE = "idle"
    INITIALIZING = "initializing"
    PLAYING = "playing"
    AI_THINKING = "ai-thinking"
    FINISHED = "finished"
    ERROR = "error"


class Game:
    """One board played against one engine.

    The engine enforces the rules; this object only tracks whose turn it is,
    the last move and how the game ended, and translates calls into GTP
    commands.

    Parameters
    ----------
    client : GtpClient
        Started client, owned by the caller.
    size : int
        Board dimension. Default: 19
    handicap : int
        Fixed handicap stones for black, 0 or 2..9. Default: 0
    komi : float, optional
        Defaults to :func:`default_komi` for *handicap*.
    """

    def __init__(
        self,
        client: GtpClient,
        *,
        size: int = DEFAULT_BOARD_SIZE,
        handicap: int = 0,
        komi: float | None = None,
    ) -> None:
        if not 2 <= size <= MAX_BOARD_SIZE:
            message = f"Board size must be between 2 and {MAX_BOARD_SIZE}: {size}"
            raise ValueError(message)
        if handicap == 1 or not 0 <= handicap <= MAX_HANDICAP:
            message = (
                f"Handicap must be 0 or between 2 and {MAX_HANDICAP}: {handicap}"
            )
            raise ValueError(message)
        self.client = client
        self.size = size
        self.handicap = handicap
        self.komi = default_komi(handicap) if komi is None else komi
        self.status = GameStatus.IDLE
        self.current_player: Color = "black"
        self.last_move: Vertex | None = None
        self.result: str | None = None
        self.consecutive_passes = 0
        self.handicap_stones: list[Vertex] = []
        self.board = Board(size=size)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(size={self.size!r}, "
            f"handicap={self.handicap!r}, status={self.status.value!r})"
        )

    # Raw GTP commands ----------------------------------------------------
    async def set_board_size(self, size: int) -> None:
        """``boardsize``."""
        await self._run(f"boardsize {size}")

    async def clear_board(self) -> None:
        """``clear_board``."""
        await self._run("clear_board")

    async def set_komi(self, komi: float) -> None:
        """``komi``."""
        await self._run(f"komi {format_komi(komi)}")

    async def fixed_handicap(self, stones: int) -> list[Vertex]:
        """``fixed_handicap``; returns the vertices the engine placed."""
        payload = await self._run(f"fixed_handicap {stones}")
        return payload.split()

    async def showboard(self) -> Board:
        """``showboard``, parsed."""
        payload = await self._run("showboard")
        board = parse_board(payload, self.size)
        board.last_move = self.last_move
        self.board = board
        return board

    async def final_score(self) -> str:
        """``final_score``, e.g. ``"B+3.5"``."""
        return await self._run("final_score")

    # Game flow -----------------------------------------------------------
    async def setup(self) -> list[Vertex]:
        """Prepare a fresh board on the engine and start play.

        Returns
        -------
        list[str]
            Handicap stones placed by the engine, empty without handicap.
        """
        self.status = GameStatus.INITIALIZING
        self.result = None
        self.last_move = None
        self.consecutive_passes = 0
        await self.set_board_size(self.size)
        await self.clear_board()
        await self.set_komi(self.komi)
        self.handicap_stones = []
        if self.handicap >= 2:
            self.handicap_stones = await self.fixed_handicap(self.handicap)
        self.current_player = "white" if self.handicap >= 2 else "black"
        self.status = GameStatus.PLAYING
        await self.showboard()
        logger.debug(
            "game ready",
            extra={"size": self.size, "handicap": self.handicap, "komi": self.komi},
        )
        return self.handicap_stones

    async def play(self, color: str, vertex: Vertex) -> None:
        """Register a move for *color*; ``pass`` is accepted as a vertex.

        Raises
        ------
        EngineRejected
            If the engine refuses the move, e.g. an occupied point.
        """
        player = normalize_color(color)
        move = normalize_vertex(vertex, self.size)
        if move == RESIGN:
            await self.resign(player)
            return
        await self._run(f"play {player} {move}")
        await self._record_move(player, move)

    async def pass_move(self, color: str) -> None:
        """Pass for *color*."""
        await self.play(color, PASS)

    async def genmove(self, color: str) -> Vertex:
        """Let the engine choose a move for *color* and return it."""
        player = normalize_color(color)
        previous = self.status
        self.status = GameStatus.AI_THINKING
        try:
            payload = await self._run(f"genmove {player}")
        finally:
            if self.status is GameStatus.AI_THINKING:
                self.status = previous

        move = payload.strip()
        if move.lower() == RESIGN:
            await self.resign(player)
            return RESIGN
        move = normalize_vertex(move, self.size)
        await self._record_move(player, move)
        return move

    async def resign(self, color: str) -> None:
        """End the game with *color* resigning."""
        loser = normalize_color(color)
        winner = opponent(loser)
        self.last_move = RESIGN
        self._finish(f"{winner[0].upper()}+R")

    def to_dict(self) -> dict[str, t.Any]:
        """JSON-ready snapshot of the game."""
        return {
            "size": self.size,
            "komi": self.komi,
            "handicap": self.handicap,
            "status": self.status.value,
            "currentPlayer": self.current_player,
            "lastMove": self.last_move,
            "result": self.result,
            "stones": dict(self.board.stones),
        }

    # Internals -----------------------------------------------------------
    async def _record_move(self, player: Color, move: Vertex) -> None:
        self.last_move = move
        self.current_player = opponent(player)
        if move == PASS:
            self.consecutive_passes += 1
        else:
            self.consecutive_passes = 0
        if self.consecutive_passes >= 2:
            self._finish(await self.final_score())

    def _finish(self, result: str) -> None:
        self.status = GameStatus.FINISHED
        self.result = result
        logger.info("game finished", extra={"result": result})

    async def _run(self, command: str) -> str:
        try:
            return await self.client.send(command)
        except _FATAL_ERRORS as exc:
            self.status = GameStatus.ERROR
            self.result = str(exc)
            raise


__all__ = [
    "DEFAULT_BOARD_SIZE",
    "DEFAULT_KOMI",
    "HANDICAP_KOMI",
    "Game",
    "GameStatus",
    "default_komi",
    "format_komi",
]
