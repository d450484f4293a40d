"""Serialize GTP commands into a single in-order request stream."""

from __future__ import annotations

import asyncio
import collections
import dataclasses
import itertools
import logging
import typing as t

from gtpbridge.errors import EngineRejected, GtpBridgeError, ProtocolViolation

from .framer import parse_response

if t.TYPE_CHECKING:
    from gtpbridge._types import LineWriter

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class PendingCommand:
    """One submitted command awaiting its response."""

    seq_id: int
    command: str
    future: asyncio.Future[str]

    @property
    def line(self) -> str:
        """Request line as written to the engine."""
        return f"{self.seq_id} {self.command}\n"


class CommandSequencer:
    """Keep at most one command on the wire, in submission order.

    GTP responses carry no reliable request identifier, so pairing a response
    with its request depends on never pipelining. Commands wait in a FIFO
    queue and the head is written only once the previous response arrived.

    All methods must be called from the event loop thread; none of them
    await, so each call is atomic with respect to the others.
    """

    def __init__(self, writer: LineWriter) -> None:
        self._writer = writer
        self._ids = itertools.count(1)
        self._queue: collections.deque[PendingCommand] = collections.deque()
        self._in_flight: PendingCommand | None = None

    @property
    def in_flight(self) -> PendingCommand | None:
        """The command currently awaiting its response, if any."""
        return self._in_flight

    @property
    def queued(self) -> int:
        """Number of commands not yet written."""
        return len(self._queue)

    def submit(self, command: str) -> asyncio.Future[str]:
        """Queue *command* and return a future for its response payload."""
        loop = asyncio.get_running_loop()
        pending = PendingCommand(
            seq_id=next(self._ids),
            command=command,
            future=loop.create_future(),
        )
        self._queue.append(pending)
        self._dispatch()
        return pending.future

    def handle_frame(self, frame: str) -> None:
        """Resolve the in-flight command with *frame* and dispatch the next."""
        if not frame.strip():
            return

        pending = self._in_flight
        if pending is None:
            logger.debug("ignoring unsolicited frame", extra={"frame": frame})
            return

        self._in_flight = None
        try:
            response = parse_response(frame, command=pending.command)
        except ProtocolViolation as exc:
            logger.warning(
                "unexpected response to %r: %r",
                pending.command,
                exc.frame,
                extra={"seq_id": pending.seq_id},
            )
            _settle(pending.future, exc=exc)
        else:
            if response.ok:
                _settle(pending.future, result=response.payload)
            else:
                _settle(
                    pending.future,
                    exc=EngineRejected(response.payload, command=pending.command),
                )
        self._dispatch()

    def fail_all(self, exc: BaseException) -> None:
        """Fail the in-flight command and every queued one with *exc*."""
        pending = self._in_flight
        self._in_flight = None
        if pending is not None:
            _settle(pending.future, exc=exc)
        while self._queue:
            _settle(self._queue.popleft().future, exc=exc)

    def _dispatch(self) -> None:
        while self._in_flight is None and self._queue:
            pending = self._queue.popleft()
            if pending.future.done():
                # Caller gave up before the command reached the wire.
                continue
            self._in_flight = pending
            try:
                self._writer(pending.line)
            except GtpBridgeError as exc:
                self._in_flight = None
                _settle(pending.future, exc=exc)
            else:
                logger.debug(
                    "sent command",
                    extra={"seq_id": pending.seq_id, "command": pending.command},
                )


def _settle(
    future: asyncio.Future[str],
    *,
    result: str | None = None,
    exc: BaseException | None = None,
) -> None:
    if future.done():
        return
    if exc is not None:
        future.set_exception(exc)
    else:
        future.set_result(result or "")


__all__ = ["CommandSequencer", "PendingCommand"]
