"""Tests for in-order command dispatch."""

from __future__ import annotations

import asyncio
import logging

import pytest

from gtpbridge._internal.sequencer import CommandSequencer, PendingCommand
from gtpbridge.errors import (
    EngineRejected,
    NotStarted,
    ProcessExited,
    ProtocolViolation,
)


class RecordingWriter:
    """Collects request lines instead of writing them to a process."""

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.error: Exception | None = None

    def __call__(self, line: str) -> None:
        if self.error is not None:
            raise self.error
        self.lines.append(line)


@pytest.mark.asyncio
async def test_pending_command_line() -> None:
    """Request lines carry the id and end with a newline."""
    future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
    pending = PendingCommand(seq_id=7, command="genmove black", future=future)
    assert pending.line == "7 genmove black\n"


# ==============================================================================
# Dispatch
# ==============================================================================


@pytest.mark.asyncio
async def test_first_command_written_immediately() -> None:
    """With nothing in flight the command goes straight to the writer."""
    writer = RecordingWriter()
    sequencer = CommandSequencer(writer)

    sequencer.submit("name")

    assert writer.lines == ["1 name\n"]
    assert sequencer.in_flight is not None
    assert sequencer.in_flight.command == "name"
    assert sequencer.queued == 0


@pytest.mark.asyncio
async def test_one_command_in_flight() -> None:
    """Later commands wait until the previous response arrived."""
    writer = RecordingWriter()
    sequencer = CommandSequencer(writer)

    first = sequencer.submit("boardsize 19")
    second = sequencer.submit("clear_board")
    third = sequencer.submit("komi 6.5")

    assert writer.lines == ["1 boardsize 19\n"]
    assert sequencer.queued == 2

    sequencer.handle_frame("=1")
    assert writer.lines == ["1 boardsize 19\n", "2 clear_board\n"]
    assert await first == ""
    assert not second.done()
    assert not third.done()

    sequencer.handle_frame("=2")
    sequencer.handle_frame("=3")
    assert writer.lines[-1] == "3 komi 6.5\n"
    assert await second == ""
    assert await third == ""
    assert sequencer.in_flight is None


@pytest.mark.asyncio
async def test_batch_of_frames_resolves_in_order() -> None:
    """Frames handled back to back resolve successive commands."""
    writer = RecordingWriter()
    sequencer = CommandSequencer(writer)
    futures = [
        sequencer.submit(command)
        for command in ("boardsize 19", "clear_board", "komi 6.5", "genmove b")
    ]

    for frame in ("=1", "=2", "=3", "=4 Q16"):
        sequencer.handle_frame(frame)

    assert await asyncio.gather(*futures) == ["", "", "", "Q16"]
    assert [line.split()[0] for line in writer.lines] == ["1", "2", "3", "4"]


@pytest.mark.asyncio
async def test_sequence_ids_increase() -> None:
    """Ids are assigned at submission and never reused."""
    writer = RecordingWriter()
    sequencer = CommandSequencer(writer)

    for _ in range(3):
        future = sequencer.submit("name")
        sequencer.handle_frame("= FakeEngine")
        await future

    assert writer.lines == ["1 name\n", "2 name\n", "3 name\n"]


# ==============================================================================
# Responses
# ==============================================================================


@pytest.mark.asyncio
async def test_success_payload() -> None:
    """The echo id is stripped from the payload."""
    sequencer = CommandSequencer(RecordingWriter())
    future = sequencer.submit("genmove white")
    sequencer.handle_frame("=3 pass")
    assert await future == "pass"


@pytest.mark.asyncio
async def test_rejection() -> None:
    """``?`` frames fail the request with the engine's message."""
    sequencer = CommandSequencer(RecordingWriter())
    future = sequencer.submit("play black Z99")
    sequencer.handle_frame("?invalid vertex")

    with pytest.raises(EngineRejected, match="invalid vertex") as excinfo:
        await future
    assert excinfo.value.message == "invalid vertex"
    assert excinfo.value.command == "play black Z99"


@pytest.mark.asyncio
async def test_rejection_default_message() -> None:
    """An empty failure frame still produces a message."""
    sequencer = CommandSequencer(RecordingWriter())
    future = sequencer.submit("play black D4")
    sequencer.handle_frame("?")

    with pytest.raises(EngineRejected, match="unknown error"):
        await future


@pytest.mark.asyncio
async def test_protocol_violation_continues_queue(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """A garbage frame fails its request and the next command is dispatched."""
    writer = RecordingWriter()
    sequencer = CommandSequencer(writer)
    bad = sequencer.submit("fake-garbage")
    good = sequencer.submit("name")

    with caplog.at_level(logging.WARNING, logger="gtpbridge._internal.sequencer"):
        sequencer.handle_frame("garbage out")

    with pytest.raises(ProtocolViolation) as excinfo:
        await bad
    assert excinfo.value.frame == "garbage out"
    assert "unexpected response" in caplog.text

    assert writer.lines[-1] == "2 name\n"
    sequencer.handle_frame("= FakeEngine")
    assert await good == "FakeEngine"


@pytest.mark.asyncio
async def test_unsolicited_frame_discarded() -> None:
    """Frames arriving with nothing in flight do not resolve later commands."""
    sequencer = CommandSequencer(RecordingWriter())

    sequencer.handle_frame("= FakeEngine ready")
    future = sequencer.submit("name")
    assert not future.done()

    sequencer.handle_frame("= FakeEngine")
    assert await future == "FakeEngine"


@pytest.mark.asyncio
async def test_blank_frame_ignored() -> None:
    """Whitespace-only frames do not consume the in-flight slot."""
    sequencer = CommandSequencer(RecordingWriter())
    future = sequencer.submit("name")

    sequencer.handle_frame("  ")
    assert not future.done()
    assert sequencer.in_flight is not None


# ==============================================================================
# Failure propagation
# ==============================================================================


@pytest.mark.asyncio
async def test_fail_all() -> None:
    """In-flight and queued requests all fail with the same error."""
    sequencer = CommandSequencer(RecordingWriter())
    futures = [sequencer.submit("genmove black"), sequencer.submit("showboard")]

    error = ProcessExited(3)
    sequencer.fail_all(error)

    for future in futures:
        with pytest.raises(ProcessExited) as excinfo:
            await future
        assert excinfo.value is error
    assert sequencer.in_flight is None
    assert sequencer.queued == 0


@pytest.mark.asyncio
async def test_cancelled_queued_command_not_written() -> None:
    """A request abandoned while queued never reaches the engine."""
    writer = RecordingWriter()
    sequencer = CommandSequencer(writer)
    first = sequencer.submit("genmove black")
    abandoned = sequencer.submit("showboard")
    last = sequencer.submit("name")

    abandoned.cancel()
    sequencer.handle_frame("=1 D4")

    assert await first == "D4"
    assert writer.lines == ["1 genmove black\n", "3 name\n"]
    sequencer.handle_frame("=3 FakeEngine")
    assert await last == "FakeEngine"


@pytest.mark.asyncio
async def test_cancelled_in_flight_command_consumes_response() -> None:
    """The response to an abandoned in-flight request is not handed to the next."""
    sequencer = CommandSequencer(RecordingWriter())
    abandoned = sequencer.submit("genmove black")
    following = sequencer.submit("name")

    abandoned.cancel()
    sequencer.handle_frame("=1 D4")
    assert not following.done()

    sequencer.handle_frame("=2 FakeEngine")
    assert await following == "FakeEngine"


@pytest.mark.asyncio
async def test_writer_error_fails_request() -> None:
    """A failing write rejects that request without blocking the queue."""
    writer = RecordingWriter()
    writer.error = NotStarted("GTP engine is not ready")
    sequencer = CommandSequencer(writer)

    future = sequencer.submit("name")

    with pytest.raises(NotStarted):
        await future
    assert sequencer.in_flight is None

    writer.error = None
    retry = sequencer.submit("name")
    assert writer.lines == ["2 name\n"]
    sequencer.handle_frame("= FakeEngine")
    assert await retry == "FakeEngine"
