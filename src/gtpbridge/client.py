"""Async GTP client driving an engine subprocess."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import typing as t
from collections import deque

from gtpbridge._internal.framer import ResponseFramer
from gtpbridge._internal.sequencer import CommandSequencer
from gtpbridge.errors import (
    GtpBridgeError,
    NotStarted,
    ProcessExited,
    SpawnError,
)

if t.TYPE_CHECKING:
    from types import TracebackType
    from typing import Self

    from gtpbridge._types import StrPath
    from gtpbridge.config import EngineSettings

logger = logging.getLogger(__name__)

DEFAULT_MODE = "gtp"
DEFAULT_WARMUP = 2.0
DEFAULT_QUIT_TIMEOUT = 0.8
READ_CHUNK_SIZE = 4096


class GtpClient:
    r"""Client for one GTP engine process.

    The engine is spawned by :meth:`start` and given a fixed warm-up delay to
    load its model before commands are accepted. Commands sent concurrently
    are written one at a time, in the order :meth:`send` was called.

    Parameters
    ----------
    executable : str or path
        Engine binary, e.g. ``katago``.
    config_path : str or path
        Passed as ``-config``.
    model_path : str or path
        Passed as ``-model``.
    mode : str
        First engine argument. Default: ``"gtp"``
    warmup : float
        Seconds between spawn and readiness. Default: 2.0
    quit_timeout : float
        Seconds :meth:`quit` waits for the engine to acknowledge ``quit``
        before killing it. Default: 0.8
    env : dict, optional
        Extra environment variables for the engine process.

    Examples
    --------
    >>> async def main() -> None:  # doctest: +SKIP
    ...     async with GtpClient("katago", "gtp.cfg", "model.bin.gz") as client:
    ...         await client.send("boardsize 19")
    ...         move = await client.send("genmove black")
    """

    def __init__(
        self,
        executable: StrPath,
        config_path: StrPath,
        model_path: StrPath,
        *,
        mode: str = DEFAULT_MODE,
        warmup: float = DEFAULT_WARMUP,
        quit_timeout: float = DEFAULT_QUIT_TIMEOUT,
        env: dict[str, str] | None = None,
    ) -> None:
        self.executable = os.fspath(executable)
        self.config_path = os.fspath(config_path)
        self.model_path = os.fspath(model_path)
        self.mode = mode
        self.warmup = warmup
        self.quit_timeout = quit_timeout
        self._env_override = env

        self._process: asyncio.subprocess.Process | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._stderr_task: asyncio.Task[None] | None = None
        self._sequencer = CommandSequencer(self._write_line)
        self._framer = ResponseFramer()
        self._ready = False
        self._spawn_error: SpawnError | None = None
        self._returncode: int | None = None
        self._stderr_buffer: deque[str] = deque(maxlen=20)
        self._lifecycle_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> GtpClient:
        """Build a client from :class:`~gtpbridge.config.EngineSettings`."""
        return cls(
            settings.executable,
            settings.config_path,
            settings.model_path,
            mode=settings.mode,
            warmup=settings.warmup,
            quit_timeout=settings.quit_timeout,
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(executable={self.executable!r}, "
            f"pid={self.pid!r}, ready={self._ready!r})"
        )

    async def __aenter__(self) -> Self:
        """Start the engine."""
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Shut the engine down."""
        await self.quit()

    # Properties ----------------------------------------------------------
    @property
    def argv(self) -> list[str]:
        """Command line used to spawn the engine."""
        return [
            self.executable,
            self.mode,
            "-config",
            self.config_path,
            "-model",
            self.model_path,
        ]

    @property
    def is_ready(self) -> bool:
        """True once warm-up finished and until the process goes away."""
        return self._ready

    @property
    def pid(self) -> int | None:
        """PID of the running engine process."""
        return self._process.pid if self._process is not None else None

    @property
    def returncode(self) -> int | None:
        """Exit code of the most recent engine process, if it has exited."""
        return self._returncode

    # Lifecycle -----------------------------------------------------------
    async def start(self) -> None:
        """Spawn the engine and wait for the warm-up delay.

        Raises
        ------
        SpawnError
            If the executable cannot be started.
        ProcessExited
            If the engine dies during warm-up.
        """
        async with self._lifecycle_lock:
            if self._process is not None:
                return

            argv = self.argv
            env = None
            if self._env_override:
                env = os.environ.copy()
                env.update(self._env_override)

            logger.info("starting engine", extra={"argv": argv})
            try:
                process = await asyncio.create_subprocess_exec(
                    *argv,
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                    env=env,
                )
            except OSError as exc:
                error = SpawnError(self.executable, exc.strerror or str(exc))
                self._spawn_error = error
                self._sequencer.fail_all(error)
                logger.error("failed to start engine: %s", exc)
                raise error from exc

            self._spawn_error = None
            self._returncode = None
            self._process = process
            self._framer.reset()
            self._stderr_buffer.clear()
            self._stderr_task = asyncio.create_task(
                self._read_stderr(process),
                name="gtp-stderr-reader",
            )
            self._reader_task = asyncio.create_task(
                self._read_stdout(process),
                name="gtp-stdout-reader",
            )

            try:
                await asyncio.sleep(self.warmup)
            except BaseException:
                # No process outlives a failed start.
                logger.debug("start interrupted during warm-up")
                await self._terminate(process)
                raise
            if self._process is not process:
                raise self._exit_error(self._returncode)
            self._ready = True
            logger.debug("engine ready", extra={"pid": process.pid})

    async def send(self, command: str) -> str:
        """Send a command and return the response payload.

        Parameters
        ----------
        command : str
            Command and arguments, without sequence id or newline.

        Returns
        -------
        str
            Payload of the ``=`` response, numeric echo removed.

        Raises
        ------
        NotStarted
            If no ready engine process exists.
        SpawnError
            If the last :meth:`start` failed to spawn the engine.
        EngineRejected
            If the engine answered with ``?``.
        ProtocolViolation
            If the response was malformed.
        ProcessExited
            If the engine exited before answering.
        """
        if not command.strip() or "\n" in command or "\r" in command:
            message = f"Invalid GTP command: {command!r}"
            raise ValueError(message)
        command = command.strip()
        if self._spawn_error is not None:
            raise self._spawn_error
        if not self._ready:
            message = "GTP engine is not ready"
            raise NotStarted(message)
        return await self._sequencer.submit(command)

    async def quit(self) -> None:
        """Ask the engine to quit, then make sure the process is gone.

        Safe to call repeatedly and when no engine runs.
        """
        async with self._lifecycle_lock:
            process = self._process
            if process is None:
                return

            if self._ready and process.returncode is None:
                try:
                    async with asyncio.timeout(self.quit_timeout):
                        await self._sequencer.submit("quit")
                        await process.wait()
                except TimeoutError:
                    logger.debug("engine did not exit within %ss", self.quit_timeout)
                except GtpBridgeError as exc:
                    logger.debug("engine quit failed: %s", exc)
            self._ready = False
            await self._terminate(process)
            logger.info("engine stopped", extra={"returncode": process.returncode})

    # Internals -----------------------------------------------------------
    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        """Kill *process* if still alive and wait for its readers to finish."""
        reader_task = self._reader_task
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
        await process.wait()
        if reader_task is not None:
            await reader_task

    def _write_line(self, line: str) -> None:
        process = self._process
        if process is None or process.stdin is None or process.stdin.is_closing():
            raise self._exit_error(self._returncode)
        process.stdin.write(line.encode())

    async def _read_stdout(self, process: asyncio.subprocess.Process) -> None:
        stdout = process.stdout
        assert stdout is not None
        try:
            while True:
                chunk = await stdout.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                for frame in self._framer.feed(chunk):
                    self._sequencer.handle_frame(frame)
        finally:
            returncode = await process.wait()
            stderr_task = self._stderr_task
            if stderr_task is not None:
                with contextlib.suppress(asyncio.CancelledError):
                    await stderr_task
            self._handle_process_exit(process, returncode)

    async def _read_stderr(self, process: asyncio.subprocess.Process) -> None:
        stderr = process.stderr
        assert stderr is not None
        while True:
            line_bytes = await stderr.readline()
            if not line_bytes:
                break
            line = line_bytes.decode(errors="backslashreplace").rstrip("\r\n")
            self._stderr_buffer.append(line)
            logger.debug("engine stderr: %s", line, extra={"pid": process.pid})

    def _handle_process_exit(
        self,
        process: asyncio.subprocess.Process,
        returncode: int,
    ) -> None:
        if self._process is not process:
            return
        logger.info("engine process exited", extra={"returncode": returncode})
        self._process = None
        self._reader_task = None
        self._stderr_task = None
        self._ready = False
        self._returncode = returncode
        self._sequencer.fail_all(self._exit_error(returncode))

    def _exit_error(self, returncode: int | None) -> ProcessExited:
        error = ProcessExited(returncode)
        for stderr_line in self._stderr_buffer:
            error.add_note(f"stderr: {stderr_line}")
        return error


__all__ = ["GtpClient"]
