"""GTP response framing and classification."""

from __future__ import annotations

import codecs
import dataclasses
import re

from gtpbridge.errors import ProtocolViolation

#: A response ends with an empty line.
FRAME_DELIMITER = "\n\n"

DEFAULT_FAILURE_MESSAGE = "unknown error"

_STATUS_RE = re.compile(r"^([=?])(\d*)(.*)$", re.DOTALL)


@dataclasses.dataclass(frozen=True)
class Response:
    """A classified GTP response frame."""

    ok: bool
    payload: str
    echo_id: int | None
    raw: str


class ResponseFramer:
    r"""Accumulate raw engine output and cut it into response frames.

    Frames are delimited by a blank line. Output may arrive in arbitrary
    chunks: several frames at once, or one frame spread over many reads,
    including a delimiter split between two reads.

    Examples
    --------
    >>> framer = ResponseFramer()
    >>> framer.feed(b"= 19\n")
    []
    >>> framer.feed(b"\n=2\n\n? oops")
    ['= 19', '=2']
    >>> framer.buffered
    '? oops'
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(
            errors="backslashreplace",
        )
        self._buffer = ""

    @property
    def buffered(self) -> str:
        """Text received but not yet part of a complete frame."""
        return self._buffer

    def feed(self, data: bytes | str) -> list[str]:
        """Append a chunk and return every frame it completes, oldest first.

        Returned frames have the delimiter removed but are otherwise untouched.
        """
        text = self._decoder.decode(data) if isinstance(data, bytes) else data
        # GTP ignores CR, engines on Windows emit CRLF.
        self._buffer += text.replace("\r", "")

        frames: list[str] = []
        while True:
            index = self._buffer.find(FRAME_DELIMITER)
            if index == -1:
                break
            frames.append(self._buffer[:index])
            self._buffer = self._buffer[index + len(FRAME_DELIMITER) :]
        return frames

    def reset(self) -> None:
        """Drop partial output, e.g. before talking to a new process."""
        self._decoder.reset()
        self._buffer = ""


def parse_response(frame: str, *, command: str | None = None) -> Response:
    """Classify a response frame.

    Parameters
    ----------
    frame : str
        One frame as returned by :meth:`ResponseFramer.feed`.
    command : str, optional
        Command the frame answers, attached to errors for diagnostics.

    Returns
    -------
    Response
        ``ok`` is True for ``=`` frames and False for ``?`` frames. The
        numeric echo, if any, is removed from ``payload``.

    Raises
    ------
    ProtocolViolation
        If the frame starts with anything other than ``=`` or ``?``.

    Examples
    --------
    >>> parse_response("=3 pass")
    Response(ok=True, payload='pass', echo_id=3, raw='=3 pass')
    >>> parse_response("?invalid vertex").payload
    'invalid vertex'
    >>> parse_response("?").payload
    'unknown error'
    """
    stripped = frame.strip()
    match = _STATUS_RE.match(stripped)
    if match is None:
        raise ProtocolViolation(stripped, command=command)

    status, echo, rest = match.groups()
    payload = rest.strip()
    ok = status == "="
    if not ok and not payload:
        payload = DEFAULT_FAILURE_MESSAGE
    return Response(
        ok=ok,
        payload=payload,
        echo_id=int(echo) if echo else None,
        raw=stripped,
    )


__all__ = [
    "DEFAULT_FAILURE_MESSAGE",
    "FRAME_DELIMITER",
    "Response",
    "ResponseFramer",
    "parse_response",
]
