"""Shared type aliases for gtpbridge."""

from __future__ import annotations

import os
import typing as t

from typing_extensions import Literal, TypeAlias

#: Stone color as spelled on the wire.
Color: TypeAlias = Literal["black", "white"]

#: Board coordinate such as ``"D4"``, or ``"pass"`` / ``"resign"``.
Vertex: TypeAlias = str

StrPath: TypeAlias = t.Union[str, "os.PathLike[str]"]

#: Callable used by the sequencer to put one request line on the wire.
LineWriter: TypeAlias = t.Callable[[str], None]
