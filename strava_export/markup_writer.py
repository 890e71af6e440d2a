"""Indent-aware buffered text writer used by the KML and bikelog exporters.

The writer accumulates text and hands it to a sink on :meth:`MarkupWriter.flush`.
A sink may refuse to take more data without draining first (its ``write``
returns ``False``); the writer then blocks on ``drain`` so a flush only
returns once the sink has accepted the bytes.
"""

from __future__ import annotations

import logging
from os import PathLike
from pathlib import Path
from typing import IO, Protocol

from .config import SINK_HIGH_WATER_MARK
from .errors import SinkError

LOGGER = logging.getLogger(__name__)

INDENT_UNIT = "  "

PathInput = str | Path | PathLike[str]


class Sink(Protocol):
    def write(self, data: str) -> bool:
        """Queue ``data``; return ``False`` when the caller must drain."""

    def drain(self) -> None:
        """Block until previously written data has been accepted."""

    def close(self) -> None: ...


class FileSink:
    """Text file sink with a byte high-water mark."""

    def __init__(
        self,
        handle: IO[str],
        *,
        name: str = "<stream>",
        high_water_mark: int = SINK_HIGH_WATER_MARK,
    ) -> None:
        self._handle = handle
        self.name = name
        self.high_water_mark = high_water_mark
        self.pending = 0
        self.bytes_written = 0
        self.closed = False

    def write(self, data: str) -> bool:
        try:
            self._handle.write(data)
        except OSError as exc:
            raise SinkError(f"Stream error {exc}") from exc
        size = len(data.encode("utf-8"))
        self.pending += size
        self.bytes_written += size
        return self.pending < self.high_water_mark

    def drain(self) -> None:
        try:
            self._handle.flush()
        except OSError as exc:
            raise SinkError(f"Stream error {exc}") from exc
        self.pending = 0

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self._handle.close()
        except OSError as exc:
            raise SinkError(f"Stream error {exc}") from exc
        LOGGER.info("Close %s", self.name)


def open_sink(path: PathInput, high_water_mark: int = SINK_HIGH_WATER_MARK) -> FileSink:
    """Open ``path`` for writing as a :class:`FileSink`."""

    filepath = str(Path(path))
    try:
        handle = open(filepath, "w", encoding="utf-8", newline="\n")
    except OSError as exc:
        raise SinkError(f"Stream error {exc}") from exc
    LOGGER.info("Open %s", filepath)
    return FileSink(handle, name=filepath, high_water_mark=high_water_mark)


class MarkupWriter:
    """Append-only buffer with ``write``/``writeln`` and an explicit flush.

    ``indent`` is either an int (that many two-space units are prepended) or
    a string, which means raw, unindented text. Callers use the string form
    for continuation text such as coordinate tuples.
    """

    def __init__(self, sink: Sink) -> None:
        self.sink = sink
        self.buffer = ""

    def write(self, indent: int | str, text: str) -> None:
        if isinstance(indent, str):
            self.buffer += text
        else:
            self.buffer += INDENT_UNIT * indent + text

    def writeln(self, indent: int | str, text: str) -> None:
        self.write(indent, text + "\n")

    def flush(self) -> int:
        """Hand the buffer to the sink and return the number of chars flushed."""

        data = self.buffer
        self.buffer = ""
        LOGGER.debug("  Flushing %d bytes", len(data))
        if not data:
            return 0
        if not self.sink.write(data):
            LOGGER.debug("  Waiting on drain")
            self.sink.drain()
        return len(data)
