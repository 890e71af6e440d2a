"""Tests for the buffered markup writer and file sink."""

from __future__ import annotations

import io

import pytest

from strava_export.errors import SinkError
from strava_export.markup_writer import FileSink, MarkupWriter, open_sink

from conftest import RecordingSink


def test_write_modes_render_expected_text() -> None:
    sink = RecordingSink()
    writer = MarkupWriter(sink)
    writer.writeln(0, "<a>")
    writer.writeln(2, "<b>")
    writer.write(3, "<c>")
    writer.write("", "raw")
    writer.writeln("", " tail")
    writer.write("anything", "1,2,0 ")
    writer.writeln(1, "</a>")
    writer.flush()
    assert sink.text == "<a>\n    <b>\n      <c>raw tail\n1,2,0   </a>\n"


def test_flush_clears_buffer_and_reports_size() -> None:
    sink = RecordingSink()
    writer = MarkupWriter(sink)
    writer.write(1, "abc")
    assert writer.flush() == 5
    assert writer.buffer == ""
    assert writer.flush() == 0
    assert sink.accepted == ["  abc"]


def test_flush_waits_for_drain_under_backpressure() -> None:
    sink = RecordingSink(capacity=4)
    writer = MarkupWriter(sink)
    writer.write(0, "ab")
    writer.flush()
    assert sink.drains == 0
    writer.write(0, "cdef")
    writer.flush()
    assert sink.drains == 1
    assert sink.pending == 0
    assert sink.text == "abcdef"


def test_writer_does_not_close_sink() -> None:
    sink = RecordingSink()
    writer = MarkupWriter(sink)
    writer.writeln(0, "x")
    writer.flush()
    assert sink.closed is False


def test_file_sink_signals_high_water_mark() -> None:
    handle = io.StringIO()
    sink = FileSink(handle, high_water_mark=8)
    assert sink.write("1234") is True
    assert sink.write("5678") is False
    sink.drain()
    assert sink.pending == 0
    assert sink.bytes_written == 8
    assert handle.getvalue() == "12345678"


def test_open_sink_writes_file(tmp_path) -> None:
    path = tmp_path / "out.kml"
    sink = open_sink(path)
    writer = MarkupWriter(sink)
    writer.writeln(0, "héllo")
    writer.flush()
    sink.close()
    assert path.read_text(encoding="utf-8") == "héllo\n"
    assert sink.bytes_written == len("héllo\n".encode("utf-8"))


def test_open_sink_failure_raises_sink_error(tmp_path) -> None:
    with pytest.raises(SinkError, match="^Stream error"):
        open_sink(tmp_path / "missing" / "out.kml")


def test_file_sink_write_failure_is_wrapped() -> None:
    class Broken(io.StringIO):
        def write(self, s):  # type: ignore[override]
            raise OSError("disk full")

    sink = FileSink(Broken())
    with pytest.raises(SinkError, match="disk full"):
        sink.write("data")
