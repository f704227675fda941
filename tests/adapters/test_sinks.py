import io
import logging

from rocker.adapters.runner.sinks import CollectingSink, LoggingSink, StreamSink


def test_stream_sink_writes_lines():
    stream = io.StringIO()
    sink = StreamSink(stream)
    sink("one")
    sink("|  two")
    assert stream.getvalue() == "one\n|  two\n"


def test_stream_sink_defaults_to_current_stderr(capsys):
    StreamSink()("to stderr")
    captured = capsys.readouterr()
    assert captured.err == "to stderr\n"
    assert captured.out == ""


def test_logging_sink_forwards_to_logger(caplog):
    logger = logging.getLogger("sink_test")
    with caplog.at_level(logging.INFO, logger="sink_test"):
        LoggingSink(logger)("|  hello")
    assert [r.getMessage() for r in caplog.records] == ["|  hello"]


def test_collecting_sink_keeps_order():
    sink = CollectingSink()
    for line in ("a", "b", "c"):
        sink(line)
    assert sink.lines == ["a", "b", "c"]
