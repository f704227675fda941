from __future__ import annotations

import logging
import sys
from typing import TextIO


class StreamSink:
    """Writes each line to a text stream, flushing so tails stay live.

    Without an explicit stream the sink resolves ``sys.stderr`` on every
    call, which keeps it pointed at whatever stream is current (CLI test
    runners swap it out).
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream

    def __call__(self, line: str) -> None:
        stream = self.stream if self.stream is not None else sys.stderr
        stream.write(line + "\n")
        stream.flush()


class LoggingSink:
    def __init__(self, logger: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self.logger = logger or logging.getLogger("rocker.output")
        self.level = level

    def __call__(self, line: str) -> None:
        self.logger.log(self.level, "%s", line)


class CollectingSink:
    def __init__(self) -> None:
        self.lines: list[str] = []

    def __call__(self, line: str) -> None:
        self.lines.append(line)
