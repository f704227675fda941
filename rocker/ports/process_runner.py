from typing import Protocol

from rocker.domain.command import Command
from rocker.domain.process import ProcessResult


class OutputSink(Protocol):
    def __call__(self, line: str) -> None: ...


class ProcessRunnerPort(Protocol):
    def run(self, command: Command) -> ProcessResult: ...
