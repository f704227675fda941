from __future__ import annotations

import logging
from typing import Callable, TypeVar

from rocker.adapters.errors import ExecutionError
from rocker.domain.builders import DockerBuild, DockerCopy, DockerCreate
from rocker.domain.command import Command, CommandBuilder
from rocker.domain.diagnostics import Diagnostic, Severity
from rocker.domain.process import BuildResult, CopyResult, CreateResult, ProcessResult
from rocker.domain.result import Result
from rocker.ports.process_runner import ProcessRunnerPort

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Rocker:
    """Binds command builders to a process runner.

    Execution errors raised by the runner propagate unchanged. A run that
    completes with a non-zero status is returned like any other result.
    """

    def __init__(self, runner: ProcessRunnerPort) -> None:
        self.runner = runner

    def run(self, builder: CommandBuilder) -> ProcessResult:
        command = Command.from_builder(builder)
        process = self.runner.run(command)
        if not process.succeeded:
            logger.info("'%s' exited with status %s", command.render(), process.exit_status)
        return process

    def build(self, builder: DockerBuild) -> BuildResult:
        return BuildResult(process=self.run(builder), tag=builder.tag)

    def create(self, builder: DockerCreate) -> CreateResult:
        return CreateResult(process=self.run(builder))

    def copy(self, builder: DockerCopy) -> CopyResult:
        return CopyResult(process=self.run(builder))


def execution_diagnostic(error: ExecutionError) -> Diagnostic:
    return Diagnostic(
        code=error.code,
        rule="runner.execute",
        severity=Severity.ERROR,
        message=error.message,
        hint=error.hint,
        details=error.details,
        is_execution=True,
    )


def run_guarded(call: Callable[[], T]) -> Result[T]:
    try:
        return Result(value=call())
    except ExecutionError as e:
        return Result(diagnostics=[execution_diagnostic(e)])
