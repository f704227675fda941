from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

DEFAULT_EXECUTABLE = "docker"
DEFAULT_ECHO_PREFIX = "|  "
FALLBACK_EXIT_STATUS = 1


class MergePolicy(str, Enum):
    INTERLEAVED = "interleaved"
    SEQUENTIAL = "sequential"


def resolve_exit_status(returncode: int | None) -> int:
    # Popen reports death by signal N as -N.
    if returncode is None or returncode < 0:
        return FALLBACK_EXIT_STATUS
    return returncode


@dataclass(frozen=True)
class ProcessResult:
    output: str
    exit_status: int = FALLBACK_EXIT_STATUS

    @classmethod
    def from_lines(cls, lines: list[str], returncode: int | None) -> ProcessResult:
        return cls(
            output="".join(f"\n{line}" for line in lines),
            exit_status=resolve_exit_status(returncode),
        )

    @property
    def lines(self) -> tuple[str, ...]:
        if not self.output:
            return ()
        return tuple(self.output.split("\n")[1:])

    @property
    def succeeded(self) -> bool:
        return self.exit_status == 0


@dataclass(frozen=True)
class BuildResult:
    process: ProcessResult
    tag: str | None = None


@dataclass(frozen=True)
class CreateResult:
    process: ProcessResult
    container_id: str = field(init=False)

    def __post_init__(self) -> None:
        # Anything else merged into the output ends up in the id as well.
        object.__setattr__(self, "container_id", self.process.output.strip())


@dataclass(frozen=True)
class CopyResult:
    process: ProcessResult
