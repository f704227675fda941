from dataclasses import dataclass
from typing import Any


@dataclass
class AdapterError(Exception):
    message: str
    details: dict[str, Any] | None = None
    hint: str | None = None
    cause: Exception | None = None

    def __str__(self) -> str:
        return self.message


class ExecutionError(AdapterError):
    code = "EXECUTION_FAILED"


class LaunchError(ExecutionError):
    code = "LAUNCH_FAILED"


class StreamReadError(ExecutionError):
    code = "STREAM_READ_FAILED"
