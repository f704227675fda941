from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from typing import Any, TypeVar

from rocker.domain.diagnostics import Diagnostic, Location
from rocker.domain.process import ProcessResult
from rocker.domain.result import Result

T = TypeVar("T")


def _serialize_location(location: Location | None) -> dict[str, Any] | None:
    if location is None:
        return None
    return asdict(location)


def serialize_diagnostic(diag: Diagnostic) -> dict[str, Any]:
    return {
        "id": diag.id,
        "code": diag.code,
        "rule": diag.rule,
        "severity": diag.severity.value,
        "message": diag.message,
        "hint": diag.hint,
        "details": diag.details,
        "is_execution": diag.is_execution,
        "location": _serialize_location(diag.location),
    }


def serialize_process(process: ProcessResult) -> dict[str, Any]:
    return {
        "exit_status": process.exit_status,
        "output": process.output,
        "lines": list(process.lines),
    }


def _serialize_value(value: object) -> dict[str, Any] | None:
    if value is None:
        return None
    if isinstance(value, ProcessResult):
        return {"process": serialize_process(value)}
    if is_dataclass(value) and not isinstance(value, type):
        data = asdict(value)
        process = getattr(value, "process", None)
        if isinstance(process, ProcessResult):
            data["process"] = serialize_process(process)
        return data
    return {"value": str(value)}


def serialize_result(
    result: Result[T],
    command: str,
    args: list[str],
    exit_code: int | None = None,
) -> dict[str, Any]:
    return {
        "result_schema_version": 1,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "command": command,
        "args": args,
        "exit_code": result.exit_code if exit_code is None else exit_code,
        "diagnostics": [serialize_diagnostic(d) for d in result.diagnostics],
        "result": _serialize_value(result.value),
    }
