from __future__ import annotations

from dataclasses import dataclass, replace
import os
from pathlib import Path
import tomllib
from typing import Any

import jsonschema
import tomli_w

from rocker.domain.diagnostics import Diagnostic, FileLocation, Severity, ValueLocation
from rocker.domain.process import DEFAULT_ECHO_PREFIX, DEFAULT_EXECUTABLE, MergePolicy
from rocker.domain.result import Result

SETTINGS_FILE = ".rocker.toml"
ENV_EXECUTABLE = "ROCKER_EXECUTABLE"
ENV_MERGE_POLICY = "ROCKER_MERGE_POLICY"

SETTINGS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "runner": {
            "type": "object",
            "properties": {
                "executable": {"type": "string", "minLength": 1},
                "merge_policy": {"enum": [p.value for p in MergePolicy]},
                "echo_prefix": {"type": "string"},
            },
            "additionalProperties": False,
        }
    },
    "additionalProperties": False,
}


@dataclass(frozen=True)
class RockerSettings:
    executable: str = DEFAULT_EXECUTABLE
    merge_policy: MergePolicy = MergePolicy.INTERLEAVED
    echo_prefix: str = DEFAULT_ECHO_PREFIX

    def to_dict(self) -> dict[str, Any]:
        return {
            "runner": {
                "executable": self.executable,
                "merge_policy": self.merge_policy.value,
                "echo_prefix": self.echo_prefix,
            }
        }


def read_settings(path: Path) -> Result[RockerSettings]:
    if not path.exists():
        return Result(value=RockerSettings())
    try:
        raw = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as e:
        return Result(
            diagnostics=[
                Diagnostic(
                    code="SETTINGS_PARSE_FAILED",
                    rule="settings.parse",
                    severity=Severity.ERROR,
                    message=str(e),
                    location=FileLocation(str(path)),
                )
            ]
        )
    try:
        jsonschema.validate(raw, SETTINGS_SCHEMA)
    except jsonschema.ValidationError as e:
        return Result(
            diagnostics=[
                Diagnostic(
                    code="SETTINGS_SCHEMA_INVALID",
                    rule="settings.schema",
                    severity=Severity.ERROR,
                    message=e.message,
                    location=FileLocation(str(path)),
                    details={"path": [str(p) for p in e.absolute_path]},
                )
            ]
        )
    runner = raw.get("runner", {})
    settings = RockerSettings(
        executable=runner.get("executable", DEFAULT_EXECUTABLE),
        merge_policy=MergePolicy(runner.get("merge_policy", MergePolicy.INTERLEAVED)),
        echo_prefix=runner.get("echo_prefix", DEFAULT_ECHO_PREFIX),
    )
    return Result(value=settings)


def _merge_policy_override(
    value: str, field: str, code: str, diagnostics: list[Diagnostic]
) -> MergePolicy | None:
    try:
        return MergePolicy(value)
    except ValueError:
        diagnostics.append(
            Diagnostic(
                code=code,
                rule="settings.merge_policy",
                severity=Severity.ERROR,
                message=f"Unknown merge policy: {value}",
                location=ValueLocation(field, value),
                hint="Use one of: " + ", ".join(p.value for p in MergePolicy),
            )
        )
        return None


def load_settings(
    path: Path,
    executable: str | None = None,
    merge_policy: str | None = None,
) -> Result[RockerSettings]:
    """Resolve settings from the file, then the environment, then explicit options."""
    result = read_settings(path)
    if result.value is None:
        return result
    settings = result.value
    diagnostics = list(result.diagnostics)

    env_executable = os.environ.get(ENV_EXECUTABLE)
    if env_executable is not None:
        if env_executable.strip():
            settings = replace(settings, executable=env_executable)
        else:
            diagnostics.append(
                Diagnostic(
                    code="SETTINGS_ENV_INVALID",
                    rule="settings.executable",
                    severity=Severity.ERROR,
                    message=f"{ENV_EXECUTABLE} is set but empty",
                    location=ValueLocation(ENV_EXECUTABLE, env_executable),
                )
            )
    env_policy = os.environ.get(ENV_MERGE_POLICY)
    if env_policy:
        policy = _merge_policy_override(
            env_policy, ENV_MERGE_POLICY, "SETTINGS_ENV_INVALID", diagnostics
        )
        if policy is not None:
            settings = replace(settings, merge_policy=policy)

    if executable:
        settings = replace(settings, executable=executable)
    if merge_policy:
        policy = _merge_policy_override(
            merge_policy, "--merge", "SETTINGS_OPTION_INVALID", diagnostics
        )
        if policy is not None:
            settings = replace(settings, merge_policy=policy)

    if any(d.severity == Severity.ERROR for d in diagnostics):
        return Result(diagnostics=diagnostics)
    return Result(value=settings, diagnostics=diagnostics)


def write_settings(path: Path, settings: RockerSettings) -> None:
    path.write_text(tomli_w.dumps(settings.to_dict()), encoding="utf-8")
