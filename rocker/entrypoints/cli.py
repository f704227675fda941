import json
from pathlib import Path
from typing import Any, Callable

import typer

from rocker.adapters.runner.sinks import StreamSink
from rocker.adapters.runner.subprocess_runner import SubprocessRunner
from rocker.application.operations import Rocker, run_guarded
from rocker.application.result_serialization import serialize_result
from rocker.application.settings import (
    SETTINGS_FILE,
    RockerSettings,
    load_settings,
    write_settings,
)
from rocker.domain.builders import DockerBuild, DockerCopy, DockerCreate
from rocker.domain.command import CommandBuilder
from rocker.domain.diagnostics import Diagnostic, FileLocation, Severity
from rocker.domain.result import EXIT_INVALID, Result
from rocker.entrypoints.logging_setup import configure_logging

app = typer.Typer(add_completion=False)

ExecutableOption = typer.Option(None, "--executable", help="Container tool to invoke")
MergeOption = typer.Option(None, "--merge", help="interleaved or sequential")
JsonOption = typer.Option(False, "--json", help="Print a JSON result on stdout")


def _report(result: Result[Any]) -> None:
    for d in result.diagnostics:
        typer.echo(f"{d.severity.value}: {d.code}: {d.message}", err=True)
        if d.hint:
            typer.echo(f"  hint: {d.hint}", err=True)


def _tool_exit_warning(executable: str, status: int) -> Diagnostic:
    return Diagnostic(
        code="TOOL_EXIT_NONZERO",
        rule="runner.status",
        severity=Severity.WARN,
        message=f"{executable} exited with status {status}",
        details={"exit_status": status},
    )


def _execute(
    ctx: typer.Context,
    name: str,
    builder: CommandBuilder,
    call: Callable[[Rocker], Any],
    executable: str | None,
    merge: str | None,
    json_output: bool,
) -> None:
    args = list(builder.args())
    settings_result = load_settings(ctx.obj, executable=executable, merge_policy=merge)
    settings = settings_result.value
    if settings is None:
        result: Result[Any] = settings_result
        exit_code = result.exit_code
    else:
        runner = SubprocessRunner(
            executable=settings.executable,
            sink=StreamSink(),
            merge_policy=settings.merge_policy,
            echo_prefix=settings.echo_prefix,
        )
        result = run_guarded(lambda: call(Rocker(runner)))
        if result.value is None:
            exit_code = result.exit_code
        else:
            exit_code = result.value.process.exit_status
            if exit_code != 0:
                result.diagnostics.append(_tool_exit_warning(settings.executable, exit_code))
    _report(result)
    if json_output:
        payload = serialize_result(result, command=name, args=args, exit_code=exit_code)
        typer.echo(json.dumps(payload))
    raise typer.Exit(exit_code)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    config: Path = typer.Option(Path(SETTINGS_FILE), "--config", help="Settings file"),
):
    configure_logging(verbose)
    ctx.obj = config


@app.command()
def build(
    ctx: typer.Context,
    context: str = typer.Argument("."),
    file: str = typer.Option("Dockerfile", "--file", "-f"),
    tag: str | None = typer.Option(None, "--tag", "-t"),
    executable: str | None = ExecutableOption,
    merge: str | None = MergeOption,
    json_output: bool = JsonOption,
):
    builder = DockerBuild().with_context(context).with_file(file)
    if tag:
        builder = builder.with_tag(tag)
    _execute(ctx, "build", builder, lambda r: r.build(builder), executable, merge, json_output)


@app.command()
def create(
    ctx: typer.Context,
    image: str = typer.Argument(...),
    executable: str | None = ExecutableOption,
    merge: str | None = MergeOption,
    json_output: bool = JsonOption,
):
    builder = DockerCreate(image)
    _execute(ctx, "create", builder, lambda r: r.create(builder), executable, merge, json_output)


@app.command("cp")
def copy(
    ctx: typer.Context,
    container: str = typer.Argument(...),
    source: str = typer.Argument(...),
    destination: str = typer.Argument(...),
    executable: str | None = ExecutableOption,
    merge: str | None = MergeOption,
    json_output: bool = JsonOption,
):
    builder = DockerCopy(container, source, destination)
    _execute(ctx, "cp", builder, lambda r: r.copy(builder), executable, merge, json_output)


@app.command()
def config_init(ctx: typer.Context, force: bool = typer.Option(False, "--force")):
    path: Path = ctx.obj
    if path.exists() and not force:
        _report(
            Result(
                diagnostics=[
                    Diagnostic(
                        code="SETTINGS_EXISTS",
                        rule="settings.write",
                        severity=Severity.ERROR,
                        message=f"{path} already exists",
                        location=FileLocation(str(path)),
                        hint="Pass --force to overwrite it",
                    )
                ]
            )
        )
        raise typer.Exit(EXIT_INVALID)
    write_settings(path, RockerSettings())
    typer.echo(f"Wrote {path}")
