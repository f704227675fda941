import json
import sys

import pytest
from typer.testing import CliRunner

from rocker.application.settings import ENV_EXECUTABLE, ENV_MERGE_POLICY
from rocker.entrypoints.cli import app

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX process semantics")

ECHO_ARGS = """
print(" ".join(args))
"""


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(ENV_EXECUTABLE, raising=False)
    monkeypatch.delenv(ENV_MERGE_POLICY, raising=False)


def _last_json(output: str) -> dict:
    return json.loads(output.strip().splitlines()[-1])


def test_cli_build_passes_tag_and_context(fake_docker):
    script = fake_docker(ECHO_ARGS)
    result = CliRunner().invoke(
        app, ["build", "ctx", "-t", "myimage:latest", "--executable", str(script), "--json"]
    )
    assert result.exit_code == 0, result.output
    payload = _last_json(result.stdout)
    assert payload["command"] == "build"
    assert payload["args"] == ["build", "-f", "Dockerfile", "-t", "myimage:latest", "ctx"]
    assert payload["result"]["tag"] == "myimage:latest"
    assert payload["result"]["process"]["lines"] == ["build -f Dockerfile -t myimage:latest ctx"]
    assert "|  build -f Dockerfile -t myimage:latest ctx" in result.output


def test_cli_create_reports_container_id(fake_docker):
    script = fake_docker(
        """
        sys.stdout.write("abc123\\n")
        """
    )
    result = CliRunner().invoke(app, ["create", "alpine", "--executable", str(script), "--json"])
    assert result.exit_code == 0, result.output
    assert _last_json(result.stdout)["result"]["container_id"] == "abc123"


def test_cli_cp_uses_container_source(fake_docker):
    script = fake_docker(ECHO_ARGS)
    result = CliRunner().invoke(
        app, ["cp", "abc123", "/app/out.txt", "out.txt", "--executable", str(script)]
    )
    assert result.exit_code == 0, result.output
    assert "|  cp abc123:/app/out.txt out.txt" in result.output


def test_cli_exit_code_follows_tool_status(fake_docker):
    script = fake_docker(
        """
        print("Error: No such image", file=sys.stderr)
        sys.exit(125)
        """
    )
    result = CliRunner().invoke(app, ["create", "missing", "--executable", str(script)])
    assert result.exit_code == 125
    assert "|  Error: No such image" in result.output


def test_cli_nonzero_status_is_reported_as_warning(fake_docker):
    script = fake_docker("sys.exit(1)")
    result = CliRunner().invoke(app, ["create", "img", "--executable", str(script), "--json"])
    assert result.exit_code == 1
    diag = _last_json(result.output)["diagnostics"][0]
    assert diag["code"] == "TOOL_EXIT_NONZERO"
    assert diag["severity"] == "warn"
    assert diag["details"] == {"exit_status": 1}


def test_cli_launch_failure_exits_with_execution_code(tmp_path):
    missing = str(tmp_path / "no-docker-here")
    result = CliRunner().invoke(app, ["build", "--executable", missing, "--json"])
    assert result.exit_code == 3
    assert "LAUNCH_FAILED" in result.output
    payload = _last_json(result.stdout)
    assert payload["result"] is None
    assert payload["diagnostics"][0]["is_execution"] is True


def test_cli_reads_settings_file(tmp_path, fake_docker):
    script = fake_docker(ECHO_ARGS, name="podman")
    (tmp_path / ".rocker.toml").write_text(
        f'[runner]\nexecutable = "{script}"\necho_prefix = "> "\n'
    )
    result = CliRunner().invoke(app, ["create", "alpine"])
    assert result.exit_code == 0, result.output
    assert f"Running command: {script} create alpine" in result.output
    assert "> create alpine" in result.output


def test_cli_invalid_merge_policy_exits_invalid():
    result = CliRunner().invoke(app, ["build", "--merge", "chaotic"])
    assert result.exit_code == 2
    assert "SETTINGS_OPTION_INVALID" in result.output
