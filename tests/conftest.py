import stat
import sys
import textwrap
from pathlib import Path

import pytest


@pytest.fixture
def fake_docker(tmp_path):
    """Write an executable stand-in for the docker CLI.

    The returned factory takes a Python body; the script's argv (minus the
    program name) is available to it as ``args``.
    """

    def _make(body: str, name: str = "docker") -> Path:
        script = tmp_path / name
        script.write_text(
            f"#!{sys.executable}\n"
            "import sys\n"
            "args = sys.argv[1:]\n" + textwrap.dedent(body)
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make
