"""Pytest configuration and fixtures for casperdriver tests"""

import json
import os
import stat
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Ensure src directory is in Python path before any imports
project_root = Path(__file__).resolve().parent.parent
src_path = project_root / "src"

if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from casperdriver.config import Settings  # noqa: E402

FAKE_ENGINE_PATH = "/usr/local/bin/casperjs"

FAKE_ENGINE_SOURCE = """#!{python}
import json
import sys
from pathlib import Path

record = Path({record!r})
calls = json.loads(record.read_text()) if record.exists() else []
calls.append({{
    "argv": sys.argv[1:],
    "script": Path(sys.argv[1]).read_text(encoding="utf-8"),
}})
record.write_text(json.dumps(calls))

for line in {lines!r}:
    print(line)
sys.exit({exit_code})
"""


@pytest.fixture
def settings(tmp_path):
    """Settings that keep transient scripts inside the test's tmp dir"""
    script_dir = tmp_path / "scripts"
    script_dir.mkdir()
    return Settings(command="casperjs", script_dir=str(script_dir), script_prefix="test-")


@pytest.fixture
def engine_on_path():
    """Pretend the engine executable is installed"""
    with patch("casperdriver.runner.shutil.which", return_value=FAKE_ENGINE_PATH) as which:
        yield which


@pytest.fixture
def engine_missing():
    """Pretend the engine executable is not installed"""
    with patch("casperdriver.runner.shutil.which", return_value=None) as which:
        yield which


@pytest.fixture
def fake_engine(tmp_path):
    """Factory writing a real executable that mimics casperjs.

    The fake records its argv and the script it was given into calls.json,
    prints the requested lines and exits with the requested status.
    """
    if os.name == "nt":
        pytest.skip("shebang executables are POSIX-only")

    record = tmp_path / "calls.json"

    def _make(lines=(), exit_code=0):
        engine = tmp_path / "fake-casperjs"
        engine.write_text(
            FAKE_ENGINE_SOURCE.format(
                python=sys.executable,
                record=str(record),
                lines=list(lines),
                exit_code=exit_code,
            ),
            encoding="utf-8",
        )
        engine.chmod(engine.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return engine

    def _calls():
        return json.loads(record.read_text()) if record.exists() else []

    _make.calls = _calls
    return _make
