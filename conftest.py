"""Shared pytest fixtures."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

GATE_ENV_VARS = [
    "POLICY_SOURCE",
    "POLICY_REPO",
    "POLICY_PATH",
    "POLICY_REF",
    "MIN_SEVERITY",
    "LOCAL_POLICY_DIR",
    "POLICY_TOKEN",
    "POLICY_ECOSYSTEMS",
    "POLICY_FETCH_TIMEOUT",
    "POLICY_FETCH_WORKERS",
    "VULNERABLE_CHANGES",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of the settings under test."""
    for name in GATE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def policy_dir(tmp_path):
    """A local policy directory with npm and maven lists and a config file."""
    directory = tmp_path / "policies"
    directory.mkdir()
    (directory / "npm.txt").write_text("# npm packages\n\nlodash\n  left-pad  \n")
    (directory / "maven.txt").write_text("org.example:lib\n# comment\ncom.acme:core:2.0\n")
    (directory / "config.txt").write_text("min_severity: high\n")
    (directory / "README.md").write_text("not a policy\n")
    return directory
