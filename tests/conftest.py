"""Pytest configuration and shared fixtures."""

import json
import subprocess

import pytest
from typer.testing import CliRunner

from odoo_deploy.executor import DryRunExecutor
from odoo_deploy.model.config import DeploymentConfig
from odoo_deploy.utils.cmd import CommandError


class RecordingExecutor(DryRunExecutor):
    """DryRunExecutor that can fail or answer selected commands.

    ``failures`` maps a command prefix to the exit code it should return.
    ``outputs`` maps a command prefix to the stdout it should produce.
    """

    def __init__(self, failures=None, outputs=None, **kwargs):
        super().__init__(**kwargs)
        self.failures = failures or {}
        self.outputs = outputs or {}

    def run(self, cmd, *, cwd=None, check=True, capture_output=True):
        super().run(cmd, cwd=cwd, check=check, capture_output=capture_output)
        line = " ".join(cmd)
        for prefix, code in self.failures.items():
            if line.startswith(prefix):
                if check:
                    raise CommandError(cmd, code, "simulated failure")
                return subprocess.CompletedProcess(cmd, code, stdout="", stderr="simulated failure")
        for prefix, stdout in self.outputs.items():
            if line.startswith(prefix):
                return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr="")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


@pytest.fixture
def cli_runner():
    """CLI runner for typer testing."""
    return CliRunner()


@pytest.fixture
def sample_profile():
    """Sample profile data."""
    return {
        "name": "test-site",
        "domain": "example.com",
        "postgres_user": "odoo",
        "postgres_password": "openpgpwd",
        "admin_password": "strong_admin_password",
        "stack_dir": "/srv/odoo",
        "data_dir": "/srv/odoo_data",
    }


@pytest.fixture
def config(sample_profile):
    """Fully resolved deployment config."""
    return DeploymentConfig(**sample_profile)


@pytest.fixture
def recording_executor():
    """Factory for RecordingExecutor instances."""

    def _create(**kwargs):
        return RecordingExecutor(**kwargs)

    return _create


@pytest.fixture
def create_profile(tmp_path):
    """Factory fixture to create profile files."""
    profiles_dir = tmp_path / ".odoo-deploy" / "profiles"
    profiles_dir.mkdir(parents=True, exist_ok=True)

    def _create(profile_data: dict):
        profile_path = profiles_dir / f"{profile_data['name']}.json"
        profile_path.write_text(json.dumps(profile_data))
        return profile_path

    return _create
