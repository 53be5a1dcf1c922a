"""Tests for the host and dry-run executors and command runner."""

import os
import stat

import pytest

from odoo_deploy import host
from odoo_deploy.executor import DryRunExecutor, HostExecutor
from odoo_deploy.model.validation import ValidationError
from odoo_deploy.utils.cmd import CommandError, quote_arg, run_cmd, set_show_commands


@pytest.fixture(autouse=True)
def quiet_commands():
    set_show_commands(False)
    yield
    set_show_commands(True)


class TestRunCmd:
    """Test the command runner."""

    def test_success(self):
        result = run_cmd(["echo", "hello"])
        assert result.returncode == 0
        assert result.stdout.strip() == "hello"

    def test_non_zero_raises(self):
        with pytest.raises(CommandError) as exc_info:
            run_cmd(["sh", "-c", "echo boom >&2; exit 3"])
        assert exc_info.value.returncode == 3
        assert exc_info.value.code == "COMMAND_FAILED"
        assert "boom" in exc_info.value.message

    def test_non_zero_without_check(self):
        assert run_cmd(["sh", "-c", "exit 2"], check=False).returncode == 2

    def test_missing_binary(self):
        with pytest.raises(CommandError) as exc_info:
            run_cmd(["definitely-not-a-real-binary-xyz"])
        assert exc_info.value.code == "COMMAND_NOT_FOUND"
        assert exc_info.value.returncode == 127

    def test_missing_binary_without_check(self):
        result = run_cmd(["definitely-not-a-real-binary-xyz"], check=False)
        assert result.returncode == 127
        assert result.stdout == ""

    def test_timeout(self):
        with pytest.raises(CommandError) as exc_info:
            run_cmd(["sleep", "5"], timeout=1)
        assert exc_info.value.code == "COMMAND_TIMEOUT"

    def test_quote_arg(self):
        assert quote_arg("plain") == "plain"
        assert quote_arg("two words") == "'two words'"
        assert quote_arg("it's") == "'it'\\''s'"


class TestHostExecutor:
    """Test filesystem operations on a temporary directory."""

    def test_write_file_creates_parents(self, tmp_path):
        target = tmp_path / "a" / "b" / "odoo.env"
        HostExecutor().write_file(target, "KEY=VALUE\n", 0o600)
        assert target.read_text() == "KEY=VALUE\n"
        assert stat.S_IMODE(target.stat().st_mode) == 0o600

    def test_write_file_restricts_mode_before_writing(self, tmp_path, monkeypatch):
        """Content is written only once the file already carries its final mode."""
        target = tmp_path / "odoo.env"
        target.write_text("old")
        os.chmod(target, 0o644)
        sizes = []
        real_fchmod = os.fchmod

        def recording_fchmod(fd, mode):
            sizes.append(os.fstat(fd).st_size)
            real_fchmod(fd, mode)

        monkeypatch.setattr(os, "fchmod", recording_fchmod)
        HostExecutor().write_file(target, "POSTGRES_PASSWORD=secret\n", 0o600)
        assert sizes == [0]
        assert stat.S_IMODE(target.stat().st_mode) == 0o600
        assert target.read_text() == "POSTGRES_PASSWORD=secret\n"

    def test_write_file_overwrites(self, tmp_path):
        target = tmp_path / "file"
        executor = HostExecutor()
        executor.write_file(target, "one")
        executor.write_file(target, "two")
        assert target.read_text() == "two"

    def test_make_dirs_is_idempotent(self, tmp_path):
        target = tmp_path / "data"
        executor = HostExecutor()
        executor.make_dirs(target)
        executor.make_dirs(target, 0o777)
        assert stat.S_IMODE(target.stat().st_mode) == 0o777

    def test_symlink_idempotent(self, tmp_path):
        site = tmp_path / "available" / "odoo.conf"
        site.parent.mkdir()
        site.write_text("server {}")
        link = tmp_path / "enabled" / "odoo.conf"
        executor = HostExecutor()

        assert executor.symlink(site, link) is True
        assert executor.symlink(site, link) is False
        assert os.readlink(link) == str(site)

    def test_symlink_replaces_stale_link(self, tmp_path):
        link = tmp_path / "odoo.conf"
        link.symlink_to(tmp_path / "old.conf")
        HostExecutor().symlink(tmp_path / "new.conf", link)
        assert os.readlink(link) == str(tmp_path / "new.conf")

    def test_symlink_refuses_regular_file(self, tmp_path):
        link = tmp_path / "odoo.conf"
        link.write_text("hand-written")
        with pytest.raises(ValidationError) as exc_info:
            HostExecutor().symlink(tmp_path / "new.conf", link)
        assert exc_info.value.code == "LINK_BLOCKED"

    def test_remove(self, tmp_path):
        target = tmp_path / "link"
        target.symlink_to(tmp_path / "missing")
        executor = HostExecutor()
        assert executor.remove(target) is True
        assert executor.remove(target) is False

    def test_network_creation_tolerates_missing_docker(self, tmp_path, monkeypatch):
        """Without a docker binary the network step warns instead of failing."""
        monkeypatch.setenv("PATH", str(tmp_path))
        assert host.create_network(HostExecutor(), "odoo-net") is False

    def test_write_failure_wrapped(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(ValidationError) as exc_info:
            HostExecutor().write_file(blocker / "child", "content")
        assert exc_info.value.code == "WRITE_FAILED"


class TestDryRunExecutor:
    """Test the recording executor."""

    def test_records_without_side_effects(self, tmp_path):
        executor = DryRunExecutor()
        target = tmp_path / "file"
        executor.write_file(target, "content")
        executor.run(["rm", "-rf", str(tmp_path)])

        assert not target.exists()
        assert tmp_path.exists()
        assert executor.files[str(target)] == "content"
        assert executor.commands == [f"rm -rf {tmp_path}"]

    def test_exists_tracks_writes(self, tmp_path):
        executor = DryRunExecutor(existing={"/seeded"})
        assert executor.exists(tmp_path / "x") is False
        executor.write_file(tmp_path / "x", "")
        assert executor.exists(tmp_path / "x") is True
        assert executor.exists("/seeded") is True
