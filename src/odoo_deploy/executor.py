"""Privileged executor: the single seam for every host side effect.

Package installation, service control and writes under ``/etc`` all pass
through an executor so the provisioning sequence can run against
``DryRunExecutor`` without root or a real host.
"""

import os
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Protocol

from rich.console import Console
from rich.markup import escape

from odoo_deploy.model.validation import ValidationError
from odoo_deploy.utils.cmd import format_cmd, get_show_commands, run_cmd

console = Console(stderr=True)


class Executor(Protocol):
    """Interface for host side effects."""

    timeout: int | None

    def run(
        self,
        cmd: list[str],
        *,
        cwd: PurePath | None = None,
        check: bool = True,
        capture_output: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        """Run an external command."""
        ...

    def write_file(self, path: PurePath, content: str, mode: int | None = None) -> None:
        """Write a text file, creating parent directories."""
        ...

    def make_dirs(self, path: PurePath, mode: int | None = None) -> None:
        """Create a directory if missing."""
        ...

    def chmod(self, path: PurePath, mode: int) -> None:
        """Set permissions on a path."""
        ...

    def symlink(self, target: PurePath, link: PurePath) -> bool:
        """Point link at target. Returns False if it already did."""
        ...

    def remove(self, path: PurePath) -> bool:
        """Remove a file or symlink. Returns False if it was absent."""
        ...

    def copy_file(self, source: PurePath, dest: PurePath) -> None:
        """Copy a file, preserving metadata."""
        ...

    def exists(self, path: PurePath) -> bool:
        """Check whether a path exists."""
        ...


class HostExecutor:
    """Executor acting on the local host."""

    def __init__(self, timeout: int | None = None) -> None:
        self.timeout = timeout

    def run(
        self,
        cmd: list[str],
        *,
        cwd: PurePath | None = None,
        check: bool = True,
        capture_output: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        return run_cmd(
            cmd,
            check=check,
            capture_output=capture_output,
            timeout=self.timeout,
            cwd=str(cwd) if cwd else None,
        )

    def write_file(self, path: PurePath, content: str, mode: int | None = None) -> None:
        target = Path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if mode is None:
                target.write_text(content)
                return
            # Restrict permissions before any content lands in the file
            fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
            with os.fdopen(fd, "w") as fh:
                os.fchmod(fh.fileno(), mode)
                fh.write(content)
        except OSError as e:
            raise ValidationError("WRITE_FAILED", f"Failed to write {target}: {e}") from e

    def make_dirs(self, path: PurePath, mode: int | None = None) -> None:
        target = Path(path)
        try:
            target.mkdir(parents=True, exist_ok=True)
            if mode is not None:
                os.chmod(target, mode)
        except OSError as e:
            raise ValidationError("MKDIR_FAILED", f"Failed to create {target}: {e}") from e

    def chmod(self, path: PurePath, mode: int) -> None:
        try:
            os.chmod(path, mode)
        except OSError as e:
            raise ValidationError("CHMOD_FAILED", f"Failed to chmod {path}: {e}") from e

    def symlink(self, target: PurePath, link: PurePath) -> bool:
        link_path = Path(link)
        try:
            if link_path.is_symlink():
                if os.readlink(link_path) == str(target):
                    return False
                link_path.unlink()
            elif link_path.exists():
                raise ValidationError(
                    "LINK_BLOCKED",
                    f"{link_path} exists and is not a symlink",
                )
            link_path.parent.mkdir(parents=True, exist_ok=True)
            link_path.symlink_to(target)
            return True
        except OSError as e:
            raise ValidationError("LINK_FAILED", f"Failed to link {link_path} -> {target}: {e}") from e

    def remove(self, path: PurePath) -> bool:
        target = Path(path)
        if not target.exists() and not target.is_symlink():
            return False
        try:
            target.unlink()
            return True
        except OSError as e:
            raise ValidationError("REMOVE_FAILED", f"Failed to remove {target}: {e}") from e

    def copy_file(self, source: PurePath, dest: PurePath) -> None:
        try:
            Path(dest).parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, dest)
        except OSError as e:
            raise ValidationError("COPY_FAILED", f"Failed to copy {source} to {dest}: {e}") from e

    def exists(self, path: PurePath) -> bool:
        return Path(path).exists()


@dataclass
class Action:
    """One recorded executor call."""

    kind: str
    target: str
    detail: str = ""


@dataclass
class DryRunExecutor:
    """Executor that records actions without touching the host.

    Commands report success with empty output. ``existing`` seeds the
    paths that ``exists`` reports as present.
    """

    timeout: int | None = None
    existing: set[str] = field(default_factory=set)
    actions: list[Action] = field(default_factory=list)
    files: dict[str, str] = field(default_factory=dict)

    def _record(self, kind: str, target: str, detail: str = "") -> None:
        self.actions.append(Action(kind, target, detail))
        if get_show_commands():
            label = target if kind == "run" else f"{kind} {target}"
            console.print(f"[dim](dry-run) {escape(label)}[/dim]")

    def run(
        self,
        cmd: list[str],
        *,
        cwd: PurePath | None = None,
        check: bool = True,
        capture_output: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        self._record("run", format_cmd(cmd), str(cwd) if cwd else "")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    def write_file(self, path: PurePath, content: str, mode: int | None = None) -> None:
        self.files[str(path)] = content
        self.existing.add(str(path))
        self._record("write", str(path), oct(mode) if mode is not None else "")

    def make_dirs(self, path: PurePath, mode: int | None = None) -> None:
        self.existing.add(str(path))
        self._record("mkdir", str(path), oct(mode) if mode is not None else "")

    def chmod(self, path: PurePath, mode: int) -> None:
        self._record("chmod", str(path), oct(mode))

    def symlink(self, target: PurePath, link: PurePath) -> bool:
        self.existing.add(str(link))
        self._record("symlink", str(link), str(target))
        return True

    def remove(self, path: PurePath) -> bool:
        present = str(path) in self.existing
        self.existing.discard(str(path))
        self._record("remove", str(path))
        return present

    def copy_file(self, source: PurePath, dest: PurePath) -> None:
        self.existing.add(str(dest))
        self._record("copy", str(dest), str(source))

    def exists(self, path: PurePath) -> bool:
        return str(path) in self.existing

    @property
    def commands(self) -> list[str]:
        """Formatted commands in the order they were run."""
        return [a.target for a in self.actions if a.kind == "run"]
