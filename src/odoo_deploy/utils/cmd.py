"""Command execution utilities with logging."""

import subprocess
from typing import Any

from rich.console import Console
from rich.markup import escape

from odoo_deploy.model.validation import ValidationError

console = Console(stderr=True)

# Global flag to control command display
_show_commands = True


class CommandError(ValidationError):
    """An external command exited non-zero, timed out or was not found."""

    def __init__(
        self,
        cmd: list[str],
        returncode: int,
        stderr: str = "",
        code: str = "COMMAND_FAILED",
    ) -> None:
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        message = f"'{format_cmd(cmd)}' exited with code {returncode}"
        if stderr.strip():
            message += f": {stderr.strip()}"
        super().__init__(code, message)


def set_show_commands(show: bool) -> None:
    """Enable or disable command display."""
    global _show_commands
    _show_commands = show


def get_show_commands() -> bool:
    """Get current show_commands setting."""
    return _show_commands


def quote_arg(arg: str) -> str:
    """Quote argument if it contains spaces or special characters."""
    if " " in arg or any(c in arg for c in "'\"$\\"):
        return "'" + arg.replace("'", "'\\''") + "'"
    return arg


def format_cmd(cmd: list[str]) -> str:
    return " ".join(quote_arg(arg) for arg in cmd)


def run_cmd(
    cmd: list[str],
    *,
    check: bool = True,
    capture_output: bool = True,
    text: bool = True,
    timeout: int | None = None,
    show: bool | None = None,
    **kwargs: Any,
) -> subprocess.CompletedProcess[str]:
    """Run a command with optional display.

    Args:
        cmd: Command and arguments as list
        check: Raise CommandError on non-zero exit code
        capture_output: Capture stdout/stderr
        text: Return text instead of bytes
        timeout: Timeout in seconds
        show: Override global show_commands setting
        **kwargs: Additional subprocess.run arguments

    Returns:
        CompletedProcess result

    Raises:
        CommandError: On timeout, or on non-zero exit or missing binary when check is set.
            Without check a missing binary comes back as exit code 127.
    """
    should_show = show if show is not None else _show_commands

    if should_show:
        console.print(f"[dim]$ {escape(format_cmd(cmd))}[/dim]")

    try:
        result = subprocess.run(
            cmd,
            check=False,
            capture_output=capture_output,
            text=text,
            timeout=timeout,
            **kwargs,
        )
    except FileNotFoundError as e:
        if not check:
            return subprocess.CompletedProcess(cmd, 127, stdout="", stderr=str(e))
        raise CommandError(cmd, 127, str(e), code="COMMAND_NOT_FOUND") from e
    except subprocess.TimeoutExpired as e:
        raise CommandError(cmd, 124, f"timed out after {timeout}s", code="COMMAND_TIMEOUT") from e

    if check and result.returncode != 0:
        raise CommandError(cmd, result.returncode, result.stderr or "")
    return result
