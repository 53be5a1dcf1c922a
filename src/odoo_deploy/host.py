"""Host operations: packages, services, Docker network and Compose."""

import subprocess
from pathlib import PurePath

from rich.console import Console
from rich.markup import escape

from odoo_deploy.executor import Executor
from odoo_deploy.utils.cmd import CommandError

console = Console()


def install_packages(executor: Executor, packages: list[str]) -> None:
    """Refresh the apt index and install packages non-interactively."""
    executor.run(["apt-get", "update", "-y"], capture_output=False)
    executor.run(["apt-get", "install", "-y", *packages], capture_output=False)


def enable_service(executor: Executor, service: str) -> None:
    """Start a systemd unit now and at boot."""
    executor.run(["systemctl", "start", service])
    executor.run(["systemctl", "enable", service])


def reload_service(executor: Executor, service: str) -> None:
    executor.run(["systemctl", "reload", service])


def create_network(executor: Executor, network_name: str) -> bool:
    """Create a Docker bridge network.

    An existing network, or a failed create, is reported and tolerated.

    Returns:
        True if the network was created by this call
    """
    inspect = executor.run(["docker", "network", "inspect", network_name], check=False)
    if inspect.returncode == 0 and inspect.stdout.strip():
        console.print(f"[yellow]Network '{network_name}' already exists.[/yellow]")
        return False

    try:
        executor.run(["docker", "network", "create", network_name])
    except CommandError as e:
        console.print(f"[yellow]Network '{network_name}' not created ({escape(e.message)}); continuing.[/yellow]")
        return False
    return True


def clone_repository(executor: Executor, url: str, dest: PurePath) -> bool:
    """Fetch an optional git repository into dest.

    Pulls instead of cloning when dest is already a checkout. Failures
    are reported and tolerated.

    Returns:
        True if the repository was fetched
    """
    if executor.exists(dest / ".git"):
        cmd = ["git", "-C", str(dest), "pull", "--ff-only"]
    else:
        cmd = ["git", "clone", url, str(dest)]

    try:
        executor.run(cmd)
    except CommandError as e:
        console.print(f"[yellow]Skipping addons fetch from {url}: {escape(e.message)}[/yellow]")
        return False
    return True


def _compose(compose_command: list[str], compose_file: PurePath, *args: str) -> list[str]:
    return [*compose_command, "-f", str(compose_file), *args]


def compose_up(executor: Executor, compose_command: list[str], compose_file: PurePath) -> None:
    """Start the stack detached."""
    executor.run(
        _compose(compose_command, compose_file, "up", "-d"),
        cwd=compose_file.parent,
        capture_output=False,
    )


def compose_down(
    executor: Executor,
    compose_command: list[str],
    compose_file: PurePath,
    remove_volumes: bool = False,
) -> None:
    """Stop and remove the stack."""
    args = ["down", "-v"] if remove_volumes else ["down"]
    executor.run(
        _compose(compose_command, compose_file, *args),
        cwd=compose_file.parent,
        capture_output=False,
    )


def compose_ps(
    executor: Executor,
    compose_command: list[str],
    compose_file: PurePath,
) -> subprocess.CompletedProcess[str]:
    """List stack containers without raising on failure."""
    return executor.run(
        _compose(compose_command, compose_file, "ps"),
        cwd=compose_file.parent,
        check=False,
    )
