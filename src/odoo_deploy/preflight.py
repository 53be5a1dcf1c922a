"""Pre-flight checks run before touching the host."""

import errno
import os
import shutil
import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from rich.console import Console
from rich.table import Table

from odoo_deploy.model.config import DeploymentConfig, TLSMode
from odoo_deploy.model.validation import ValidationError

console = Console()

REQUIRED_COMMANDS = ["apt-get", "systemctl"]


@dataclass
class CheckResult:
    """Result of a single pre-flight check."""

    name: str
    ok: bool
    severity: Literal["error", "warning"]
    detail: str = ""


def check_root() -> CheckResult:
    """Package installation and /etc writes need root."""
    is_root = os.geteuid() == 0
    return CheckResult(
        "root privileges",
        is_root,
        "error",
        "running as root" if is_root else "re-run with sudo or as root",
    )


def check_commands(commands: list[str] | None = None) -> CheckResult:
    missing = [c for c in (commands or REQUIRED_COMMANDS) if shutil.which(c) is None]
    return CheckResult(
        "required commands",
        not missing,
        "error",
        f"missing: {', '.join(missing)}" if missing else "all present",
    )


def check_port_free(port: int, host: str = "0.0.0.0") -> CheckResult:
    """Check the host port can be bound.

    A warning only: on re-runs the running stack already holds it.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError as e:
            if e.errno == errno.EADDRINUSE:
                return CheckResult(f"port {port}", False, "warning", "already in use")
            return CheckResult(f"port {port}", False, "warning", str(e))
    return CheckResult(f"port {port}", True, "warning", "free")


def check_domain_resolves(domain: str) -> CheckResult:
    try:
        address = socket.gethostbyname(domain)
    except socket.gaierror as e:
        return CheckResult(f"DNS {domain}", False, "warning", f"does not resolve: {e}")
    return CheckResult(f"DNS {domain}", True, "warning", address)


def _nearest_existing(path: Path) -> Path:
    while not path.exists() and path != path.parent:
        path = path.parent
    return path


def check_writable(paths: list[str]) -> CheckResult:
    """Check each path, or its nearest existing ancestor, is writable."""
    blocked = [p for p in paths if not os.access(_nearest_existing(Path(p)), os.W_OK)]
    return CheckResult(
        "writable paths",
        not blocked,
        "error",
        f"not writable: {', '.join(blocked)}" if blocked else "all writable",
    )


def check_custom_certs(config: DeploymentConfig) -> CheckResult:
    missing = [p for p in (config.custom_cert_path, config.custom_key_path) if not p or not Path(p).exists()]
    return CheckResult(
        "custom certificate",
        not missing,
        "error",
        f"not found: {', '.join(str(p) for p in missing)}" if missing else "present",
    )


def run_preflight(config: DeploymentConfig) -> list[CheckResult]:
    """Run every check that applies to the configuration."""
    results = [
        check_root(),
        check_commands(),
        check_port_free(config.odoo_port),
        check_domain_resolves(config.domain),
        check_writable(
            [
                config.stack_dir,
                config.data_dir,
                config.nginx_sites_available,
                config.nginx_sites_enabled,
                config.ssl_cert_dir,
                config.ssl_key_dir,
            ]
        ),
    ]
    if config.tls_mode == TLSMode.CUSTOM:
        results.append(check_custom_certs(config))
    return results


def failed_errors(results: list[CheckResult]) -> list[CheckResult]:
    return [r for r in results if not r.ok and r.severity == "error"]


def print_preflight(results: list[CheckResult]) -> None:
    table = Table(title="Pre-flight Checks")
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Detail", style="dim")

    for result in results:
        if result.ok:
            status = "[green]ok[/green]"
        elif result.severity == "error":
            status = "[red]fail[/red]"
        else:
            status = "[yellow]warn[/yellow]"
        table.add_row(result.name, status, result.detail)

    console.print(table)


def ensure_preflight(results: list[CheckResult]) -> None:
    """Raise if any error-level check failed."""
    errors = failed_errors(results)
    if errors:
        names = ", ".join(r.name for r in errors)
        raise ValidationError("PREFLIGHT_FAILED", f"Pre-flight checks failed: {names}")
