"""Deployment status: container listing and HTTP probes."""

import warnings
from dataclasses import dataclass

import requests
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from odoo_deploy import host
from odoo_deploy.executor import Executor
from odoo_deploy.model.config import DeploymentConfig

console = Console()


@dataclass
class EndpointStatus:
    """Result of probing one URL."""

    url: str
    status_code: int | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status_code is not None and self.status_code < 500


@dataclass
class DeploymentStatus:
    containers: str
    backend: EndpointStatus
    public: EndpointStatus


def probe(url: str, *, verify: bool = True, timeout: int = 10) -> EndpointStatus:
    """GET a URL without following redirects."""
    try:
        response = requests.get(url, timeout=timeout, verify=verify, allow_redirects=False)
    except requests.RequestException as e:
        return EndpointStatus(url, None, str(e))
    return EndpointStatus(url, response.status_code)


def check_status(config: DeploymentConfig, executor: Executor) -> DeploymentStatus:
    """Collect container state and probe the backend and the public endpoint."""
    ps = host.compose_ps(executor, config.compose_command, config.compose_file_path)
    containers = ps.stdout if ps.returncode == 0 else (ps.stderr or "compose ps failed")

    backend = probe(f"http://localhost:{config.odoo_port}/web/login")
    # Self-signed certificates would fail verification
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        public = probe(f"https://{config.domain}/", verify=False)

    return DeploymentStatus(containers=containers, backend=backend, public=public)


def print_status(status: DeploymentStatus) -> None:
    table = Table(title="Endpoints")
    table.add_column("URL", style="cyan")
    table.add_column("Status")

    for endpoint in (status.backend, status.public):
        if endpoint.ok:
            state = f"[green]{endpoint.status_code}[/green]"
        elif endpoint.status_code is not None:
            state = f"[red]{endpoint.status_code}[/red]"
        else:
            state = f"[red]unreachable[/red] [dim]{escape(endpoint.error or '')}[/dim]"
        table.add_row(endpoint.url, state)

    console.print(escape(status.containers.rstrip()) or "[yellow]No containers listed.[/yellow]")
    console.print(table)
