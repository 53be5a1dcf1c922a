"""Linear provisioning sequence for a single host."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from odoo_deploy import host
from odoo_deploy.artifacts import render_proxy_artifact, render_stack_artifacts
from odoo_deploy.executor import Executor
from odoo_deploy.model.config import DeploymentConfig, TLSMode
from odoo_deploy.model.validation import ValidationError, ensure_resolved
from odoo_deploy.tls import certificate_is_current, generate_self_signed, import_custom_certs
from odoo_deploy.utils.cmd import CommandError

console = Console()

STEP_NAMES = (
    "packages",
    "docker",
    "network",
    "directories",
    "addons",
    "artifacts",
    "stack",
    "certificate",
    "proxy",
)


class StepFailed(ValidationError):
    """A provisioning step aborted the run."""

    def __init__(self, step: str, error: ValidationError) -> None:
        self.step = step
        self.error = error
        self.returncode = error.returncode if isinstance(error, CommandError) else 1
        super().__init__(error.code, f"step '{step}' failed: {error.message}")


@dataclass
class Step:
    """One provisioning step."""

    name: str
    title: str
    action: Callable[[], bool | None]


@dataclass
class ProvisionReport:
    """Outcome of a provisioning run.

    A step action returning False counts as a warning: it hit a tolerated
    failure or decided there was nothing to do.
    """

    completed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class Provisioner:
    """Runs the provisioning steps in order, stopping at the first failure."""

    def __init__(
        self,
        config: DeploymentConfig,
        executor: Executor,
        *,
        skip: Iterable[str] = (),
        rotate_certificate: bool | None = None,
    ) -> None:
        self.config = ensure_resolved(config)
        self.executor = executor
        self.skip = set(skip)
        unknown = self.skip - set(STEP_NAMES)
        if unknown:
            raise ValidationError(
                "UNKNOWN_STEP",
                f"Unknown step(s): {', '.join(sorted(unknown))}. Valid steps: {', '.join(STEP_NAMES)}",
            )
        self.rotate_certificate = config.rotate_certificate if rotate_certificate is None else rotate_certificate

    def steps(self) -> list[Step]:
        """The steps in execution order."""
        return [
            Step("packages", "Installing system packages", self.install_packages),
            Step("docker", "Starting Docker", self.enable_docker),
            Step("network", "Creating Docker network", self.create_network),
            Step("directories", "Preparing directories", self.prepare_directories),
            Step("addons", "Fetching custom addons", self.fetch_addons),
            Step("artifacts", "Writing env file, compose manifest and app config", self.write_artifacts),
            Step("stack", "Starting containers", self.start_stack),
            Step("certificate", "Preparing TLS certificate", self.prepare_certificate),
            Step("proxy", "Configuring Nginx reverse proxy", self.configure_proxy),
        ]

    def run(self) -> ProvisionReport:
        """Execute every step that is not skipped.

        Raises:
            StepFailed: On the first fatal error; earlier steps are not undone
        """
        report = ProvisionReport()
        steps = self.steps()
        total = len(steps)

        for index, step in enumerate(steps, start=1):
            if step.name in self.skip:
                console.print(f"[dim]==> [{index}/{total}] {step.title} (skipped)[/dim]")
                report.skipped.append(step.name)
                continue

            console.print(f"[cyan]==> [{index}/{total}] {step.title}[/cyan]")
            try:
                outcome = step.action()
            except ValidationError as e:
                console.print(f"[red]Step '{step.name}' failed: {escape(e.message)}[/red]")
                raise StepFailed(step.name, e) from e

            if outcome is False:
                report.warnings.append(step.name)
            report.completed.append(step.name)

        return report

    # Steps

    def install_packages(self) -> None:
        host.install_packages(self.executor, self.config.packages)

    def enable_docker(self) -> None:
        host.enable_service(self.executor, "docker")

    def create_network(self) -> bool:
        return host.create_network(self.executor, self.config.network_name)

    def prepare_directories(self) -> None:
        self.executor.make_dirs(self.config.config_dir)
        self.executor.make_dirs(self.config.addons_dir)
        self.executor.make_dirs(PurePosixPath(self.config.data_dir))
        # The Odoo container runs as an unprivileged uid
        self.executor.chmod(PurePosixPath(self.config.data_dir), 0o777)

    def fetch_addons(self) -> bool | None:
        if not self.config.addons_repo_url:
            console.print("[dim]No addons repository configured.[/dim]")
            return None
        return host.clone_repository(self.executor, self.config.addons_repo_url, self.config.addons_dir)

    def write_artifacts(self) -> None:
        for artifact in render_stack_artifacts(self.config):
            self.executor.write_file(artifact.path, artifact.content, artifact.mode)

    def start_stack(self) -> None:
        host.compose_up(self.executor, self.config.compose_command, self.config.compose_file_path)

    def prepare_certificate(self) -> bool | None:
        config = self.config
        if config.tls_mode == TLSMode.CUSTOM:
            import_custom_certs(
                self.executor,
                Path(config.custom_cert_path or ""),
                Path(config.custom_key_path or ""),
                config.ssl_cert_path,
                config.ssl_key_path,
            )
            return None

        if not self.rotate_certificate and certificate_is_current(
            self.executor, config.ssl_cert_path, config.ssl_key_path, config.domain
        ):
            console.print(f"[dim]Keeping existing certificate {config.ssl_cert_path}[/dim]")
            return False

        generate_self_signed(
            self.executor,
            config.domain,
            config.ssl_cert_path,
            config.ssl_key_path,
            days=config.cert_days,
            bits=config.key_bits,
        )
        return None

    def configure_proxy(self) -> None:
        artifact = render_proxy_artifact(self.config)
        self.executor.write_file(artifact.path, artifact.content, artifact.mode)
        self.executor.symlink(self.config.nginx_site_path, self.config.nginx_enabled_path)
        self.executor.run(["nginx", "-t"])
        host.reload_service(self.executor, "nginx")


def teardown(config: DeploymentConfig, executor: Executor, remove_volumes: bool = False) -> None:
    """Stop the stack and deactivate the proxy site.

    Generated files, certificates and the data directory are left in place.
    """
    host.compose_down(executor, config.compose_command, config.compose_file_path, remove_volumes)
    if executor.remove(config.nginx_enabled_path):
        host.reload_service(executor, "nginx")


def print_report(config: DeploymentConfig, report: ProvisionReport) -> None:
    """Print a summary table of a provisioning run."""
    table = Table(title="Provisioning Summary")
    table.add_column("Step", style="cyan")
    table.add_column("Result", style="green")

    for name in STEP_NAMES:
        if name in report.skipped:
            result = "[dim]skipped[/dim]"
        elif name in report.warnings:
            result = "[yellow]done (warning)[/yellow]"
        elif name in report.completed:
            result = "done"
        else:
            result = "[red]not run[/red]"
        table.add_row(name, result)

    console.print(table)
    console.print(f"[green]Odoo is served at https://{config.domain}[/green]")
