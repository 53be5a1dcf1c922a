"""CLI entry point for odoo-deploy."""

from pathlib import Path
from typing import Annotated, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

from odoo_deploy.model.validation import ValidationError

app = typer.Typer(
    name="odoo-deploy",
    help="Provision a host with Odoo, PostgreSQL and an Nginx TLS proxy on Docker",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()


@app.callback()
def main_callback(
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Hide commands being executed"),
    ] = False,
) -> None:
    """odoo-deploy provisioning tool."""
    from odoo_deploy.utils.cmd import set_show_commands

    set_show_commands(not quiet)


def _handle_error(error: ValidationError, exit_code: int = 1) -> None:
    """Handle validation errors with rich formatting."""
    console.print(f"[red]Error ({error.code}):[/red] {escape(error.message)}")
    raise typer.Exit(exit_code)


def _get_available_profiles() -> list[str]:
    from odoo_deploy.model.validation import profiles_dir

    directory = profiles_dir()
    if not directory.exists():
        return []
    return [f.stem for f in directory.glob("*.json")]


def _complete_profile(incomplete: str) -> list[str]:
    """Shell completion for profile names."""
    return [p for p in _get_available_profiles() if p.startswith(incomplete)]


ProfileArg = Annotated[
    str,
    typer.Argument(
        help="Profile name",
        metavar="PROFILE_NAME",
        autocompletion=_complete_profile,
    ),
]


@app.command()
def init(
    name: Annotated[str, typer.Argument(help="Profile name", metavar="PROFILE_NAME")],
    domain: Annotated[
        str,
        typer.Option("--domain", "-d", envvar="ODOO_DEPLOY_DOMAIN", help="Public domain name"),
    ] = "localhost",
    db_password: Annotated[
        Optional[str],
        typer.Option(envvar="ODOO_DEPLOY_DB_PASSWORD", help="PostgreSQL password (generated if omitted)"),
    ] = None,
    admin_password: Annotated[
        Optional[str],
        typer.Option(envvar="ODOO_DEPLOY_ADMIN_PASSWORD", help="Odoo master password (generated if omitted)"),
    ] = None,
    addons_repo: Annotated[
        Optional[str],
        typer.Option(envvar="ODOO_DEPLOY_ADDONS_REPO", help="Git repository of custom addons"),
    ] = None,
    odoo_version: Annotated[str, typer.Option(help="Odoo image tag")] = "16.0",
    port: Annotated[int, typer.Option("--port", "-p", help="Host port for Odoo")] = 8069,
    stack_dir: Annotated[str, typer.Option(help="Directory for compose files and config")] = "/opt/odoo",
    data_dir: Annotated[str, typer.Option(help="Directory for Odoo filestore")] = "/opt/odoo_data",
    cert: Annotated[
        Optional[str],
        typer.Option(help="Existing certificate (PEM); switches TLS to custom mode"),
    ] = None,
    key: Annotated[Optional[str], typer.Option(help="Private key for --cert")] = None,
    force: Annotated[bool, typer.Option("--force", help="Overwrite an existing profile")] = False,
) -> None:
    """Create a deployment profile.

    [bold]Example:[/bold]
        odoo-deploy init prod --domain erp.example.com
        ODOO_DEPLOY_DB_PASSWORD=... odoo-deploy init prod -d erp.example.com
    """
    from pydantic import ValidationError as PydanticValidationError

    from odoo_deploy.model.config import DeploymentConfig, TLSMode
    from odoo_deploy.model.validation import profiles_dir, save_profile
    from odoo_deploy.utils.secrets import generate_secrets

    try:
        if (profiles_dir() / f"{name}.json").exists() and not force:
            raise ValidationError("PROFILE_EXISTS", f"Profile '{name}' already exists (use --force)")

        try:
            config = DeploymentConfig(
                name=name,
                domain=domain,
                postgres_password=db_password,
                admin_password=admin_password,
                addons_repo_url=addons_repo,
                odoo_version=odoo_version,
                odoo_port=port,
                stack_dir=stack_dir,
                data_dir=data_dir,
                tls_mode=TLSMode.CUSTOM if cert else TLSMode.SELFSIGNED,
                custom_cert_path=str(Path(cert).resolve()) if cert else None,
                custom_key_path=str(Path(key).resolve()) if key else None,
            )
        except PydanticValidationError as e:
            raise ValidationError("INVALID_CONFIG", str(e)) from e

        config = generate_secrets(config)
        path = save_profile(config)
        console.print(f"[green]Profile '{name}' saved to {path}[/green]")
    except ValidationError as e:
        _handle_error(e)


@app.command(name="list")
def list_profiles_cmd() -> None:
    """List all deployment profiles."""
    from odoo_deploy.profile_ops import get_profile_summary, list_profiles

    profiles = list_profiles()

    if not profiles:
        console.print("[yellow]No profiles found.[/yellow]")
        console.print("[dim]Use 'odoo-deploy init' to create one.[/dim]")
        raise typer.Exit(0)

    table = Table(title="Profiles")
    table.add_column("Name", style="cyan")
    table.add_column("Domain", style="white")
    table.add_column("Image", style="green")
    table.add_column("Port", style="dim")
    table.add_column("TLS", style="dim")

    for profile in profiles:
        summary = get_profile_summary(profile)
        table.add_row(summary["name"], summary["domain"], summary["image"], summary["port"], summary["tls"])

    console.print(table)


@app.command()
def show(
    profile: ProfileArg,
    reveal: Annotated[bool, typer.Option("--reveal", help="Show secrets in clear text")] = False,
) -> None:
    """Show details of a deployment profile.

    [bold]Example:[/bold]
        odoo-deploy show prod
    """
    from odoo_deploy.model.config import SECRET_FIELDS
    from odoo_deploy.model.validation import load_profile
    from odoo_deploy.utils.secrets import mask_secret

    try:
        config = load_profile(profile)
    except ValidationError as e:
        _handle_error(e)

    table = Table(title=f"Profile: {profile}")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for key, value in config.model_dump(mode="json").items():
        if key in SECRET_FIELDS and not reveal:
            value = mask_secret(value)
        elif isinstance(value, list):
            value = " ".join(value)
        table.add_row(key, "" if value is None else str(value))

    console.print(table)


@app.command()
def render(
    profile: ProfileArg,
    output: Annotated[
        Optional[str],
        typer.Option("--output", "-o", help="Output directory"),
    ] = None,
) -> None:
    """Write the generated files to a local directory without touching the host.

    [bold]Example:[/bold]
        odoo-deploy render prod
        odoo-deploy render prod -o ./output
    """
    from odoo_deploy.artifacts import render_proxy_artifact, render_stack_artifacts
    from odoo_deploy.model.validation import load_profile

    try:
        config = load_profile(profile)
        output_dir = Path(output) if output else Path.cwd() / ".odoo-deploy" / "render" / profile
        output_dir.mkdir(parents=True, exist_ok=True)

        artifacts = [*render_stack_artifacts(config), render_proxy_artifact(config)]
        for artifact in artifacts:
            if artifact.path.is_relative_to(config.stack_dir):
                target = output_dir / artifact.path.relative_to(config.stack_dir)
            else:
                target = output_dir / artifact.name / artifact.path.name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(artifact.content)
            if artifact.mode is not None:
                target.chmod(artifact.mode)
            console.print(f"[green]Wrote {target}[/green] [dim](installs to {artifact.path})[/dim]")
    except ValidationError as e:
        _handle_error(e)


@app.command()
def preflight(profile: ProfileArg) -> None:
    """Check the host is ready for provisioning.

    [bold]Example:[/bold]
        sudo odoo-deploy preflight prod
    """
    from odoo_deploy.model.validation import load_profile
    from odoo_deploy.preflight import failed_errors, print_preflight, run_preflight

    try:
        config = load_profile(profile)
    except ValidationError as e:
        _handle_error(e)

    results = run_preflight(config)
    print_preflight(results)
    if failed_errors(results):
        raise typer.Exit(1)


@app.command()
def provision(
    profile: ProfileArg,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Print what would be done without changing the host"),
    ] = False,
    skip: Annotated[
        Optional[List[str]],
        typer.Option("--skip", "-s", help="Step to skip (repeatable)"),
    ] = None,
    rotate_cert: Annotated[
        bool,
        typer.Option("--rotate-cert", help="Regenerate the certificate even if still valid"),
    ] = False,
    timeout: Annotated[
        Optional[int],
        typer.Option("--timeout", "-t", min=1, help="Seconds allowed per external command"),
    ] = None,
    skip_preflight: Annotated[
        bool,
        typer.Option("--skip-preflight", help="Do not run pre-flight checks"),
    ] = False,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")] = False,
) -> None:
    """Install packages, start the stack and configure the TLS proxy.

    [bold]Example:[/bold]
        sudo odoo-deploy provision prod
        odoo-deploy provision prod --dry-run
        sudo odoo-deploy provision prod --skip packages --rotate-cert
    """
    from odoo_deploy.executor import DryRunExecutor, HostExecutor
    from odoo_deploy.model.validation import load_profile
    from odoo_deploy.preflight import ensure_preflight, print_preflight, run_preflight
    from odoo_deploy.provisioner import Provisioner, StepFailed, print_report

    try:
        config = load_profile(profile)
        step_timeout = timeout if timeout is not None else config.step_timeout

        if not skip_preflight:
            results = run_preflight(config)
            print_preflight(results)
            if not dry_run:
                ensure_preflight(results)

        if not dry_run and not yes:
            console.print(f"[yellow]This will install packages and reconfigure Nginx for {config.domain}.[/yellow]")
            if not Confirm.ask("[cyan]Continue?[/cyan]", default=False):
                console.print("[yellow]Cancelled.[/yellow]")
                raise typer.Exit(0)

        executor = DryRunExecutor(timeout=step_timeout) if dry_run else HostExecutor(timeout=step_timeout)
        provisioner = Provisioner(
            config,
            executor,
            skip=skip or (),
            rotate_certificate=rotate_cert or None,
        )
        report = provisioner.run()
        print_report(config, report)
    except StepFailed as e:
        _handle_error(e, e.returncode or 1)
    except ValidationError as e:
        _handle_error(e)


@app.command()
def status(profile: ProfileArg) -> None:
    """Show container state and probe the HTTP endpoints.

    [bold]Example:[/bold]
        odoo-deploy status prod
    """
    from odoo_deploy.executor import HostExecutor
    from odoo_deploy.model.validation import load_profile
    from odoo_deploy.status import check_status, print_status

    try:
        config = load_profile(profile)
        result = check_status(config, HostExecutor(timeout=30))
    except ValidationError as e:
        _handle_error(e)

    print_status(result)
    if not (result.backend.ok and result.public.ok):
        raise typer.Exit(1)


@app.command()
def destroy(
    profile: ProfileArg,
    force: Annotated[bool, typer.Option("--force", help="Skip confirmation prompt")] = False,
    volumes: Annotated[
        bool,
        typer.Option("--volumes", "-v", help="Also remove the database volume"),
    ] = False,
) -> None:
    """Stop the containers and disable the Nginx site.

    [bold]Example:[/bold]
        sudo odoo-deploy destroy prod
        sudo odoo-deploy destroy prod --volumes  # also delete the database
    """
    from odoo_deploy.executor import HostExecutor
    from odoo_deploy.model.validation import load_profile
    from odoo_deploy.provisioner import teardown

    try:
        config = load_profile(profile)

        if not force:
            console.print(f"[yellow]Warning: This will stop Odoo and disable the site for {config.domain}.[/yellow]")
            if volumes:
                console.print("[red]The database volume will be deleted.[/red]")
            if not Confirm.ask("[cyan]Are you sure?[/cyan]", default=False):
                console.print("[yellow]Cancelled.[/yellow]")
                raise typer.Exit(0)

        teardown(config, HostExecutor(timeout=config.step_timeout), remove_volumes=volumes)
        console.print("[green]Deployment stopped.[/green]")
    except ValidationError as e:
        _handle_error(e)


@app.command()
def version() -> None:
    """Show version information."""
    from odoo_deploy import __version__

    console.print(f"odoo-deploy version {__version__}")


if __name__ == "__main__":
    app()
