"""Renderers for the files a deployment writes to the host.

Every renderer is a pure function of the configuration.
"""

from dataclasses import dataclass
from pathlib import PurePosixPath

from odoo_deploy.artifacts.appconfig import render_app_config
from odoo_deploy.artifacts.compose import render_compose, render_compose_text
from odoo_deploy.artifacts.envfile import render_env_file
from odoo_deploy.artifacts.nginx import render_nginx_config
from odoo_deploy.model.config import DeploymentConfig


@dataclass(frozen=True)
class Artifact:
    """A rendered file and where it belongs on the host."""

    name: str
    path: PurePosixPath
    content: str
    mode: int | None = None


def render_stack_artifacts(config: DeploymentConfig) -> list[Artifact]:
    """Render the env file, compose manifest and app config."""
    return [
        # Holds database credentials
        Artifact("env", config.env_file_path, render_env_file(config), 0o600),
        Artifact("compose", config.compose_file_path, render_compose_text(config)),
        Artifact("app-config", config.app_config_path, render_app_config(config)),
    ]


def render_proxy_artifact(config: DeploymentConfig) -> Artifact:
    return Artifact("nginx", config.nginx_site_path, render_nginx_config(config))


__all__ = [
    "Artifact",
    "render_app_config",
    "render_compose",
    "render_compose_text",
    "render_env_file",
    "render_nginx_config",
    "render_proxy_artifact",
    "render_stack_artifacts",
]
