"""Docker Compose manifest renderer."""

from typing import Any

import yaml

from odoo_deploy.model.config import ODOO_CONTAINER_PORT, DeploymentConfig
from odoo_deploy.model.validation import ensure_resolved

APP_SERVICE = "odoo"
DB_VOLUME = "db"


def render_compose(config: DeploymentConfig) -> dict[str, Any]:
    """Render docker-compose.yml as a dictionary."""
    ensure_resolved(config)

    env_file = config.env_file_path.name
    networks = [config.network_name]

    odoo: dict[str, Any] = {
        "image": config.odoo_image,
        "container_name": config.odoo_container_name,
        "env_file": env_file,
        "depends_on": [config.db_host],
        "ports": [f"{config.odoo_port}:{ODOO_CONTAINER_PORT}"],
        "volumes": [
            f"{config.data_dir}:/var/lib/odoo",
            f"{config.config_dir}:/etc/odoo",
            f"{config.addons_dir}:/custom_addons",
        ],
        "networks": networks,
        "restart": "unless-stopped",
    }

    psql: dict[str, Any] = {
        "image": config.postgres_image,
        "container_name": config.postgres_container_name,
        "env_file": env_file,
        "volumes": [f"{DB_VOLUME}:{config.pgdata}"],
        "networks": networks,
        "restart": "unless-stopped",
    }

    return {
        "version": "3.8",
        "services": {
            APP_SERVICE: odoo,
            config.db_host: psql,
        },
        # Created up front by the network step, so compose must not own it
        "networks": {config.network_name: {"external": True}},
        "volumes": {DB_VOLUME: {}},
    }


def render_compose_text(config: DeploymentConfig) -> str:
    """Render docker-compose.yml as YAML text."""
    return yaml.dump(render_compose(config), default_flow_style=False, sort_keys=False)
