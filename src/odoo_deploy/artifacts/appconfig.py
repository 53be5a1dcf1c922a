"""Odoo server configuration file."""

from odoo_deploy.model.config import DeploymentConfig
from odoo_deploy.model.validation import ensure_resolved

ADDONS_MOUNT = "/custom_addons"


def render_app_config(config: DeploymentConfig) -> str:
    """Render odoo.conf with database connection and addons path."""
    ensure_resolved(config)
    options = [
        ("admin_passwd", config.admin_password),
        ("db_host", config.db_host),
        ("db_user", config.postgres_user),
        ("db_password", config.postgres_password),
        ("db_port", config.db_port),
        ("addons_path", ADDONS_MOUNT),
    ]
    lines = ["[options]"] + [f"{key} = {value}" for key, value in options]
    return "\n".join(lines) + "\n"
