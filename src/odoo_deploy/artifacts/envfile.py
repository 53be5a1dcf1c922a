"""Environment file shared by both containers."""

from odoo_deploy.model.config import DeploymentConfig
from odoo_deploy.model.validation import ensure_resolved


def render_env_file(config: DeploymentConfig) -> str:
    """Render the KEY=VALUE file consumed by compose's env_file."""
    ensure_resolved(config)
    lines = [
        "# PostgreSQL environment variables",
        f"POSTGRES_DB={config.postgres_db}",
        f"POSTGRES_USER={config.postgres_user}",
        f"POSTGRES_PASSWORD={config.postgres_password}",
        f"PGDATA={config.pgdata}",
        "",
        "# Odoo environment variables",
        f"HOST={config.db_host}",
        f"USER={config.postgres_user}",
        f"PASSWORD={config.postgres_password}",
    ]
    return "\n".join(lines) + "\n"
