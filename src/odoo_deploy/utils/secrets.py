"""Secret generation utilities."""

import secrets
import string

from odoo_deploy.model.config import DeploymentConfig


def generate_password(length: int = 32) -> str:
    """Generate a secure random password."""
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_secrets(config: DeploymentConfig) -> DeploymentConfig:
    """Fill in any missing secrets with generated values.

    Returns a new DeploymentConfig with all secrets populated.
    """
    data = config.model_dump()

    if not data.get("postgres_password"):
        data["postgres_password"] = generate_password()
    if not data.get("admin_password"):
        data["admin_password"] = generate_password(24)

    return DeploymentConfig(**data)


def mask_secret(value: str | None) -> str:
    """Hide all but the last two characters of a secret."""
    if not value:
        return "(unset)"
    return "*" * max(len(value) - 2, 6) + value[-2:]
