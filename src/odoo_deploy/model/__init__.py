"""Data models for odoo-deploy."""

from odoo_deploy.model.config import DeploymentConfig, TLSMode
from odoo_deploy.model.validation import ValidationError

__all__ = [
    "DeploymentConfig",
    "TLSMode",
    "ValidationError",
]
