"""Utility functions for odoo-deploy."""

from odoo_deploy.utils.cmd import CommandError, run_cmd
from odoo_deploy.utils.secrets import generate_password, generate_secrets

__all__ = [
    "CommandError",
    "generate_password",
    "generate_secrets",
    "run_cmd",
]
