"""TLS certificate management."""

from odoo_deploy.tls.custom import import_custom_certs
from odoo_deploy.tls.selfsigned import certificate_is_current, generate_self_signed

__all__ = [
    "certificate_is_current",
    "generate_self_signed",
    "import_custom_certs",
]
