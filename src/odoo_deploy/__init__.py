"""Single-host Odoo provisioning tool."""

__version__ = "0.1.0"
