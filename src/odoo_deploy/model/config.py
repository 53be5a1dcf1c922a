"""Deployment configuration model."""

from enum import Enum
from pathlib import PurePosixPath

from pydantic import BaseModel, Field, field_validator, model_validator

# Port Odoo listens on inside its container
ODOO_CONTAINER_PORT = 8069

DEFAULT_PACKAGES = [
    "docker.io",
    "docker-compose",
    "nginx",
    "openssl",
    "curl",
    "git",
]

SECRET_FIELDS = ("postgres_password", "admin_password")


class TLSMode(str, Enum):
    """Where the proxy certificate comes from."""

    SELFSIGNED = "selfsigned"
    CUSTOM = "custom"


class DeploymentConfig(BaseModel):
    """Configuration for a single-host deployment profile."""

    name: str = Field(default="default", min_length=1, max_length=32)
    domain: str = Field(default="localhost")

    # Application server
    odoo_version: str = Field(default="16.0")
    odoo_container_name: str = Field(default="odoo_instance")
    odoo_port: int = Field(default=8069, ge=1, le=65535)
    admin_password: str | None = Field(default=None)

    # Database
    postgres_image: str = Field(default="postgres:13")
    postgres_container_name: str = Field(default="psql_instance")
    db_host: str = Field(default="psql")
    db_port: int = Field(default=5432, ge=1, le=65535)
    postgres_db: str = Field(default="postgres")
    postgres_user: str = Field(default="odoo")
    postgres_password: str | None = Field(default=None)
    pgdata: str = Field(default="/var/lib/pgsql/data/pgdata")

    # Host layout
    network_name: str = Field(default="odoo-net")
    stack_dir: str = Field(default="/opt/odoo")
    data_dir: str = Field(default="/opt/odoo_data")
    addons_repo_url: str | None = Field(default=None)
    packages: list[str] = Field(default_factory=lambda: list(DEFAULT_PACKAGES))
    compose_command: list[str] = Field(default_factory=lambda: ["docker-compose"])

    # Reverse proxy
    nginx_sites_available: str = Field(default="/etc/nginx/sites-available")
    nginx_sites_enabled: str = Field(default="/etc/nginx/sites-enabled")
    nginx_site_name: str = Field(default="odoo.conf")

    # TLS
    tls_mode: TLSMode = Field(default=TLSMode.SELFSIGNED)
    ssl_cert_dir: str = Field(default="/etc/ssl/certs")
    ssl_key_dir: str = Field(default="/etc/ssl/private")
    custom_cert_path: str | None = Field(default=None)
    custom_key_path: str | None = Field(default=None)
    cert_days: int = Field(default=365, ge=1)
    key_bits: int = Field(default=2048, ge=1024)
    rotate_certificate: bool = Field(default=False)

    # Seconds allowed per external command, None waits forever
    step_timeout: int | None = Field(default=None, ge=1)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate profile name: alphanumeric and hyphens only."""
        import re

        if not re.match(r"^[a-zA-Z0-9][a-zA-Z0-9-]*$", v):
            msg = "Profile name must be alphanumeric with optional hyphens"
            raise ValueError(msg)
        return v

    @field_validator("domain")
    @classmethod
    def validate_domain(cls, v: str) -> str:
        """Validate domain is a valid hostname or localhost."""
        import re

        if v == "localhost":
            return v
        hostname_pattern = (
            r"^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
            r"(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
        )
        if not re.match(hostname_pattern, v):
            msg = "Invalid hostname format"
            raise ValueError(msg)
        return v

    @field_validator("postgres_password", "admin_password")
    @classmethod
    def validate_password(cls, v: str | None) -> str | None:
        """Validate password minimum length when provided."""
        if v is not None and len(v) < 8:
            msg = "Password must be at least 8 characters"
            raise ValueError(msg)
        return v

    @field_validator("postgres_password", "admin_password", "postgres_db", "postgres_user", "db_host", "pgdata")
    @classmethod
    def validate_single_token(cls, v: str | None) -> str | None:
        """Values written into KEY=VALUE lines must not contain whitespace or control characters."""
        if v is not None and any(c.isspace() or not c.isprintable() for c in v):
            msg = "Value must not contain whitespace or control characters"
            raise ValueError(msg)
        return v

    @field_validator(
        "stack_dir",
        "data_dir",
        "pgdata",
        "nginx_sites_available",
        "nginx_sites_enabled",
        "ssl_cert_dir",
        "ssl_key_dir",
    )
    @classmethod
    def validate_absolute(cls, v: str) -> str:
        """Host paths must be absolute so nothing depends on the caller's cwd or home."""
        if not PurePosixPath(v).is_absolute():
            msg = f"Path must be absolute: {v}"
            raise ValueError(msg)
        return v

    @field_validator("packages", "compose_command")
    @classmethod
    def validate_not_empty(cls, v: list[str]) -> list[str]:
        if not v:
            msg = "List must not be empty"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_config(self) -> "DeploymentConfig":
        """Validate cross-field constraints."""
        if self.tls_mode == TLSMode.CUSTOM:
            if not self.custom_cert_path or not self.custom_key_path:
                msg = "Custom TLS mode requires custom_cert_path and custom_key_path"
                raise ValueError(msg)
        return self

    # Derived values

    @property
    def odoo_image(self) -> str:
        return f"odoo:{self.odoo_version}"

    @property
    def config_dir(self) -> PurePosixPath:
        return PurePosixPath(self.stack_dir) / "config"

    @property
    def addons_dir(self) -> PurePosixPath:
        return PurePosixPath(self.stack_dir) / "custom_addons"

    @property
    def env_file_path(self) -> PurePosixPath:
        return PurePosixPath(self.stack_dir) / "odoo.env"

    @property
    def compose_file_path(self) -> PurePosixPath:
        return PurePosixPath(self.stack_dir) / "docker-compose.yml"

    @property
    def app_config_path(self) -> PurePosixPath:
        return self.config_dir / "odoo.conf"

    @property
    def ssl_cert_path(self) -> PurePosixPath:
        return PurePosixPath(self.ssl_cert_dir) / f"{self.domain}.crt"

    @property
    def ssl_key_path(self) -> PurePosixPath:
        return PurePosixPath(self.ssl_key_dir) / f"{self.domain}.key"

    @property
    def nginx_site_path(self) -> PurePosixPath:
        return PurePosixPath(self.nginx_sites_available) / self.nginx_site_name

    @property
    def nginx_enabled_path(self) -> PurePosixPath:
        return PurePosixPath(self.nginx_sites_enabled) / self.nginx_site_name

    def is_resolved(self) -> bool:
        """True when every secret has a value."""
        return all(getattr(self, field) for field in SECRET_FIELDS)
