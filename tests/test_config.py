"""Tests for the deployment configuration model and profile persistence."""

import json
import stat

import pytest
from pydantic import ValidationError as PydanticValidationError

from odoo_deploy.model.config import DEFAULT_PACKAGES, DeploymentConfig, TLSMode
from odoo_deploy.model.validation import ValidationError, ensure_resolved, load_profile, save_profile
from odoo_deploy.utils.secrets import generate_password, generate_secrets, mask_secret


class TestDefaults:
    """Test default values match the stock single-host layout."""

    def test_defaults(self):
        """Defaults describe Odoo 16 on port 8069 backed by postgres:13."""
        config = DeploymentConfig()
        assert config.odoo_image == "odoo:16.0"
        assert config.odoo_port == 8069
        assert config.postgres_image == "postgres:13"
        assert config.db_host == "psql"
        assert config.db_port == 5432
        assert config.network_name == "odoo-net"
        assert config.packages == DEFAULT_PACKAGES
        assert config.tls_mode == TLSMode.SELFSIGNED
        assert config.cert_days == 365
        assert config.key_bits == 2048

    def test_derived_paths(self, config):
        """Derived paths hang off the configured directories."""
        assert str(config.config_dir) == "/srv/odoo/config"
        assert str(config.addons_dir) == "/srv/odoo/custom_addons"
        assert str(config.env_file_path) == "/srv/odoo/odoo.env"
        assert str(config.compose_file_path) == "/srv/odoo/docker-compose.yml"
        assert str(config.app_config_path) == "/srv/odoo/config/odoo.conf"
        assert str(config.ssl_cert_path) == "/etc/ssl/certs/example.com.crt"
        assert str(config.ssl_key_path) == "/etc/ssl/private/example.com.key"
        assert str(config.nginx_site_path) == "/etc/nginx/sites-available/odoo.conf"
        assert str(config.nginx_enabled_path) == "/etc/nginx/sites-enabled/odoo.conf"

    def test_packages_lists_are_independent(self):
        """Each config gets its own package list."""
        first = DeploymentConfig()
        first.packages.append("htop")
        assert "htop" not in DeploymentConfig().packages


class TestValidation:
    """Test field and model validators."""

    @pytest.mark.parametrize("domain", ["localhost", "example.com", "erp.my-company.example.org"])
    def test_valid_domains(self, domain):
        assert DeploymentConfig(domain=domain).domain == domain

    @pytest.mark.parametrize("domain", ["-bad.com", "under_score.com", "spaces here.com", ""])
    def test_invalid_domains(self, domain):
        with pytest.raises(PydanticValidationError):
            DeploymentConfig(domain=domain)

    def test_invalid_profile_name(self):
        with pytest.raises(PydanticValidationError, match="alphanumeric"):
            DeploymentConfig(name="bad name")

    def test_short_password_rejected(self):
        with pytest.raises(PydanticValidationError, match="at least 8"):
            DeploymentConfig(postgres_password="short")

    @pytest.mark.parametrize(
        "field,value",
        [
            ("postgres_password", "abcdefgh\nPGDATA=/tmp/evil"),
            ("admin_password", "abcdefgh\rdb_host = evil"),
            ("admin_password", "has a space"),
            ("postgres_user", "odoo\nUSER=root"),
            ("pgdata", "/var/lib/pg\tdata"),
        ],
    )
    def test_line_breaking_values_rejected(self, field, value):
        """Values rendered into env and conf lines cannot carry extra entries."""
        with pytest.raises(PydanticValidationError, match="whitespace or control"):
            DeploymentConfig(**{field: value})

    def test_relative_paths_rejected(self):
        """Paths relative to the caller's home or cwd are refused."""
        with pytest.raises(PydanticValidationError, match="absolute"):
            DeploymentConfig(stack_dir="~/docker/odoo")
        with pytest.raises(PydanticValidationError, match="absolute"):
            DeploymentConfig(data_dir="odoo_data")

    def test_port_range(self):
        with pytest.raises(PydanticValidationError):
            DeploymentConfig(odoo_port=70000)

    def test_custom_tls_requires_paths(self):
        with pytest.raises(PydanticValidationError, match="custom_cert_path"):
            DeploymentConfig(tls_mode="custom", custom_cert_path="/tmp/cert.pem")

    def test_empty_package_list_rejected(self):
        with pytest.raises(PydanticValidationError, match="must not be empty"):
            DeploymentConfig(packages=[])


class TestSecrets:
    """Test secret generation and the resolution invariant."""

    def test_generate_password_length_and_alphabet(self):
        password = generate_password(40)
        assert len(password) == 40
        assert password.isalnum()

    def test_generate_secrets_fills_missing(self):
        config = generate_secrets(DeploymentConfig())
        assert config.postgres_password and len(config.postgres_password) == 32
        assert config.admin_password and len(config.admin_password) == 24
        assert config.is_resolved()

    def test_generate_secrets_keeps_existing(self, config):
        resolved = generate_secrets(config)
        assert resolved.postgres_password == "openpgpwd"
        assert resolved.admin_password == "strong_admin_password"

    def test_unresolved_config_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            ensure_resolved(DeploymentConfig())
        assert exc_info.value.code == "CONFIG_UNRESOLVED"

    def test_mask_secret(self):
        assert mask_secret(None) == "(unset)"
        masked = mask_secret("openpgpwd")
        assert masked.endswith("wd")
        assert "openpg" not in masked


class TestProfilePersistence:
    """Test saving and loading profiles."""

    def test_save_and_load(self, tmp_path, config):
        path = save_profile(config, tmp_path)
        assert path == tmp_path / ".odoo-deploy" / "profiles" / "test-site.json"
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert load_profile("test-site", tmp_path) == config

    def test_saved_profile_is_plain_json(self, tmp_path, config):
        path = save_profile(config, tmp_path)
        data = json.loads(path.read_text())
        assert data["tls_mode"] == "selfsigned"
        assert data["domain"] == "example.com"

    def test_missing_profile(self, tmp_path):
        with pytest.raises(ValidationError) as exc_info:
            load_profile("nope", tmp_path)
        assert exc_info.value.code == "PROFILE_NOT_FOUND"

    def test_invalid_profile_content(self, tmp_path, create_profile):
        create_profile({"name": "broken", "domain": "not a domain"})
        with pytest.raises(ValidationError) as exc_info:
            load_profile("broken", tmp_path)
        assert exc_info.value.code == "PROFILE_INVALID"

    def test_invalid_profile_json(self, tmp_path):
        profiles_dir = tmp_path / ".odoo-deploy" / "profiles"
        profiles_dir.mkdir(parents=True)
        (profiles_dir / "garbled.json").write_text("{not json")
        with pytest.raises(ValidationError) as exc_info:
            load_profile("garbled", tmp_path)
        assert exc_info.value.code == "PROFILE_INVALID"
