"""Validation errors and profile persistence."""

import json
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from odoo_deploy.model.config import DeploymentConfig

PROFILES_SUBDIR = Path(".odoo-deploy") / "profiles"


class ValidationError(Exception):
    """Validation error with error code."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")


def ensure_resolved(config: DeploymentConfig) -> DeploymentConfig:
    """Raise unless every value an artifact may reference is set."""
    if not config.is_resolved():
        raise ValidationError(
            "CONFIG_UNRESOLVED",
            f"Profile '{config.name}' has unset secrets; run generate_secrets first",
        )
    return config


def profiles_dir(base_dir: Path | None = None) -> Path:
    if base_dir is None:
        base_dir = Path.cwd()
    return base_dir / PROFILES_SUBDIR


def validate_profile_exists(profile_name: str, base_dir: Path | None = None) -> Path:
    """Validate that a profile exists and return its path."""
    profile_path = profiles_dir(base_dir) / f"{profile_name}.json"
    if not profile_path.exists():
        raise ValidationError(
            "PROFILE_NOT_FOUND",
            f"Profile '{profile_name}' not found at {profile_path}",
        )
    return profile_path


def load_profile(profile_name: str, base_dir: Path | None = None) -> DeploymentConfig:
    """Load a profile from disk."""
    profile_path = validate_profile_exists(profile_name, base_dir)
    try:
        with profile_path.open() as f:
            data = json.load(f)
        return DeploymentConfig(**data)
    except json.JSONDecodeError as e:
        raise ValidationError(
            "PROFILE_INVALID",
            f"Profile '{profile_name}' is not valid JSON: {e}",
        ) from e
    except PydanticValidationError as e:
        raise ValidationError(
            "PROFILE_INVALID",
            f"Profile '{profile_name}' is invalid: {e}",
        ) from e


def save_profile(config: DeploymentConfig, base_dir: Path | None = None) -> Path:
    """Save a profile to disk with owner-only permissions."""
    directory = profiles_dir(base_dir)
    directory.mkdir(parents=True, exist_ok=True)
    profile_path = directory / f"{config.name}.json"
    with profile_path.open("w") as f:
        json.dump(config.model_dump(mode="json"), f, indent=2)
    profile_path.chmod(0o600)
    return profile_path
