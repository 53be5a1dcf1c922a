"""Profile management operations."""

from pathlib import Path

from odoo_deploy.model.config import DeploymentConfig
from odoo_deploy.model.validation import ValidationError, load_profile, profiles_dir


def list_profiles(base_dir: Path | None = None) -> list[DeploymentConfig]:
    """
    List all profiles in the profiles directory.

    Args:
        base_dir: Base directory for .odoo-deploy folder. Defaults to cwd.

    Returns:
        List of DeploymentConfig objects, sorted by name.
    """
    directory = profiles_dir(base_dir)
    if not directory.exists():
        return []

    profiles = []
    for profile_file in directory.glob("*.json"):
        try:
            profiles.append(load_profile(profile_file.stem, base_dir))
        except ValidationError:
            # Skip invalid profiles
            continue

    return sorted(profiles, key=lambda p: p.name)


def get_profile_summary(config: DeploymentConfig) -> dict[str, str]:
    """
    Get summary information for display in list view.

    Returns:
        Dict with keys: name, domain, image, port, tls.
    """
    return {
        "name": config.name,
        "domain": config.domain,
        "image": config.odoo_image,
        "port": str(config.odoo_port),
        "tls": config.tls_mode.value,
    }
