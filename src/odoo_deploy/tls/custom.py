"""Custom TLS certificate handling."""

from pathlib import Path, PurePath

from odoo_deploy.executor import Executor
from odoo_deploy.model.validation import ValidationError


def validate_certificate(cert_path: Path) -> bool:
    """Validate a certificate file is readable PEM (best effort).

    Raises:
        ValidationError: If certificate validation fails
    """
    if not cert_path.exists():
        raise ValidationError(
            "CERT_NOT_FOUND",
            f"Certificate file not found: {cert_path}",
        )

    try:
        content = cert_path.read_text()
    except OSError as e:
        raise ValidationError(
            "CERT_READ_FAILED",
            f"Failed to read certificate file: {e}",
        ) from e

    if "-----BEGIN CERTIFICATE-----" not in content:
        raise ValidationError(
            "INVALID_CERT_FORMAT",
            "Certificate file does not appear to be in PEM format",
        )
    return True


def validate_private_key(key_path: Path) -> bool:
    """Validate a private key file is readable PEM (best effort).

    Raises:
        ValidationError: If key validation fails
    """
    if not key_path.exists():
        raise ValidationError(
            "KEY_NOT_FOUND",
            f"Private key file not found: {key_path}",
        )

    try:
        content = key_path.read_text()
    except OSError as e:
        raise ValidationError(
            "KEY_READ_FAILED",
            f"Failed to read private key file: {e}",
        ) from e

    if "-----BEGIN" not in content or "PRIVATE KEY-----" not in content:
        raise ValidationError(
            "INVALID_KEY_FORMAT",
            "Key file does not appear to be in PEM format",
        )
    return True


def import_custom_certs(
    executor: Executor,
    cert_path: Path,
    key_path: Path,
    dest_cert: PurePath,
    dest_key: PurePath,
) -> tuple[PurePath, PurePath]:
    """Validate and install a user-supplied certificate and key.

    Returns:
        Tuple of (dest_cert, dest_key)

    Raises:
        ValidationError: If the files are missing or not PEM
    """
    validate_certificate(cert_path)
    validate_private_key(key_path)

    executor.copy_file(cert_path, dest_cert)
    executor.copy_file(key_path, dest_key)
    executor.chmod(dest_key, 0o600)
    return dest_cert, dest_key
