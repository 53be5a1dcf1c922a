"""Self-signed certificates via the openssl CLI."""

from pathlib import PurePath

from odoo_deploy.executor import Executor
from odoo_deploy.utils.cmd import CommandError

# Regenerate when the current certificate expires within this many days
RENEW_BEFORE_DAYS = 30


def openssl_req_command(
    domain: str,
    cert_path: PurePath,
    key_path: PurePath,
    days: int = 365,
    bits: int = 2048,
) -> list[str]:
    """Build the openssl command for a self-signed key and certificate."""
    return [
        "openssl",
        "req",
        "-x509",
        "-nodes",
        "-days",
        str(days),
        "-newkey",
        f"rsa:{bits}",
        "-keyout",
        str(key_path),
        "-out",
        str(cert_path),
        "-subj",
        f"/CN={domain}",
    ]


def generate_self_signed(
    executor: Executor,
    domain: str,
    cert_path: PurePath,
    key_path: PurePath,
    days: int = 365,
    bits: int = 2048,
) -> tuple[PurePath, PurePath]:
    """Generate a self-signed certificate for a domain.

    Args:
        executor: Executor performing the writes
        domain: Common name of the certificate
        cert_path: Destination of the PEM certificate
        key_path: Destination of the unencrypted private key
        days: Validity period
        bits: RSA key size

    Returns:
        Tuple of (cert_path, key_path)

    Raises:
        CommandError: If openssl fails
    """
    executor.make_dirs(cert_path.parent)
    executor.make_dirs(key_path.parent)
    executor.run(openssl_req_command(domain, cert_path, key_path, days, bits))
    executor.chmod(key_path, 0o600)
    return cert_path, key_path


def parse_subject_cn(subject_line: str) -> str | None:
    """Extract the CN from ``openssl x509 -subject`` output.

    Handles both ``subject=CN = example.com`` (OpenSSL 1.1+) and
    ``subject= /CN=example.com`` (older releases).
    """
    _, _, subject = subject_line.strip().partition("=")
    for part in subject.replace("/", ",").split(","):
        key, sep, value = part.partition("=")
        if sep and key.strip() == "CN":
            return value.strip()
    return None


def key_matches_certificate(executor: Executor, cert_path: PurePath, key_path: PurePath) -> bool:
    """Compare the public key of the certificate with the one derived from the private key."""
    cert_pub = executor.run(["openssl", "x509", "-in", str(cert_path), "-noout", "-pubkey"], check=False)
    key_pub = executor.run(["openssl", "pkey", "-in", str(key_path), "-pubout"], check=False)
    if cert_pub.returncode != 0 or key_pub.returncode != 0:
        return False
    return bool(cert_pub.stdout.strip()) and cert_pub.stdout.strip() == key_pub.stdout.strip()


def certificate_is_current(
    executor: Executor,
    cert_path: PurePath,
    key_path: PurePath,
    domain: str,
    min_days: int = RENEW_BEFORE_DAYS,
) -> bool:
    """Check whether an existing certificate and key can be kept.

    True when both files exist, the key belongs to the certificate, the
    certificate names ``domain`` as its CN and stays valid for at least
    ``min_days`` more days.
    """
    if not executor.exists(cert_path) or not executor.exists(key_path):
        return False

    try:
        subject = executor.run(["openssl", "x509", "-in", str(cert_path), "-noout", "-subject"])
    except CommandError:
        return False
    if parse_subject_cn(subject.stdout) != domain:
        return False

    if not key_matches_certificate(executor, cert_path, key_path):
        return False

    checkend = executor.run(
        ["openssl", "x509", "-in", str(cert_path), "-noout", "-checkend", str(min_days * 86400)],
        check=False,
    )
    return checkend.returncode == 0
