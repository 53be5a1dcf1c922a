"""Nginx reverse-proxy site configuration."""

from odoo_deploy.model.config import DeploymentConfig

NGINX_SITE_TEMPLATE = """\
server {{
    listen 80;
    server_name {domain};
    return 301 https://$host$request_uri;
}}

server {{
    listen 443 ssl;
    server_name {domain};

    ssl_certificate {cert_path};
    ssl_certificate_key {key_path};

    location / {{
        proxy_pass http://localhost:{port};
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
        proxy_set_header X-Forwarded-Proto $scheme;
    }}
}}
"""


def render_nginx_config(config: DeploymentConfig) -> str:
    """Render the HTTP-redirect and HTTPS-proxy server blocks."""
    return NGINX_SITE_TEMPLATE.format(
        domain=config.domain,
        cert_path=config.ssl_cert_path,
        key_path=config.ssl_key_path,
        port=config.odoo_port,
    )
