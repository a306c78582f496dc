"""
nginx configuration renderer for Emby Proxy CLI

Builds the site file from named blocks: the upgrade map, the HTTP redirect,
the primary HTTPS server, and either a wildcard server (unified subdomains)
or one location per stream path.
"""
import logging
import re
from string import Template
from typing import List

from ...request import ProxyConfigRequest
from ..base import RenderError

logger = logging.getLogger(__name__)

INDENT = "    "

UPGRADE_MAP = Template("""\
map $$http_upgrade $$connection_upgrade {
    default upgrade;
    ''      close;
}""")

REDIRECT_SERVER = Template("""\
server {
    listen 80;
    listen [::]:80;
    server_name $domain;
    return 301 https://$$host$$request_uri;
}""")

TLS_SETTINGS = Template("""\
    ssl_certificate $cert_path;
    ssl_certificate_key $key_path;
    ssl_session_timeout 1d;
    ssl_session_cache shared:MozSSL:10m;
    ssl_protocols TLSv1.2 TLSv1.3;
    ssl_ciphers ECDHE-ECDSA-AES128-GCM-SHA256:ECDHE-RSA-AES128-GCM-SHA256:ECDHE-ECDSA-AES256-GCM-SHA384:ECDHE-RSA-AES256-GCM-SHA384;
    ssl_prefer_server_ciphers off;

    client_max_body_size $body_size;
    add_header Strict-Transport-Security "max-age=63072000" always;
    add_header X-Frame-Options "SAMEORIGIN";
    add_header X-Content-Type-Options "nosniff";""")

BACKEND_LOCATION = Template("""\
    location / {
        proxy_pass $backend_url;
        proxy_http_version 1.1;
        proxy_set_header Upgrade $$http_upgrade;
        proxy_set_header Connection $$connection_upgrade;
        proxy_set_header Host $$proxy_host;
        proxy_set_header X-Real-IP $$remote_addr;
        proxy_set_header X-Forwarded-For $$proxy_add_x_forwarded_for;
        proxy_set_header Referer "$referer";
        proxy_ssl_server_name on;$redirects
    }""")

STREAM_REDIRECT = Template("""
        proxy_redirect $stream_url/ https://$domain/s$index/;""")

STREAM_LOCATION = Template("""\
    location /s$index {
        rewrite ^/s$index(/.*)$$ $$1 break;
        proxy_pass $stream_url;
        proxy_http_version 1.1;
        proxy_set_header Upgrade $$http_upgrade;
        proxy_set_header Connection $$connection_upgrade;
        proxy_set_header Host $$proxy_host;
        proxy_set_header Referer "$referer";
        proxy_ssl_server_name on;
        proxy_buffering off;
    }""")

HTTPS_SERVER = Template("""\
server {
    listen 443 ssl http2;
    listen [::]:443 ssl http2;
    server_name $server_name;

$tls

$locations
}""")


class NginxRenderer:
    """Turn a ProxyConfigRequest into an nginx site file"""

    def __init__(self, client_max_body_size: str = "20M"):
        self.client_max_body_size = client_max_body_size

    def _referer(self, request: ProxyConfigRequest) -> str:
        # Emby rejects some stream requests without a referer from its web UI
        return f"{request.backend_url}/web/index.html"

    def _check(self, request: ProxyConfigRequest) -> None:
        if not request.has_tls_paths:
            raise RenderError(f"No certificate resolved for {request.domain}")
        if request.unify_subdomains and request.streams:
            raise RenderError("Subdomain unification and stream paths cannot be combined")
        indices = list(request.streams)
        if indices != list(range(1, len(indices) + 1)):
            raise RenderError(f"Stream indices are not contiguous: {indices}")

    def tls_block(self, request: ProxyConfigRequest) -> str:
        return TLS_SETTINGS.substitute(
            cert_path=request.tls_cert_path,
            key_path=request.tls_key_path,
            body_size=self.client_max_body_size,
        )

    def backend_location(self, request: ProxyConfigRequest, with_redirects: bool = True) -> str:
        redirects = ""
        if with_redirects and request.streams:
            # Rewrite stream-origin redirects back onto our stream paths
            redirects = "\n        proxy_redirect default;" + "".join(
                STREAM_REDIRECT.substitute(stream_url=url.rstrip('/'), domain=request.domain, index=index)
                for index, url in request.streams.items()
            )
        return BACKEND_LOCATION.substitute(
            backend_url=request.backend_url,
            referer=self._referer(request),
            redirects=redirects,
        )

    def stream_locations(self, request: ProxyConfigRequest) -> List[str]:
        return [
            STREAM_LOCATION.substitute(index=index, stream_url=url, referer=self._referer(request))
            for index, url in request.streams.items()
        ]

    def redirect_server(self, request: ProxyConfigRequest) -> str:
        return REDIRECT_SERVER.substitute(domain=request.domain)

    def primary_server(self, request: ProxyConfigRequest) -> str:
        locations = [self.backend_location(request)] + self.stream_locations(request)
        return HTTPS_SERVER.substitute(
            server_name=request.domain,
            tls=self.tls_block(request),
            locations="\n\n".join(locations),
        )

    def wildcard_server(self, request: ProxyConfigRequest) -> str:
        # Matches any *.domain host
        server_name = f"~^(.+)\\.{re.escape(request.domain)}$"
        return HTTPS_SERVER.substitute(
            server_name=server_name,
            tls=self.tls_block(request),
            locations=self.backend_location(request, with_redirects=False),
        )

    def render(self, request: ProxyConfigRequest) -> str:
        """
        Render the complete site configuration

        Args:
            request: Request with resolved certificate paths

        Returns:
            nginx configuration text ending in a newline

        Raises:
            RenderError: If the request is incomplete or inconsistent
        """
        self._check(request)

        blocks = [
            UPGRADE_MAP.substitute(),
            self.redirect_server(request),
            self.primary_server(request),
        ]
        if request.unify_subdomains:
            blocks.append(self.wildcard_server(request))

        logger.debug(f"Rendered {len(blocks)} blocks for {request.domain} with {request.stream_count} stream paths")
        return "\n\n".join(blocks) + "\n"
