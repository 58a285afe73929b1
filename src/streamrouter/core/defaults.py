"""The baseline configuration used when there is no text to parse."""
from __future__ import annotations

from ..constants import DEFAULT_LISTEN_PORT, DEFAULT_LOG_FORMAT
from ..models import IpMapping, NginxConfig, Upstream, UpstreamServer

DEFAULT_CONFIG = NginxConfig(
    listen_port=DEFAULT_LISTEN_PORT,
    default_upstream="printer_down",
    log_path="/var/log/nginx/tcp_router_9100.log",
    log_format=DEFAULT_LOG_FORMAT,
    upstreams=(
        Upstream(name="printer_down", servers=(UpstreamServer(address="10.1.0.11:9100"),)),
        Upstream(name="printer_up", servers=(UpstreamServer(address="10.1.0.12:9100"),)),
    ),
    ip_mappings=(
        IpMapping(ip="10.1.0.30", upstream="printer_down"),
        IpMapping(ip="10.1.0.31", upstream="printer_down"),
        IpMapping(ip="10.1.0.32", upstream="printer_up"),
        IpMapping(ip="10.1.0.33", upstream="printer_up"),
        IpMapping(ip="10.1.0.34", upstream="printer_up"),
    ),
)


def default_config() -> NginxConfig:
    """Return the baseline configuration.

    The model is frozen, so handing out the shared instance is safe.
    """
    return DEFAULT_CONFIG
