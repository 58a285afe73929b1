"""
StreamRouter - nginx stream routing configuration toolkit

This package turns a structured description of a TCP routing topology (a
listen port, named upstream groups and a client IP to upstream map) into
nginx ``stream`` configuration text, and parses such text back into the
structured form for editing.
"""

__version__ = "1.0.0"
__author__ = "Amirreza 'Farnam' Taheri"

# Import key components to be available at the package level
from .core import DEFAULT_CONFIG, default_config, parse_config, serialize_config
from .editing import ReferencePolicy
from .models import ConnectionType, IpMapping, NginxConfig, Upstream, UpstreamServer
from .session import ConfigSession

# Define the public API of the package
__all__ = [
    "ConfigSession",
    "ConnectionType",
    "DEFAULT_CONFIG",
    "IpMapping",
    "NginxConfig",
    "ReferencePolicy",
    "Upstream",
    "UpstreamServer",
    "default_config",
    "parse_config",
    "serialize_config",
    "__version__",
    "__author__",
]
