# StreamRouter
# Copyright (C) 2025 Amirreza "Farnam" Taheri
# This program comes with ABSOLUTELY NO WARRANTY; for details type `show w`.
# This is free software, and you are welcome to redistribute it
# under certain conditions; type `show c` for details.

"""Structured model of a stream routing configuration.

Every model is frozen: an edit never mutates a configuration in place, it
builds a new one with ``model_copy(update=...)``. Python attributes use
snake_case while documents exchanged with other tools use the camelCase
aliases (``listenPort``, ``ipMappings`` ...); both spellings are accepted on
input.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ConnectionType(str, Enum):
    """How a client device is attached to the network."""

    LAN = "LAN"
    WLAN = "WLAN"


class RouterModel(BaseModel):
    """Base class with the shared model configuration."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> Dict[str, Any]:
        """Return a JSON-compatible dict keyed by the camelCase aliases."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class UpstreamServer(RouterModel):
    """A single backend endpoint, kept as an opaque ``host:port`` string."""

    address: str


class Upstream(RouterModel):
    """A named group of backend servers."""

    name: str
    servers: Tuple[UpstreamServer, ...] = ()

    @property
    def addresses(self) -> Tuple[str, ...]:
        return tuple(server.address for server in self.servers)


class IpMapping(RouterModel):
    """Routes one client IP to one upstream.

    ``name`` and ``connection_type`` are display metadata only and never
    appear in the generated configuration text.
    """

    ip: str
    upstream: str
    name: Optional[str] = None
    connection_type: Optional[ConnectionType] = None


class NginxConfig(RouterModel):
    """Root aggregate describing one stream listener and its routing."""

    listen_port: int
    default_upstream: str
    upstreams: Tuple[Upstream, ...] = ()
    ip_mappings: Tuple[IpMapping, ...] = ()
    log_path: str
    log_format: str

    def get_upstream(self, name: str) -> Optional[Upstream]:
        """Return the first upstream called ``name``, if any."""
        for upstream in self.upstreams:
            if upstream.name == name:
                return upstream
        return None

    def get_mapping(self, ip: str) -> Optional[IpMapping]:
        for mapping in self.ip_mappings:
            if mapping.ip == ip:
                return mapping
        return None

    @property
    def upstream_names(self) -> Tuple[str, ...]:
        return tuple(upstream.name for upstream in self.upstreams)

    def usage(self, name: str) -> int:
        """Count the IP mappings routed to upstream ``name``."""
        return sum(1 for mapping in self.ip_mappings if mapping.upstream == name)

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "NginxConfig":
        """Build a configuration from a plain dict, e.g. loaded YAML or JSON."""
        return cls.model_validate(data)


__all__ = [
    "ConnectionType",
    "IpMapping",
    "NginxConfig",
    "RouterModel",
    "Upstream",
    "UpstreamServer",
]
