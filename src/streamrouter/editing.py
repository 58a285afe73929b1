# StreamRouter
# Copyright (C) 2025 Amirreza "Farnam" Taheri
# This program comes with ABSOLUTELY NO WARRANTY; for details type `show w`.
# This is free software, and you are welcome to redistribute it
# under certain conditions; type `show c` for details.

"""Pure edit operations on an ``NginxConfig``.

Each function takes the current configuration and returns a new one; the
input is never modified. Rejected edits raise ``ModelEditError``. Names,
addresses and log settings end up unquoted in the rendered text, so they
must be single tokens.

The parser and serializer tolerate mappings that point at undeclared
upstreams. Whether an edit may leave such dangling references behind is
controlled by ``ReferencePolicy``: ``LENIENT`` (the default) accepts them,
``STRICT`` raises ``ReferenceIntegrityError`` instead.
"""
from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import ValidationError

from .constants import BARE_TOKEN_RE, DEFAULT_LISTEN_PORT, IPV4_RE, MAX_PORT, MIN_PORT
from .exceptions import ModelEditError, ReferenceIntegrityError
from .models import ConnectionType, IpMapping, NginxConfig, Upstream, UpstreamServer

logger = logging.getLogger(__name__)

_LEADING_DIGITS_RE = re.compile(r"^\s*([0-9]+)")
_MAPPING_FIELDS = {"ip", "upstream", "name", "connection_type"}


class ReferencePolicy(str, Enum):
    """How edits treat references to upstreams that do not exist."""

    LENIENT = "lenient"
    STRICT = "strict"


def is_valid_ipv4(ip: str) -> bool:
    """Return True for a dotted quad whose octets are all <= 255."""
    if not IPV4_RE.fullmatch(ip):
        return False
    return all(int(octet) <= 255 for octet in ip.split("."))


def find_dangling_references(config: NginxConfig) -> List[str]:
    """
    List upstream names that are referenced but never declared.

    Both the map default and every IP mapping are checked. Each missing
    name is reported once, in order of first appearance.
    """
    declared = set(config.upstream_names)
    missing: List[str] = []
    for name in [config.default_upstream] + [m.upstream for m in config.ip_mappings]:
        if name not in declared and name not in missing:
            missing.append(name)
    return missing


def _token(value: str, what: str) -> str:
    """Strip ``value`` and require it to be one unquoted config token."""
    value = value.strip()
    if not value:
        raise ModelEditError(f"{what} must not be empty")
    if not BARE_TOKEN_RE.fullmatch(value):
        raise ModelEditError(
            f"{what} may not contain whitespace, braces or semicolons: {value!r}"
        )
    return value


def _checked(config: NginxConfig, policy: ReferencePolicy) -> NginxConfig:
    if policy == ReferencePolicy.STRICT:
        missing = find_dangling_references(config)
        if missing:
            raise ReferenceIntegrityError(missing)
    return config


def _require_upstream(config: NginxConfig, name: str) -> Upstream:
    upstream = config.get_upstream(name)
    if upstream is None:
        raise ModelEditError(f"Unknown upstream: {name}")
    return upstream


def _replace_upstream(config: NginxConfig, name: str, new: Upstream) -> NginxConfig:
    upstreams = tuple(new if u.name == name else u for u in config.upstreams)
    return config.model_copy(update={"upstreams": upstreams})


def add_upstream(
    config: NginxConfig,
    name: str,
    address: str,
    policy: ReferencePolicy = ReferencePolicy.LENIENT,
) -> NginxConfig:
    """Append a new upstream with a single server."""
    name = _token(name, "Upstream name")
    address = _token(address, "Server address")
    if config.get_upstream(name) is not None:
        raise ModelEditError(f"Upstream already exists: {name}")
    upstream = Upstream(name=name, servers=(UpstreamServer(address=address),))
    logger.info("Adding upstream %s (%s)", name, address)
    return _checked(
        config.model_copy(update={"upstreams": config.upstreams + (upstream,)}),
        policy,
    )


def remove_upstream(
    config: NginxConfig,
    name: str,
    policy: ReferencePolicy = ReferencePolicy.LENIENT,
) -> NginxConfig:
    """
    Remove an upstream.

    Mappings routed to the removed upstream are sent to the default
    upstream instead. Removing the default upstream itself leaves the map
    default dangling, which ``STRICT`` rejects.
    """
    _require_upstream(config, name)
    ip_mappings = tuple(
        m.model_copy(update={"upstream": config.default_upstream})
        if m.upstream == name
        else m
        for m in config.ip_mappings
    )
    logger.info("Removing upstream %s", name)
    return _checked(
        config.model_copy(
            update={
                "upstreams": tuple(u for u in config.upstreams if u.name != name),
                "ip_mappings": ip_mappings,
            }
        ),
        policy,
    )


def rename_upstream(
    config: NginxConfig,
    old: str,
    new: str,
    policy: ReferencePolicy = ReferencePolicy.LENIENT,
) -> NginxConfig:
    """Rename an upstream and every reference to it."""
    _require_upstream(config, old)
    new = _token(new, "Upstream name")
    if new == old:
        return config
    if config.get_upstream(new) is not None:
        raise ModelEditError(f"Upstream already exists: {new}")

    upstreams = tuple(
        u.model_copy(update={"name": new}) if u.name == old else u
        for u in config.upstreams
    )
    ip_mappings = tuple(
        m.model_copy(update={"upstream": new}) if m.upstream == old else m
        for m in config.ip_mappings
    )
    default_upstream = new if config.default_upstream == old else config.default_upstream
    logger.info("Renaming upstream %s to %s", old, new)
    return _checked(
        config.model_copy(
            update={
                "upstreams": upstreams,
                "ip_mappings": ip_mappings,
                "default_upstream": default_upstream,
            }
        ),
        policy,
    )


def add_server(
    config: NginxConfig,
    upstream: str,
    address: str,
    policy: ReferencePolicy = ReferencePolicy.LENIENT,
) -> NginxConfig:
    """Append a server address to an existing upstream."""
    address = _token(address, "Server address")
    current = _require_upstream(config, upstream)
    updated = current.model_copy(
        update={"servers": current.servers + (UpstreamServer(address=address),)}
    )
    return _checked(_replace_upstream(config, upstream, updated), policy)


def remove_server(
    config: NginxConfig,
    upstream: str,
    address: str,
    policy: ReferencePolicy = ReferencePolicy.LENIENT,
) -> NginxConfig:
    """Remove every server with ``address`` from an upstream."""
    current = _require_upstream(config, upstream)
    if address not in current.addresses:
        raise ModelEditError(f"Upstream {upstream} has no server {address}")
    updated = current.model_copy(
        update={"servers": tuple(s for s in current.servers if s.address != address)}
    )
    return _checked(_replace_upstream(config, upstream, updated), policy)


def add_mapping(
    config: NginxConfig,
    ip: str,
    upstream: Optional[str] = None,
    name: Optional[str] = None,
    connection_type: Optional[Union[ConnectionType, str]] = None,
    policy: ReferencePolicy = ReferencePolicy.LENIENT,
) -> NginxConfig:
    """
    Route a new client IP to an upstream.

    Args:
        config: The current configuration.
        ip: Dotted-quad IPv4 address; must not be mapped already.
        upstream: Target upstream. Defaults to the first declared upstream,
            or the map default when there are none.
        name: Optional display label.
        connection_type: Optional ``LAN`` / ``WLAN`` marker.
        policy: Reference policy applied to the result.

    Raises:
        ModelEditError: If the IP is invalid or already mapped, or the
            upstream name is not a single token.
    """
    ip = ip.strip()
    if not is_valid_ipv4(ip):
        raise ModelEditError(f"Invalid IPv4 address: {ip}")
    if config.get_mapping(ip) is not None:
        raise ModelEditError(f"IP already mapped: {ip}")
    if upstream and upstream.strip():
        upstream = _token(upstream, "Upstream name")
    else:
        upstream = config.upstreams[0].name if config.upstreams else config.default_upstream
    try:
        mapping = IpMapping(
            ip=ip,
            upstream=upstream,
            name=(name or "").strip() or None,
            connection_type=connection_type,
        )
    except ValidationError as exc:
        raise ModelEditError(str(exc)) from exc
    return _checked(
        config.model_copy(update={"ip_mappings": config.ip_mappings + (mapping,)}),
        policy,
    )


def update_mapping(
    config: NginxConfig,
    current_ip: str,
    policy: ReferencePolicy = ReferencePolicy.LENIENT,
    **changes: Any,
) -> NginxConfig:
    """Replace fields (``ip``, ``upstream``, ``name``, ``connection_type``) of one mapping."""
    current = config.get_mapping(current_ip)
    if current is None:
        raise ModelEditError(f"IP not mapped: {current_ip}")
    unknown = set(changes) - _MAPPING_FIELDS
    if unknown:
        raise ModelEditError(f"Unknown mapping field(s): {', '.join(sorted(unknown))}")
    if isinstance(changes.get("ip"), str):
        changes["ip"] = changes["ip"].strip()
    if changes.get("upstream") is not None:
        changes["upstream"] = _token(changes["upstream"], "Upstream name")

    new_ip = changes.get("ip", current_ip)
    if new_ip != current_ip:
        if not is_valid_ipv4(new_ip):
            raise ModelEditError(f"Invalid IPv4 address: {new_ip}")
        if config.get_mapping(new_ip) is not None:
            raise ModelEditError(f"IP already mapped: {new_ip}")
    try:
        updated = IpMapping.model_validate({**current.model_dump(), **changes})
    except ValidationError as exc:
        raise ModelEditError(str(exc)) from exc

    ip_mappings = tuple(updated if m.ip == current_ip else m for m in config.ip_mappings)
    return _checked(config.model_copy(update={"ip_mappings": ip_mappings}), policy)


def remove_mapping(
    config: NginxConfig,
    ip: str,
    policy: ReferencePolicy = ReferencePolicy.LENIENT,
) -> NginxConfig:
    if config.get_mapping(ip) is None:
        raise ModelEditError(f"IP not mapped: {ip}")
    ip_mappings = tuple(m for m in config.ip_mappings if m.ip != ip)
    return _checked(config.model_copy(update={"ip_mappings": ip_mappings}), policy)


def set_listen_port(
    config: NginxConfig,
    port: Union[int, str],
    policy: ReferencePolicy = ReferencePolicy.LENIENT,
) -> NginxConfig:
    """
    Change the listen port.

    Text input is read up to the first non-digit; empty, non-numeric or zero
    input falls back to the default port. Values above 65535 are rejected.
    """
    if isinstance(port, str):
        match = _LEADING_DIGITS_RE.match(port)
        port = int(match.group(1)) if match else 0
    if not port:
        port = DEFAULT_LISTEN_PORT
    if not MIN_PORT <= port <= MAX_PORT:
        raise ModelEditError(f"Port out of range: {port}")
    return _checked(config.model_copy(update={"listen_port": port}), policy)


def set_default_upstream(
    config: NginxConfig,
    name: str,
    policy: ReferencePolicy = ReferencePolicy.LENIENT,
) -> NginxConfig:
    name = _token(name, "Upstream name")
    return _checked(config.model_copy(update={"default_upstream": name}), policy)


def set_logging(
    config: NginxConfig,
    log_path: Optional[str] = None,
    log_format: Optional[str] = None,
    policy: ReferencePolicy = ReferencePolicy.LENIENT,
) -> NginxConfig:
    """Change the access log path and/or the log format name."""
    update = {}
    if log_path is not None:
        update["log_path"] = _token(log_path, "Log path")
    if log_format is not None:
        update["log_format"] = _token(log_format, "Log format name")
    return _checked(config.model_copy(update=update), policy)


__all__ = [
    "ReferencePolicy",
    "add_mapping",
    "add_server",
    "add_upstream",
    "find_dangling_references",
    "is_valid_ipv4",
    "remove_mapping",
    "remove_server",
    "remove_upstream",
    "rename_upstream",
    "set_default_upstream",
    "set_listen_port",
    "set_logging",
    "update_mapping",
]
