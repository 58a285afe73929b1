# StreamRouter
# Copyright (C) 2025 Amirreza "Farnam" Taheri
# This program comes with ABSOLUTELY NO WARRANTY; for details type `show w`.
# This is free software, and you are welcome to redistribute it
# under certain conditions; type `show c` for details.

"""Parse nginx stream configuration text into an ``NginxConfig``.

The parser is deliberately tolerant. The text is flattened to a single line
and every directive is pulled out with its own pattern, so the order of
directives and the source formatting do not matter. Anything that cannot be
found falls back to a default value instead of failing the whole parse.
Blocks are matched one brace level deep only; nested blocks inside an
``upstream`` or ``map`` body are not supported.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from ..constants import (
    DEFAULT_LISTEN_PORT,
    DEFAULT_LOG_FORMAT,
    DEFAULT_LOG_PATH,
    DEFAULT_UPSTREAM_NAME,
)
from ..models import IpMapping, NginxConfig, Upstream, UpstreamServer

logger = logging.getLogger(__name__)

WHITESPACE_RE = re.compile(r"\s+")
LISTEN_RE = re.compile(r"listen\s+([0-9]+)")
ACCESS_LOG_RE = re.compile(r"access_log\s+(\S+)\s")
LOG_FORMAT_RE = re.compile(r"log_format\s+(\S+)\s+['\"]")
UPSTREAM_RE = re.compile(r"upstream\s+(\S+)\s*\{([^}]+)\}")
SERVER_RE = re.compile(r"server\s+(\S+);")
MAP_RE = re.compile(r"map\s+\$remote_addr\s+\$\w+\s*\{([^}]+)\}")
MAP_ENTRY_RE = re.compile(r"([^\s;]+)\s+([^\s;]+);")


def normalize_whitespace(raw: str) -> str:
    """Collapse every run of whitespace to one space and trim the ends."""
    return WHITESPACE_RE.sub(" ", raw).strip()


def _extract_listen_port(text: str) -> int:
    match = LISTEN_RE.search(text)
    if match:
        try:
            return int(match.group(1))
        except ValueError:
            # int() refuses absurdly long digit strings
            logger.debug("Unusable listen port %.20s...", match.group(1))
    logger.debug("No listen directive found, using port %d", DEFAULT_LISTEN_PORT)
    return DEFAULT_LISTEN_PORT


def _extract_log_path(text: str) -> str:
    match = ACCESS_LOG_RE.search(text)
    if match:
        return match.group(1)
    logger.debug("No access_log directive found, using %s", DEFAULT_LOG_PATH)
    return DEFAULT_LOG_PATH


def _extract_log_format(text: str) -> str:
    match = LOG_FORMAT_RE.search(text)
    if match:
        return match.group(1)
    logger.debug("No log_format directive found, using %s", DEFAULT_LOG_FORMAT)
    return DEFAULT_LOG_FORMAT


def _extract_upstreams(text: str) -> List[Upstream]:
    """Collect every ``upstream`` block in the order it appears."""
    upstreams: List[Upstream] = []
    for match in UPSTREAM_RE.finditer(text):
        name, body = match.group(1), match.group(2)
        servers = tuple(
            UpstreamServer(address=address) for address in SERVER_RE.findall(body)
        )
        upstreams.append(Upstream(name=name, servers=servers))
    return upstreams


def _extract_map(text: str) -> Tuple[Optional[str], List[IpMapping]]:
    """
    Read the ``map $remote_addr`` block.

    Returns:
        The value of the ``default`` entry (or None when the block or the
        entry is missing) and the remaining entries as IP mappings.
    """
    match = MAP_RE.search(text)
    if not match:
        logger.debug("No map $remote_addr block found")
        return None, []

    default: Optional[str] = None
    mappings: List[IpMapping] = []
    for key, value in MAP_ENTRY_RE.findall(match.group(1)):
        if key == "default":
            default = value
        else:
            mappings.append(IpMapping(ip=key, upstream=value))
    return default, mappings


def parse_config(raw: str) -> NginxConfig:
    """
    Parse raw nginx stream configuration text.

    Args:
        raw: The configuration text, minified or pretty-printed.

    Returns:
        The structured configuration. Directives that are missing are
        replaced by their defaults, so an empty string yields the all-default
        model with no upstreams and no mappings.
    """
    text = normalize_whitespace(raw)

    upstreams = _extract_upstreams(text)
    default_upstream, ip_mappings = _extract_map(text)
    if default_upstream is None:
        default_upstream = upstreams[0].name if upstreams else DEFAULT_UPSTREAM_NAME

    config = NginxConfig(
        listen_port=_extract_listen_port(text),
        default_upstream=default_upstream,
        upstreams=tuple(upstreams),
        ip_mappings=tuple(ip_mappings),
        log_path=_extract_log_path(text),
        log_format=_extract_log_format(text),
    )
    logger.debug(
        "Parsed config: port=%d, %d upstream(s), %d mapping(s)",
        config.listen_port,
        len(config.upstreams),
        len(config.ip_mappings),
    )
    return config
