# StreamRouter
# Copyright (C) 2025 Amirreza "Farnam" Taheri
# This program comes with ABSOLUTELY NO WARRANTY; for details type `show w`.
# This is free software, and you are welcome to redistribute it
# under certain conditions; type `show c` for details.

"""Render an ``NginxConfig`` as nginx stream configuration text."""
from __future__ import annotations

from typing import List

from ..constants import (
    LOG_FORMAT_FIELDS,
    ROUTING_VARIABLE,
    STREAM_MODULE_PATH,
    WORKER_CONNECTIONS,
    WORKER_PROCESSES,
)
from ..models import NginxConfig, Upstream


def _render_map_entries(config: NginxConfig) -> str:
    lines = [f"    default {config.default_upstream};"]
    lines.extend(f"    {m.ip} {m.upstream};" for m in config.ip_mappings)
    return "\n".join(lines)


def _render_upstream(upstream: Upstream) -> str:
    servers = "\n".join(f"  server {s.address};" for s in upstream.servers)
    return f"upstream {upstream.name} {{\n{servers}\n}}"


def _render_log_format(name: str) -> str:
    fields = "\n".join(f"    '{field}'" for field in LOG_FORMAT_FIELDS)
    return f"  log_format {name}\n{fields};"


def serialize_config(config: NginxConfig) -> str:
    """
    Render the configuration with the fixed stream template.

    The output only depends on the model, so the same model always yields
    the same text. Values are written verbatim; a name containing a space,
    brace or semicolon produces a broken file.

    Args:
        config: The configuration to render.

    Returns:
        The complete configuration text, ending with a newline.
    """
    upstream_blocks = "\n\n".join(_render_upstream(u) for u in config.upstreams)

    sections: List[str] = [
        f"load_module {STREAM_MODULE_PATH};",
        f"worker_processes {WORKER_PROCESSES};",
        f"events {{\n  worker_connections {WORKER_CONNECTIONS};\n}}",
        "stream {\n"
        f"{_render_log_format(config.log_format)}\n"
        "\n"
        f"  access_log {config.log_path} {config.log_format};\n"
        "\n"
        f"  map $remote_addr {ROUTING_VARIABLE} {{\n"
        f"{_render_map_entries(config)}\n"
        "  }\n"
        "\n"
        f"{upstream_blocks}\n"
        "\n"
        "  server {\n"
        f"    listen {config.listen_port};\n"
        f"    proxy_pass {ROUTING_VARIABLE};\n"
        "  }\n"
        "}",
    ]
    return "\n\n".join(sections) + "\n"
