"""Test configuration and helper fixtures."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import pytest

# Minified bootstrap text as shipped with the editor front end
MINIFIED_CONFIG = (
    "load_module modules/ngx_stream_module.so;worker_processes auto;"
    "events { worker_connections 1024; }stream {log_format tcp_router"
    "'ts=$time_local msec=$msec ''$remote_addr:$remote_port -> $upstream_addr '"
    "'status=$status bytes_sent=$bytes_sent bytes_received=$bytes_received '"
    "'time=$session_time';access_log /var/log/nginx/tcp_router_9100.log tcp_router;"
    "map $remote_addr $printer_upstream {default printer_down;10.1.0.30 printer_down;"
    "10.1.0.31 printer_down;10.1.0.32 printer_up;10.1.0.33 printer_up;"
    "10.1.0.34 printer_up;}upstream printer_down { server 10.1.0.11:9100; }"
    "upstream printer_up { server 10.1.0.12:9100; }server {listen 9100;"
    "proxy_pass $printer_upstream;}}"
)

SCENARIO_CONFIG = (
    "stream { map $remote_addr $printer_upstream { default printer_down; "
    "10.1.0.32 printer_up; } upstream printer_down { server 10.1.0.11:9100; } "
    "upstream printer_up { server 10.1.0.12:9100; } server { listen 9100; "
    "proxy_pass $printer_upstream; } }"
)


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo handlers installed by ``setup_logging`` during a test."""
    root = logging.getLogger()
    handlers, filters, level = root.handlers[:], root.filters[:], root.level
    yield
    root.handlers = handlers
    root.filters = filters
    root.setLevel(level)


@dataclass
class SimpleFS:
    """Lightweight fake file-system helper used by CLI tests."""

    root: Path

    def create_file(self, relative_path: str, contents: str = "") -> Path:
        file_path = self.root / relative_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(contents)
        return file_path


@pytest.fixture
def fs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> SimpleFS:
    """Provide a simple fake file-system rooted at ``tmp_path``."""

    monkeypatch.chdir(tmp_path)
    for name in ("LOG_LEVEL", "REFERENCE_POLICY", "LOG_FILE"):
        monkeypatch.delenv(f"STREAMROUTER_{name}", raising=False)
    return SimpleFS(tmp_path)


@pytest.fixture
def minified_config() -> str:
    return MINIFIED_CONFIG


@pytest.fixture
def scenario_config() -> str:
    return SCENARIO_CONFIG
