from __future__ import annotations

import pytest

from streamrouter.core import DEFAULT_CONFIG, normalize_whitespace, parse_config
from streamrouter.models import IpMapping, Upstream, UpstreamServer


def test_parse_empty_returns_defaults():
    config = parse_config("")
    assert config.listen_port == 9100
    assert config.log_path == "/var/log/nginx/tcp_router.log"
    assert config.log_format == "tcp_router"
    assert config.upstreams == ()
    assert config.ip_mappings == ()
    assert config.default_upstream == "printer_down"


def test_parse_scenario(scenario_config):
    config = parse_config(scenario_config)
    assert config.listen_port == 9100
    assert config.default_upstream == "printer_down"
    assert config.upstreams == (
        Upstream(name="printer_down", servers=(UpstreamServer(address="10.1.0.11:9100"),)),
        Upstream(name="printer_up", servers=(UpstreamServer(address="10.1.0.12:9100"),)),
    )
    assert config.ip_mappings == (IpMapping(ip="10.1.0.32", upstream="printer_up"),)


def test_parse_minified_bootstrap_text(minified_config):
    assert parse_config(minified_config) == DEFAULT_CONFIG


def test_map_entries_keep_order():
    text = (
        "map $remote_addr $printer_upstream { default printer_up; "
        "10.1.0.32 printer_up; 10.1.0.30 printer_down; 10.1.0.31 printer_up; }"
    )
    config = parse_config(text)
    assert [m.ip for m in config.ip_mappings] == ["10.1.0.32", "10.1.0.30", "10.1.0.31"]
    assert [m.upstream for m in config.ip_mappings] == ["printer_up", "printer_down", "printer_up"]


def test_upstream_servers_are_scoped_to_their_block():
    text = """
    upstream printer_down {
        server 10.1.0.11:9100;
        server 10.1.0.13:9100;
    }
    upstream printer_up {
        server 10.1.0.12:9100;
    }
    """
    config = parse_config(text)
    assert len(config.upstreams) == 2
    assert config.upstreams[0].addresses == ("10.1.0.11:9100", "10.1.0.13:9100")
    assert config.upstreams[1].addresses == ("10.1.0.12:9100",)


def test_minified_and_pretty_variants_parse_identically():
    pretty = """
    stream {
        log_format custom
            'ts=$time_local';
        access_log /tmp/router.log custom;

        map $remote_addr $route {
            default b;
            192.168.0.5   a;
        }

        upstream a {
            server 192.168.0.10:9100;
        }

        upstream b {
            server 192.168.0.11:9100;
        }

        server {
            listen   9200;
            proxy_pass $route;
        }
    }
    """
    minified = (
        "stream {log_format custom 'ts=$time_local';access_log /tmp/router.log custom;"
        "map $remote_addr $route {default b;192.168.0.5 a;}"
        "upstream a {server 192.168.0.10:9100;}upstream b {server 192.168.0.11:9100;}"
        "server {listen 9200;proxy_pass $route;}}"
    )
    assert parse_config(pretty) == parse_config(minified)
    config = parse_config(pretty)
    assert config.listen_port == 9200
    assert config.log_path == "/tmp/router.log"
    assert config.log_format == "custom"
    assert config.default_upstream == "b"


def test_default_upstream_falls_back_to_first_upstream_without_map():
    config = parse_config("upstream backend_a { server 10.0.0.1:9100; }")
    assert config.default_upstream == "backend_a"


def test_empty_map_body_yields_no_mappings():
    config = parse_config(
        "map $remote_addr $printer_upstream { } upstream first { server 10.0.0.1:1; }"
    )
    assert config.ip_mappings == ()
    assert config.default_upstream == "first"


def test_map_without_default_entry_uses_fallback():
    config = parse_config("map $remote_addr $x { 10.0.0.9 other; }")
    assert config.default_upstream == "printer_down"
    assert config.ip_mappings == (IpMapping(ip="10.0.0.9", upstream="other"),)


def test_duplicate_upstream_names_are_kept():
    config = parse_config(
        "upstream dup { server 10.0.0.1:1; } upstream dup { server 10.0.0.2:2; }"
    )
    assert [u.name for u in config.upstreams] == ["dup", "dup"]
    assert config.upstreams[1].addresses == ("10.0.0.2:2",)


def test_malformed_server_address_is_kept_verbatim():
    config = parse_config("upstream u { server not-an-address; }")
    assert config.upstreams[0].addresses == ("not-an-address",)


def test_upstream_without_servers():
    config = parse_config("upstream empty { }")
    assert config.upstreams == (Upstream(name="empty", servers=()),)


def test_dangling_references_are_parsed_verbatim():
    config = parse_config(
        "map $remote_addr $r { default ghost; 10.0.0.1 phantom; } upstream real { server a:1; }"
    )
    assert config.default_upstream == "ghost"
    assert config.ip_mappings[0].upstream == "phantom"


@pytest.mark.parametrize(
    "text",
    [
        "listen abc;",
        "server { listen ; }",
        "this is not an nginx configuration at all",
        "{{{ }}} ;;; map upstream listen",
    ],
)
def test_unusable_input_falls_back_to_defaults(text):
    config = parse_config(text)
    assert config.listen_port == 9100
    assert config.log_path == "/var/log/nginx/tcp_router.log"
    assert config.log_format == "tcp_router"


def test_first_listen_directive_wins():
    assert parse_config("listen 8080; listen 9090;").listen_port == 8080


def test_log_format_with_double_quotes():
    assert parse_config('log_format main "$remote_addr";').log_format == "main"


def test_normalize_whitespace():
    assert normalize_whitespace("  a\n\tb   c \r\n") == "a b c"


def test_map_body_without_semicolons_yields_no_mappings():
    body = " ".join(f"10.0.{i // 256}.{i % 256} up" for i in range(5000))
    config = parse_config(f"map $remote_addr $r {{ {body} }}")
    assert config.ip_mappings == ()
