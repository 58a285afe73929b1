from __future__ import annotations

import json

import pytest
import yaml

from streamrouter.core import DEFAULT_CONFIG, serialize_config
from streamrouter.exceptions import ConfigError
from streamrouter.output_writer import (
    dump_model,
    load_model,
    read_config_text,
    write_config_text,
    write_model,
)


def test_write_and_read_config_text(tmp_path):
    path = write_config_text(DEFAULT_CONFIG, tmp_path / "conf" / "nginx.conf")
    assert path.read_text(encoding="utf-8") == serialize_config(DEFAULT_CONFIG)
    assert not (tmp_path / "conf" / "nginx.conf.tmp").exists()
    assert read_config_text(path) == DEFAULT_CONFIG


@pytest.mark.parametrize("suffix", [".yaml", ".yml", ".json"])
def test_model_documents_round_trip(tmp_path, suffix):
    path = write_model(DEFAULT_CONFIG, tmp_path / f"model{suffix}")
    assert load_model(path) == DEFAULT_CONFIG


def test_dump_model_yaml_keeps_field_order():
    document = yaml.safe_load(dump_model(DEFAULT_CONFIG, "yaml"))
    assert list(document) == [
        "listenPort",
        "defaultUpstream",
        "upstreams",
        "ipMappings",
        "logPath",
        "logFormat",
    ]


def test_dump_model_json():
    document = json.loads(dump_model(DEFAULT_CONFIG, "json"))
    assert document["ipMappings"][2] == {"ip": "10.1.0.32", "upstream": "printer_up"}


def test_dump_model_rejects_unknown_format():
    with pytest.raises(ConfigError):
        dump_model(DEFAULT_CONFIG, "toml")


def test_load_model_rejects_unknown_suffix(tmp_path):
    path = tmp_path / "model.txt"
    path.write_text("{}")
    with pytest.raises(ConfigError, match="Unsupported model file type"):
        load_model(path)


def test_load_model_rejects_invalid_document(tmp_path):
    path = tmp_path / "model.yaml"
    path.write_text("listenPort: not-a-number\n")
    with pytest.raises(ConfigError, match="Invalid configuration"):
        load_model(path)


def test_load_model_rejects_non_mapping(tmp_path):
    path = tmp_path / "model.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(ConfigError, match="does not contain a mapping"):
        load_model(path)


def test_load_model_rejects_broken_json(tmp_path):
    path = tmp_path / "model.json"
    path.write_text("{broken")
    with pytest.raises(ConfigError, match="Could not read"):
        load_model(path)


def test_load_model_reports_undecodable_file(tmp_path):
    path = tmp_path / "model.yaml"
    path.write_bytes(b"\xff\xfe\x00listenPort")
    with pytest.raises(ConfigError, match="Could not read"):
        load_model(path, encoding="utf-8")
