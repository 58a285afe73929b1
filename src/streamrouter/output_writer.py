"""Reading and writing configuration files.

Two kinds of files are handled: nginx configuration text, which goes
through the parser and serializer, and model documents (YAML or JSON with
camelCase keys) that other tools can produce or consume directly.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import ValidationError

from .constants import MODEL_SUFFIXES
from .core import parse_config, serialize_config
from .exceptions import ConfigError
from .models import NginxConfig


def atomic_write_text(path: Path, content: str, encoding: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_file = path.with_suffix(path.suffix + ".tmp")
    tmp_file.write_text(content, encoding=encoding)
    tmp_file.replace(path)
    return path


def read_config_text(path: Path, encoding: str = "utf-8") -> NginxConfig:
    """Parse an nginx configuration file."""
    return parse_config(Path(path).read_text(encoding=encoding))


def write_config_text(config: NginxConfig, path: Path, encoding: str = "utf-8") -> Path:
    """Render ``config`` and write it to ``path``."""
    return atomic_write_text(Path(path), serialize_config(config), encoding)


def _document_format(path: Path) -> str:
    fmt = MODEL_SUFFIXES.get(path.suffix.lower())
    if fmt is None:
        raise ConfigError(
            f"Unsupported model file type '{path.suffix}', use .yaml, .yml or .json"
        )
    return fmt


def load_model(path: Path, encoding: str = "utf-8") -> NginxConfig:
    """
    Load a model document.

    Raises:
        ConfigError: If the suffix is not supported, the file cannot be
            decoded, or its content does not describe a configuration.
    """
    path = Path(path)
    fmt = _document_format(path)
    try:
        text = path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Could not read {path}: {exc}") from exc
    try:
        data: Dict[str, Any] = yaml.safe_load(text) if fmt == "yaml" else json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Could not read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} does not contain a mapping")
    try:
        return NginxConfig.from_document(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc


def dump_model(config: NginxConfig, fmt: str = "yaml") -> str:
    """Return ``config`` as a YAML or JSON document."""
    document = config.to_document()
    if fmt == "json":
        return json.dumps(document, indent=2, ensure_ascii=False) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(document, allow_unicode=True, sort_keys=False)
    raise ConfigError(f"Unsupported model format: {fmt}")


def write_model(config: NginxConfig, path: Path, encoding: str = "utf-8") -> Path:
    """Write ``config`` as a model document, choosing the format from the suffix."""
    path = Path(path)
    return atomic_write_text(path, dump_model(config, _document_format(path)), encoding)
