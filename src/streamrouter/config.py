"""Application settings for StreamRouter.

Settings are read, in order of precedence, from keyword arguments,
``STREAMROUTER_*`` environment variables, a ``.env`` file and finally a YAML
file (the nearest ``streamrouter.yaml`` in the working directory or one of its
parents, unless a path is given).
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Type

import yaml
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import CONFIG_FILE_NAME, OUTPUT_FILE_NAME
from .editing import ReferencePolicy


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """
    A Pydantic settings source that loads variables from a YAML file.
    """

    def __init__(self, settings_cls: Type[BaseSettings], yaml_file: Path | None):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._data: dict[str, Any] | None = None
        if self.yaml_file and self.yaml_file.exists():
            try:
                self._data = yaml.safe_load(self.yaml_file.read_text()) or {}
            except (yaml.YAMLError, IOError) as exc:
                logging.warning("Ignoring unreadable settings file %s: %s", self.yaml_file, exc)
                self._data = {}
        else:
            self._data = {}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str] | None:
        if not self._data:
            return None
        return (self._data.get(field_name), field_name)

    def __call__(self) -> dict[str, Any]:
        return dict(self._data or {})


class AppSettings(BaseSettings):
    """
    Main application configuration model.
    """

    log_level: str = Field("INFO", description="Root logger level.")
    mask_sensitive_data: bool = Field(
        True, description="Mask credentials and e-mail addresses in log output."
    )
    log_file: Optional[Path] = Field(
        None, description="Also write log records to this file."
    )
    reference_policy: ReferencePolicy = Field(
        ReferencePolicy.LENIENT,
        description="Whether edits may leave references to undeclared upstreams.",
    )
    output_file: Path = Field(
        OUTPUT_FILE_NAME, description="Default file name for rendered configuration text."
    )
    encoding: str = Field("utf-8", description="Encoding used to read and write files.")

    config_file: Optional[Path] = Field(default=None, exclude=True)

    model_config = SettingsConfigDict(
        env_prefix="STREAMROUTER_", case_sensitive=False, env_nested_delimiter="__"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> str:
        """Accept any case and reject names the logging module does not know."""
        level = str(value).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        config_file = init_settings.init_kwargs.get("config_file")
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=config_file),
            file_secret_settings,
        )


def find_settings_file(start: Path | None = None) -> Optional[Path]:
    """Return the nearest ``streamrouter.yaml`` at or above ``start``."""
    start = (start or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def load_settings(path: Path | None = None) -> AppSettings:
    """
    Load application settings from a YAML file and environment variables.
    """
    config_file = path
    if config_file is None:
        config_file = find_settings_file()
        if config_file is None:
            logging.debug("No %s found, using defaults.", CONFIG_FILE_NAME)
    return AppSettings(config_file=config_file)
