# StreamRouter
# Copyright (C) 2025 Amirreza "Farnam" Taheri
# This program comes with ABSOLUTELY NO WARRANTY; for details type `show w`.
# This is free software, and you are welcome to redistribute it
# under certain conditions; type `show c` for details.

"""Text <-> model transformation for nginx stream routing configurations.

``parse_config`` and ``serialize_config`` are independent pure functions.
Together they satisfy ``parse_config(serialize_config(c)) == c`` for every
model whose names are bare-word tokens.
"""
from __future__ import annotations

from .defaults import DEFAULT_CONFIG, default_config
from .parser import normalize_whitespace, parse_config
from .serializer import serialize_config

__all__ = [
    "DEFAULT_CONFIG",
    "default_config",
    "normalize_whitespace",
    "parse_config",
    "serialize_config",
]
