# StreamRouter
# Copyright (C) 2025 Amirreza "Farnam" Taheri
# This program comes with ABSOLUTELY NO WARRANTY; for details type `show w`.
# This is free software, and you are welcome to redistribute it
# under certain conditions; type `show c` for details.

"""Custom exception types for the StreamRouter application."""

from __future__ import annotations

from typing import Iterable


class StreamRouterError(Exception):
    """Base exception class for all application-specific errors."""

    pass


class ParserError(StreamRouterError):
    """Raised when configuration text could not be turned into a model."""

    pass


class ConfigError(StreamRouterError):
    """Raised for settings and file-format related errors."""

    pass


class ModelEditError(StreamRouterError):
    """Raised when an edit operation is rejected."""

    pass


class ReferenceIntegrityError(ModelEditError):
    """Raised when an edit leaves references to undeclared upstreams."""

    def __init__(self, missing: Iterable[str]):
        self.missing = sorted(set(missing))
        super().__init__(
            "Dangling upstream references: " + ", ".join(self.missing)
        )
