# StreamRouter
# Copyright (C) 2025 Amirreza "Farnam" Taheri
# This program comes with ABSOLUTELY NO WARRANTY; for details type `show w`.
# This is free software, and you are welcome to redistribute it
# under certain conditions; type `show c` for details.

"""Owner of the single "current" configuration of an editing front end."""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from .core import default_config, parse_config, serialize_config
from .editing import ReferencePolicy
from .exceptions import ParserError, StreamRouterError
from .models import NginxConfig

logger = logging.getLogger(__name__)


class ConfigSession:
    """
    Hold the current configuration and replace it atomically on every edit.

    Edits are pure functions from ``editing``; the session only swaps the
    stored model when an edit succeeds, so a failed edit or a failed parse
    always leaves the last accepted configuration in place. A lock serializes
    concurrent edits coming from different surfaces.
    """

    def __init__(
        self,
        initial: Optional[NginxConfig] = None,
        policy: ReferencePolicy = ReferencePolicy.LENIENT,
    ):
        self._config = initial if initial is not None else default_config()
        self.policy = ReferencePolicy(policy)
        self._lock = threading.Lock()

    @classmethod
    def from_text(
        cls, raw: str, policy: ReferencePolicy = ReferencePolicy.LENIENT
    ) -> "ConfigSession":
        """Bootstrap from configuration text, using the default model if parsing raises."""
        try:
            initial = parse_config(raw)
        except Exception as exc:
            logger.warning("Falling back to the default configuration: %s", exc)
            initial = default_config()
        return cls(initial, policy)

    @property
    def config(self) -> NginxConfig:
        return self._config

    @property
    def text(self) -> str:
        return serialize_config(self._config)

    def apply(self, edit: Callable[..., NginxConfig], *args: Any, **kwargs: Any) -> NginxConfig:
        """
        Run ``edit(current, *args, **kwargs)`` and store the result.

        The session policy is passed to the edit unless the caller supplies
        one. Exceptions propagate and the stored configuration is unchanged.
        """
        kwargs.setdefault("policy", self.policy)
        with self._lock:
            updated = edit(self._config, *args, **kwargs)
            self._config = updated
        return updated

    def apply_text(self, raw: str) -> NginxConfig:
        """
        Replace the configuration with the result of parsing ``raw``.

        Raises:
            ParserError: If parsing raised; the message of the original
                error is kept and the stored configuration is unchanged.
        """
        try:
            parsed = parse_config(raw)
        except StreamRouterError:
            raise
        except Exception as exc:
            logger.error("Could not apply configuration text: %s", exc)
            raise ParserError(str(exc)) from exc
        with self._lock:
            self._config = parsed
        return parsed

    def reset(self) -> NginxConfig:
        with self._lock:
            self._config = default_config()
        return self._config
