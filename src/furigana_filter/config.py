# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Runtime settings — frozen dataclass with environment overrides.

Leaf module. Environment variables:
    FURIGANA_FILTER_API_BASE    WaniKani API root (default https://api.wanikani.com/v2)
    FURIGANA_FILTER_CONFIG_DIR  directory holding settings.json (default ~/.furigana-filter)
    FURIGANA_FILTER_TIMEOUT     per-request timeout in seconds (default 30)
    WANIKANI_API_TOKEN          token used as if it were stored (never written to disk)
"""

from __future__ import annotations

import logging
import os
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.wanikani.com/v2"
DEFAULT_TIMEOUT_S = 30.0


def _default_config_dir() -> Path:
    return Path(os.path.expanduser("~")) / ".furigana-filter"


@dataclass(frozen=True)
class Settings:
    """Immutable runtime configuration."""

    api_base: str = DEFAULT_API_BASE
    config_dir: Path = field(default_factory=_default_config_dir)
    timeout_s: float = DEFAULT_TIMEOUT_S
    env_token: str = field(default="", repr=False)

    @property
    def settings_path(self) -> Path:
        """JSON file holding the persisted credential."""
        return self.config_dir / "settings.json"

    def endpoint(self, path: str) -> str:
        """Join *path* onto the API root (``assignments`` → ``{api_base}/assignments``)."""
        return f"{self.api_base.rstrip('/')}/{path.lstrip('/')}"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        kwargs: dict = {}

        api_base = env.get("FURIGANA_FILTER_API_BASE", "").strip()
        if api_base:
            kwargs["api_base"] = api_base

        config_dir = env.get("FURIGANA_FILTER_CONFIG_DIR", "").strip()
        if config_dir:
            kwargs["config_dir"] = Path(os.path.expanduser(config_dir))

        timeout = env.get("FURIGANA_FILTER_TIMEOUT", "").strip()
        if timeout:
            with suppress(ValueError):
                kwargs["timeout_s"] = float(timeout)
            if "timeout_s" not in kwargs:
                logger.warning("Ignoring non-numeric FURIGANA_FILTER_TIMEOUT=%r", timeout)

        env_token = env.get("WANIKANI_API_TOKEN", "").strip()
        if env_token:
            kwargs["env_token"] = env_token

        return cls(**kwargs)
