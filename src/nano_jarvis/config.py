"""Configuration for nano-jarvis.

Config discovery (first match wins):
  1. ``--config`` flag
  2. ``./nano_jarvis.yaml``
  3. ``~/.config/nano-jarvis/config.yaml``
  4. Built-in defaults

Environment variables override file values:
``LLM_API_BASE_URL``, ``LLM_API_KEY`` (or ``OPENAI_API_KEY``),
``LLM_CHAT_MODEL``, ``LLM_STREAMING`` (``no`` disables) and ``LLM_TIMEOUT``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

import yaml

from nano_jarvis.errors import ConfigurationError
from nano_jarvis.types import DEFAULT_MODEL

_logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434/v1"
DEFAULT_TIMEOUT = 120.0


# ---------------------------------------------------------------------------
# Config data structures
# ---------------------------------------------------------------------------

@dataclass
class ChatSettings:
    """Connection settings for one OpenAI-compatible endpoint."""

    base_url: str = DEFAULT_BASE_URL
    api_key: str | None = None
    model: str | None = None
    streaming: bool = True
    timeout: float = DEFAULT_TIMEOUT

    @property
    def effective_model(self) -> str:
        return self.model or DEFAULT_MODEL

    @property
    def completions_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"

    def validate(self) -> ChatSettings:
        """Raise ``ConfigurationError`` unless the settings are usable."""
        if not self.base_url:
            raise ConfigurationError("LLM_API_BASE_URL is not set!")
        parsed = urlparse(self.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(
                f"LLM API base URL must be an http(s) URL, got {self.base_url!r}"
            )
        if self.timeout <= 0:
            raise ConfigurationError(
                f"Timeout must be positive, got {self.timeout}"
            )
        return self


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

_SEARCH_PATHS = [
    Path("./nano_jarvis.yaml"),
    Path.home() / ".config" / "nano-jarvis" / "config.yaml",
]


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in ("no", "false", "off", "0")


def _parse_timeout(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid timeout: {value!r}") from None


def _read_yaml(path: str | Path | None) -> dict[str, Any]:
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            _logger.warning("Config file not found: %s, using defaults", path)
            return {}
    else:
        for candidate in _SEARCH_PATHS:
            if candidate.exists():
                config_path = candidate
                break

    if config_path is None:
        _logger.info("No config file found, using defaults")
        return {}

    _logger.info("Loading config from %s", config_path)
    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {config_path} must hold a mapping")
    return raw


def load_settings(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ChatSettings:
    """Load settings from YAML, then apply environment overrides.

    Parameters
    ----------
    path:
        Explicit config path.  If *None*, search default locations.
    environ:
        Environment mapping, ``os.environ`` when *None*.

    Returns
    -------
    ChatSettings
        Not yet validated; call :meth:`ChatSettings.validate`.
    """
    env = os.environ if environ is None else environ
    raw = _read_yaml(path)

    base_url = raw.get("base_url", DEFAULT_BASE_URL)
    api_key = raw.get("api_key")
    model = raw.get("model")
    streaming = _parse_bool(raw.get("streaming", True))
    timeout = _parse_timeout(raw.get("timeout", DEFAULT_TIMEOUT))

    if "LLM_API_BASE_URL" in env:
        base_url = env["LLM_API_BASE_URL"]
    api_key = env.get("LLM_API_KEY") or env.get("OPENAI_API_KEY") or api_key
    model = env.get("LLM_CHAT_MODEL") or model
    if "LLM_STREAMING" in env:
        streaming = env["LLM_STREAMING"] != "no"
    if "LLM_TIMEOUT" in env:
        timeout = _parse_timeout(env["LLM_TIMEOUT"])

    return ChatSettings(
        base_url=base_url or "",
        api_key=api_key or None,
        model=model or None,
        streaming=streaming,
        timeout=timeout,
    )
