"""Resolved connection settings for a local Ollama server.

Settings come from ``~/.gemini/ollama_config.json`` by default::

    {"host": "localhost", "port": 11434, "model": "llama3.1", "enabled": true}

``OLLAMA_HOST``, ``OLLAMA_PORT``, ``OLLAMA_MODEL`` and ``OLLAMA_ENABLED``
environment variables (a ``.env`` file in the working directory is loaded
first) override individual fields of the file.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_DIR = ".gemini"
CONFIG_FILE = "ollama_config.json"

_ENV_FIELDS: Dict[str, str] = {
    "host": "OLLAMA_HOST",
    "port": "OLLAMA_PORT",
    "model": "OLLAMA_MODEL",
    "enabled": "OLLAMA_ENABLED",
}
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


class OllamaConfig(BaseModel):
    """Where to reach the inference server and which model to use."""

    host: str = Field(min_length=1)
    port: int = Field(ge=1, le=65535)
    model: str = Field(min_length=1)
    enabled: bool = True

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"


def default_config_path() -> Path:
    return Path.home() / CONFIG_DIR / CONFIG_FILE


def _load_env_file() -> None:
    try:
        load_dotenv(dotenv_path=os.path.join(os.getcwd(), ".env"))
    except Exception as e:
        # A broken .env must not prevent the file-based config from loading
        logger.warning("Could not load .env file: %s", e)


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for field_name, env_var in _ENV_FIELDS.items():
        value = os.environ.get(env_var)
        if value is None or value == "":
            continue
        if field_name == "enabled":
            overrides[field_name] = value.strip().lower() not in _FALSE_VALUES
        else:
            overrides[field_name] = value

    # The Ollama CLI itself accepts OLLAMA_HOST in "[scheme://]host:port" form
    host = overrides.get("host")
    if host:
        host = host.split("://", 1)[-1].rstrip("/")
        if host.startswith("["):
            # "[ipv6]" or "[ipv6]:port"
            name, _, rest = host[1:].partition("]")
            port = rest[1:] if rest.startswith(":") else ""
        elif host.count(":") == 1:
            name, _, port = host.partition(":")
        else:
            # Bare IPv6 literal or plain hostname
            name, port = host, ""
        if port.isdigit() and name:
            overrides.setdefault("port", port)
        overrides["host"] = name or host
    return overrides


def _validate(data: Dict[str, Any], source: str) -> Optional[OllamaConfig]:
    # "port" must be numeric in the file; env strings are coerced by pydantic
    try:
        return OllamaConfig.model_validate(data)
    except ValidationError as e:
        logger.warning("Invalid Ollama configuration from %s: %s", source, e)
        return None


def load_ollama_config(
    path: str | os.PathLike[str] | None = None,
    *,
    use_env: bool = True,
) -> Optional[OllamaConfig]:
    """Load the Ollama configuration.

    Args:
        path: Config file location. Defaults to ``~/.gemini/ollama_config.json``.
        use_env: Apply ``OLLAMA_*`` environment overrides.

    Returns:
        The validated config, or ``None`` when no usable configuration exists.
        A missing file is normal (the adapter is simply not configured) and is
        not logged above debug level.
    """
    config_path = Path(path) if path is not None else default_config_path()
    data: Dict[str, Any] = {}

    try:
        raw = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("No Ollama config file at %s", config_path)
    except OSError as e:
        logger.warning("Could not read Ollama config %s: %s", config_path, e)
        return None
    else:
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Ollama config %s is not valid JSON: %s", config_path, e)
            return None
        if not isinstance(parsed, dict):
            logger.warning("Ollama config %s must contain a JSON object.", config_path)
            return None
        if not isinstance(parsed.get("port"), int) or isinstance(
            parsed.get("port"), bool
        ):
            logger.warning(
                "Invalid Ollama configuration: missing required fields in %s",
                config_path,
            )
            return None
        data.update(parsed)

    if use_env:
        _load_env_file()
        data.update(_env_overrides())

    if not data:
        return None
    return _validate(data, str(config_path))


def config_from_env() -> Optional[OllamaConfig]:
    """Build a configuration purely from ``OLLAMA_*`` environment variables."""
    _load_env_file()
    overrides = _env_overrides()
    if not overrides:
        return None
    return _validate(overrides, "environment")
