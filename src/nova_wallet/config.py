"""Configuration system for the Nova wallet client.

Loads optional client settings from ``config.yaml`` in the config
directory, supports environment variable expansion, and locates the
encrypted identity store next to it.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

import typer
import yaml
from pydantic import BaseModel, Field, field_validator

from nova_wallet.endpoints import list_network_names

CONFIG_ENV_VAR = "NOVA_CONFIG"
CONFIG_FILENAME = "config.yaml"
STORE_FILENAME = "identity.enc"
DEFAULT_NETWORK = "testnet"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


# ---------------------------------------------------------------------------
# Environment-variable expansion helper
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with their environment values.

    If the variable is not set the placeholder is left as-is so that
    validation can catch it later.
    """

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        return os.environ.get(var_name, match.group(0))

    return _ENV_VAR_RE.sub(_replace, value)


def _expand_env_recursive(obj: object) -> object:
    """Walk an arbitrary nested structure and expand env vars in strings."""
    if isinstance(obj, str):
        return _expand_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _expand_env_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# Pydantic v2 models
# ---------------------------------------------------------------------------


class EndpointOverride(BaseModel):
    """Replacement base URLs for one network (e.g. a staging deployment)."""

    auth: Optional[str] = None
    accounts: Optional[str] = None
    address: Optional[str] = None


class ClientConfig(BaseModel):
    """Root client configuration."""

    default_network: str = DEFAULT_NETWORK
    log_level: str = "WARNING"
    endpoints: dict[str, EndpointOverride] = Field(default_factory=dict)

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"must be one of {list(LOG_LEVELS)}")
        return level

    @field_validator("default_network")
    @classmethod
    def _known_network(cls, value: str) -> str:
        if value not in list_network_names():
            raise ValueError(f"must be one of {list_network_names()}")
        return value

    @field_validator("endpoints")
    @classmethod
    def _known_endpoint_networks(cls, value: dict[str, EndpointOverride]) -> dict[str, EndpointOverride]:
        unknown = sorted(set(value) - set(list_network_names()))
        if unknown:
            raise ValueError(f"unknown networks {unknown}")
        return value


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def get_config_dir(*, create: bool = True) -> Path:
    """Return the config directory.

    ``$NOVA_CONFIG`` wins; otherwise the platform application directory for
    ``nova``.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    config_dir = Path(override) if override else Path(typer.get_app_dir("nova"))
    if create:
        config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def load_config(path: Path) -> ClientConfig:
    """Load and validate client settings from a YAML file.

    A missing file yields the defaults. Environment variable placeholders
    (``${VAR}``) are expanded before validation.
    """
    if not path.exists():
        return ClientConfig()
    raw_text = path.read_text(encoding="utf-8")
    raw_data = yaml.safe_load(raw_text) or {}
    expanded = _expand_env_recursive(raw_data)
    return ClientConfig.model_validate(expanded)


def save_config(config: ClientConfig, path: Path) -> None:
    """Serialize a :class:`ClientConfig` to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="python", exclude_none=True)
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False, sort_keys=False)
