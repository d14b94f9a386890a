from __future__ import annotations

import json
import logging
import os
import stat
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from .endpoints import DEFAULT_BASE_URL
from .errors import OperationalError

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".voluum-cli"
CONFIG_FILE_NAME = "config.json"

ENV_HOME = "VOLUUM_CLI_HOME"
ENV_BASE_URL = "VOLUUM_BASE_URL"
ENV_TOKEN = "VOLUUM_TOKEN"

_FILE_KEYS = {
    "base_url": "baseUrl",
    "token": "token",
    "token_created_at": "tokenCreatedAt",
    "token_expires_at": "tokenExpiresAt",
    "last_login_email": "lastLoginEmail",
}
_TOKEN_FIELDS = ("token", "token_created_at", "token_expires_at")


def clean_string(value: Any) -> str | None:
    """Return ``value`` trimmed, or ``None`` for non-strings and blank strings."""

    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def get_config_dir() -> Path:
    override = clean_string(os.getenv(ENV_HOME))
    if override:
        return Path(override).expanduser()
    return Path.home() / CONFIG_DIR_NAME


def get_config_path() -> Path:
    return get_config_dir() / CONFIG_FILE_NAME


def _secure_path(path: Path) -> None:
    if not path.exists():
        return

    try:
        if os.name == "nt":
            os.chmod(path, stat.S_IREAD | stat.S_IWRITE)
        else:
            path.chmod(0o600)
    except PermissionError as exc:
        logger.warning("Unable to enforce secure permissions for %s: %s", path, exc)


def _ensure_secure_permissions(path: Path) -> None:
    if not path.exists() or os.name == "nt":
        return

    mode = stat.S_IMODE(path.stat().st_mode)
    if mode & (stat.S_IRWXG | stat.S_IRWXO):
        logger.warning("Config file %s is group/world-accessible; resetting to 0o600.", path)
        _secure_path(path)


@dataclass
class SessionConfig:
    base_url: str | None = None
    token: str | None = None
    token_created_at: str | None = None
    token_expires_at: str | None = None
    last_login_email: str | None = None

    @classmethod
    def from_dict(cls, raw: Any) -> SessionConfig:
        if not isinstance(raw, dict):
            return cls()
        return cls(**{attr: clean_string(raw.get(key)) for attr, key in _FILE_KEYS.items()})

    def to_dict(self) -> dict[str, str]:
        """Serialize only non-empty string fields using the on-disk key names."""

        payload: dict[str, str] = {}
        for attr, key in _FILE_KEYS.items():
            value = clean_string(getattr(self, attr))
            if value:
                payload[key] = value
        return payload

    def is_empty(self) -> bool:
        return not self.to_dict()

    def without_token(self) -> SessionConfig:
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        for name in _TOKEN_FIELDS:
            values[name] = None
        return SessionConfig(**values)


class ConfigStore:
    """File-backed storage for the per-user session config."""

    def __init__(self, path: str | os.PathLike[str] | None = None) -> None:
        self.path = Path(path) if path else get_config_path()

    def load(self) -> SessionConfig:
        if not self.path.exists():
            return SessionConfig()
        _ensure_secure_permissions(self.path)
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                raw = json.load(handle)
        except (OSError, ValueError) as exc:
            raise OperationalError(f"Failed to read config at {self.path}: {exc}") from exc
        return SessionConfig.from_dict(raw)

    def save(self, cfg: SessionConfig) -> None:
        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        with tmp.open("w", encoding="utf-8") as handle:
            json.dump(cfg.to_dict(), handle, indent=2)
            handle.write("\n")
        _secure_path(tmp)
        tmp.replace(self.path)
        _secure_path(self.path)

    def delete(self) -> None:
        if self.path.exists():
            self.path.unlink()

    def clear_token(self) -> SessionConfig:
        """Drop stored token fields, removing the file when nothing else remains."""

        remaining = self.load().without_token()
        if remaining.is_empty():
            self.delete()
        else:
            self.save(remaining)
        return remaining


@dataclass
class RuntimeConfig:
    base_url: str
    token: str | None
    file_config: SessionConfig = field(default_factory=SessionConfig)
    env_base_url: str | None = None
    env_token: str | None = None


def resolve_runtime_config(
    *,
    base_url: str | None = None,
    token: str | None = None,
    store: ConfigStore | None = None,
) -> RuntimeConfig:
    """Merge explicit overrides, environment variables and the stored session.

    Precedence is explicit override > environment variable > config file, with
    :data:`DEFAULT_BASE_URL` as the last resort for the base URL.
    """

    file_config = (store or ConfigStore()).load()
    env_base_url = clean_string(os.getenv(ENV_BASE_URL))
    env_token = clean_string(os.getenv(ENV_TOKEN))

    resolved_base_url = (
        clean_string(base_url) or env_base_url or file_config.base_url or DEFAULT_BASE_URL
    )
    resolved_token = clean_string(token) or env_token or file_config.token
    return RuntimeConfig(
        base_url=resolved_base_url,
        token=resolved_token,
        file_config=file_config,
        env_base_url=env_base_url,
        env_token=env_token,
    )


__all__ = [
    "ConfigStore",
    "RuntimeConfig",
    "SessionConfig",
    "clean_string",
    "get_config_dir",
    "get_config_path",
    "resolve_runtime_config",
]
