"""Configuration loading for the task service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class AppConfig:
    tasks_root: Path
    service_token: str | None
    strict_writes: bool
    log_level: int
    host: str = "127.0.0.1"
    port: int = 18180


def _read_dotenv_value(dotenv_path: Path, key: str) -> str | None:
    """Read a single key from a .env file without mutating the environment."""
    if not dotenv_path.is_file():
        return None
    try:
        content = dotenv_path.read_text(encoding="utf-8")
    except OSError:
        return None

    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped.startswith("export "):
            stripped = stripped[len("export ") :].strip()
        if "=" not in stripped:
            continue
        name, value = stripped.split("=", 1)
        name = name.strip()
        if name != key:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        return value or None
    return None


def _read_setting(dotenv_path: Path, key: str) -> str | None:
    raw_value = os.environ.get(key)
    if raw_value is None:
        raw_value = _read_dotenv_value(dotenv_path, key)
    return raw_value


def _read_bool(raw_value: str | None, *, default: bool, key: str) -> bool:
    if raw_value is None:
        return default
    normalized = raw_value.strip().lower()
    if not normalized:
        return default
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"{key} must be a boolean value.")


def _read_log_level(raw_value: str | None, *, key: str) -> int:
    if raw_value is None or not raw_value.strip():
        return logging.INFO
    level = logging.getLevelName(raw_value.strip().upper())
    if not isinstance(level, int):
        raise ConfigError(f"{key} must be a logging level name.")
    return level


def _read_port(raw_value: str | None, *, default: int, key: str) -> int:
    if raw_value is None or not raw_value.strip():
        return default
    try:
        port = int(raw_value.strip())
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer.") from exc
    if not 0 < port < 65536:
        raise ConfigError(f"{key} must be between 1 and 65535.")
    return port


def load_config() -> AppConfig:
    """Load required configuration from the environment."""
    dotenv_path = Path.cwd() / ".env"

    root_key = "TASKLINE_ROOT"
    raw_root = (_read_setting(dotenv_path, root_key) or "").strip()
    if not raw_root:
        raise ConfigError("TASKLINE_ROOT is required; set it to the task documents root.")

    service_token = _read_setting(dotenv_path, "TASKLINE_SERVICE_TOKEN")
    service_token = service_token.strip() if isinstance(service_token, str) else None
    if not service_token:
        service_token = None

    strict_key = "TASKLINE_STRICT_WRITES"
    strict_writes = _read_bool(
        _read_setting(dotenv_path, strict_key), default=False, key=strict_key
    )

    log_key = "TASKLINE_LOG_LEVEL"
    log_level = _read_log_level(_read_setting(dotenv_path, log_key), key=log_key)

    host = (_read_setting(dotenv_path, "TASKLINE_HOST") or "").strip() or "127.0.0.1"
    port_key = "TASKLINE_PORT"
    port = _read_port(_read_setting(dotenv_path, port_key), default=18180, key=port_key)

    return AppConfig(
        tasks_root=Path(raw_root).expanduser().resolve(),
        service_token=service_token,
        strict_writes=strict_writes,
        log_level=log_level,
        host=host,
        port=port,
    )
