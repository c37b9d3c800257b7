"""Configuration loading and validation."""

import os
import sys
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Mapping, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigError
from .levels import Level, LevelTable

DEFAULT_CONFIG_FILE = "config.yml"
DEFAULT_NOT_AN_ADMIN = "Sorry, only admins can give XP."
ENV_PREFIX = "XPBOT_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Config:
    """Bot configuration. Built once at startup, read-only afterwards."""
    api_id: int
    api_hash: str
    bot_token: str
    redis_url: str
    levels: LevelTable
    admins: FrozenSet[str] = frozenset()
    not_an_admin: str = DEFAULT_NOT_AN_ADMIN
    redis_prefix: str = "XPBOT_"
    store_timeout: float = 3.0
    ranks_count: int = 10
    rate_limit: int = 0
    track_private_chats: bool = True
    log_level: str = "INFO"
    session_name: str = "xp_bot"

    def is_admin(self, username: Optional[str]) -> bool:
        return username is not None and username in self.admins


def _pick(key: str, file_data: Mapping[str, Any], env: Mapping[str, str]) -> Any:
    """Environment wins over the config file.

    `XPBOT_`-prefixed names (e.g. XPBOT_REDIS_URL) are accepted as a fallback
    for the plain ones.
    """
    for name in (key.upper(), ENV_PREFIX + key.upper()):
        value = env.get(name)
        if value not in (None, ""):
            return value
    return file_data.get(key)


def _as_int(key: str, value: Any, default: int) -> int:
    if value in (None, ""):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key.upper()} must be an integer, got {value!r}")


def _as_float(key: str, value: Any, default: float) -> float:
    if value in (None, ""):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key.upper()} must be a number, got {value!r}")


def _as_bool(key: str, value: Any, default: bool) -> bool:
    if value in (None, ""):
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"{key.upper()} must be a boolean, got {value!r}")


def parse_config(file_data: Mapping[str, Any], env: Mapping[str, str]) -> Config:
    """Validate raw settings and build a Config.

    Raises:
        ConfigError: if a required value is missing or malformed
    """
    api_id = _pick("api_id", file_data, env)
    api_hash = _pick("api_hash", file_data, env)
    bot_token = _pick("bot_token", file_data, env)
    redis_url = _pick("redis_url", file_data, env)

    missing = []
    if not api_id:
        missing.append("API_ID")
    if not api_hash:
        missing.append("API_HASH")
    if not bot_token:
        missing.append("BOT_TOKEN")
    if not redis_url:
        missing.append("REDIS_URL")
    if missing:
        raise ConfigError(f"Missing required settings: {', '.join(missing)}")

    raw_levels = file_data.get("levels") or []
    if not isinstance(raw_levels, list):
        raise ConfigError("levels must be a list")
    if not raw_levels:
        raise ConfigError("No XP levels defined")
    levels = LevelTable([Level.from_dict(entry) for entry in raw_levels])

    admins = file_data.get("admins") or []
    if isinstance(admins, str):
        admins = [admins]
    # Usernames are stored without the mention prefix
    admin_set = frozenset(str(a).lstrip("@") for a in admins)

    ranks_count = _as_int("ranks_count", _pick("ranks_count", file_data, env), 10)
    if ranks_count < 1:
        raise ConfigError("RANKS_COUNT must be at least 1")

    store_timeout = _as_float("store_timeout", _pick("store_timeout", file_data, env), 3.0)
    if store_timeout <= 0:
        raise ConfigError("STORE_TIMEOUT must be positive")

    return Config(
        api_id=_as_int("api_id", api_id, 0),
        api_hash=str(api_hash),
        bot_token=str(bot_token),
        redis_url=str(redis_url),
        levels=levels,
        admins=admin_set,
        not_an_admin=str(file_data.get("not_an_admin") or DEFAULT_NOT_AN_ADMIN),
        redis_prefix=str(_pick("redis_prefix", file_data, env) or "XPBOT_"),
        store_timeout=store_timeout,
        ranks_count=ranks_count,
        rate_limit=_as_int("rate_limit", _pick("rate_limit", file_data, env), 0),
        track_private_chats=_as_bool(
            "track_private_chats", _pick("track_private_chats", file_data, env), True
        ),
        log_level=str(_pick("log_level", file_data, env) or "INFO").upper(),
        session_name=str(_pick("session_name", file_data, env) or "xp_bot"),
    )


def read_config_file(path: str) -> Dict[str, Any]:
    """Read the YAML config file. A missing file is a config error."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigError(f"Config file not found: {path}")
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid config file {path}: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def load_config(path: Optional[str] = None) -> Config:
    """Load and validate configuration from .env, environment and the YAML file.

    Exits the process on any configuration error.
    """
    load_dotenv()
    path = path or os.getenv("CONFIG_FILE", DEFAULT_CONFIG_FILE)

    try:
        return parse_config(read_config_file(path), os.environ)
    except ConfigError as e:
        sys.stderr.write(f"Invalid config: {e}\n")
        sys.exit(1)
