from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

# Environment variable names for secrets
ENV_BOT_TOKEN = "CALLOUTBOT_BOT_TOKEN"
ENV_API_TOKEN = "CALLOUTBOT_API_TOKEN"
ENV_SERVICE_SECRET = "CALLOUTBOT_SERVICE_SECRET"

LOCAL_CONFIG_NAME = Path(".calloutbot") / "calloutbot.toml"
HOME_CONFIG_PATH = Path.home() / ".calloutbot" / "calloutbot.toml"

_ENV_OVERRIDES = {
    "bot_token": ENV_BOT_TOKEN,
    "api_token": ENV_API_TOKEN,
    "service_secret": ENV_SERVICE_SECRET,
}


class ConfigError(RuntimeError):
    pass


class BotSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    bot_token: str
    api_token: str
    api_url: str = "http://localhost:3001"
    api_path: str = "/api/1.0/"
    site_url: str = "http://localhost:3000"
    service_secret: str | None = None
    webhook_host: str = "0.0.0.0"
    webhook_port: int | None = None
    content_poll_interval_s: float = Field(default=60.0, gt=0)
    watched_content: list[str] = Field(default_factory=lambda: ["general"])
    callout_list_limit: int = Field(default=10, ge=1)
    strings: dict[str, str] = Field(default_factory=dict)

    @field_validator("bot_token", "api_token")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("expected a non-empty string")
        return value


def _config_candidates() -> list[Path]:
    candidates = [Path.cwd() / LOCAL_CONFIG_NAME, HOME_CONFIG_PATH]
    if candidates[0] == candidates[1]:
        return [candidates[0]]
    return candidates


def _read_config(cfg_path: Path) -> dict:
    try:
        raw = cfg_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"Missing config file {cfg_path}.") from None
    except OSError as e:
        raise ConfigError(f"Failed to read config file {cfg_path}: {e}") from e
    try:
        return tomllib.loads(raw)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed TOML in {cfg_path}: {e}") from None


def load_config(path: str | Path | None = None) -> tuple[dict, Path | None]:
    """Load the raw TOML config.

    A missing default config is not an error; settings may come entirely
    from the environment.
    """
    if path:
        cfg_path = Path(path).expanduser()
        return _read_config(cfg_path), cfg_path

    for candidate in _config_candidates():
        if candidate.is_file():
            return _read_config(candidate), candidate
    return {}, None


def _apply_env(config: dict[str, Any]) -> dict[str, Any]:
    merged = dict(config)
    for key, env_name in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value and value.strip():
            merged[key] = value.strip()
    return merged


def validate_settings_data(config: dict[str, Any], config_path: Path | None) -> BotSettings:
    source = str(config_path) if config_path is not None else "environment"
    try:
        return BotSettings.model_validate(_apply_env(config))
    except ValidationError as e:
        problems = []
        for error in e.errors():
            loc = ".".join(str(part) for part in error["loc"]) or "config"
            problems.append(f"`{loc}`: {error['msg']}")
        hint = ""
        missing = [
            _ENV_OVERRIDES[str(error["loc"][0])]
            for error in e.errors()
            if error["type"] == "missing" and str(error["loc"][0]) in _ENV_OVERRIDES
        ]
        if missing:
            hint = f" Set {', '.join(missing)} or add the keys to the config file."
        raise ConfigError(
            f"Invalid settings in {source}: {'; '.join(problems)}.{hint}"
        ) from None


def load_settings(path: str | Path | None = None) -> BotSettings:
    config, config_path = load_config(path)
    return validate_settings_data(config, config_path)
