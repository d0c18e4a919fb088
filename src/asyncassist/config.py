"""XDG config loading for default retry policies."""

from __future__ import annotations

import math
import os
import sys
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from asyncassist.logging import LOG_LEVELS
from asyncassist.retry import DEFAULT_POLICY, UNBOUNDED, WAIT_FOR_POLICY, RetryPolicy

DEFAULT_CONFIG_PATH = Path("~/.config/asyncassist/config.toml").expanduser()
DEFAULT_LOG_LEVEL = "INFO"
LOG_LEVEL_ENV = "ASYNCASSIST_LOG_LEVEL"

_UNBOUNDED_WORDS = {"inf", "infinity", "unbounded", "forever"}
_POLICY_FIELDS = ("retries", "delay_ms", "timeout_ms")


class AsyncAssistConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    retry: RetryPolicy = Field(default_factory=lambda: DEFAULT_POLICY)
    wait_for: RetryPolicy = Field(default_factory=lambda: WAIT_FOR_POLICY)
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: str = ""

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {value}")
        return normalized


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _coerce_retries(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _UNBOUNDED_WORDS:
            return UNBOUNDED
        try:
            value = float(text)
        except ValueError:
            return None
    if isinstance(value, (int, float)) and not math.isnan(value):
        return value
    return None


def _coerce_ms(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or math.isinf(value) or value < 0:
        return None
    return value


def _normalize_policy(value: object, defaults: RetryPolicy) -> RetryPolicy:
    if not isinstance(value, dict):
        return defaults

    fields = defaults.model_dump()
    retries = _coerce_retries(value.get("retries", defaults.retries))
    if retries is not None:
        fields["retries"] = retries
    for name in _POLICY_FIELDS[1:]:
        parsed = _coerce_ms(value.get(name, fields[name]))
        if parsed is not None:
            fields[name] = parsed

    try:
        return RetryPolicy(**fields)
    except ValidationError:
        return defaults


def _sanitize(raw: dict[str, object]) -> AsyncAssistConfig:
    cfg = AsyncAssistConfig()
    cfg.retry = _normalize_policy(raw.get("retry"), DEFAULT_POLICY)
    cfg.wait_for = _normalize_policy(raw.get("wait_for"), WAIT_FOR_POLICY)

    log_level = raw.get("log_level", cfg.log_level)
    if isinstance(log_level, str) and log_level.strip().upper() in LOG_LEVELS:
        cfg.log_level = log_level

    log_file = raw.get("log_file", cfg.log_file)
    if isinstance(log_file, str):
        cfg.log_file = log_file.strip()

    env_level = os.getenv(LOG_LEVEL_ENV, "").strip()
    if env_level.upper() in LOG_LEVELS:
        cfg.log_level = env_level

    return cfg


def load_config(path: str | Path | None = None) -> AsyncAssistConfig:
    resolved = get_config_path(path)
    raw: object = {}
    if resolved.exists():
        try:
            with resolved.open("rb") as handle:
                raw = tomllib.load(handle)
        except (tomllib.TOMLDecodeError, OSError):
            raw = {}
    if not isinstance(raw, dict):
        raw = {}
    return _sanitize(raw)
