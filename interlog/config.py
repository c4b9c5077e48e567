from __future__ import annotations

import os
from dataclasses import asdict
from typing import Any, Dict, List, Mapping, Optional

from .types import LINE_TAGS, InteractionLogConfig
from .utils import read_json


ENV_PREFIX = "INTERLOG_"
UNLIMITED = ("", "none", "unlimited")


def default_config() -> InteractionLogConfig:
    return InteractionLogConfig()


def _merge_dataclass(default_obj, payload: Dict[str, Any]):
    for key, value in payload.items():
        if hasattr(default_obj, key):
            setattr(default_obj, key, value)
    return default_obj


def load_config(path: str) -> InteractionLogConfig:
    payload = read_json(path)
    if not isinstance(payload, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")
    # accept the camelCase spelling used by host-side option structures
    aliases = {
        "idleThreshold": "idle_threshold",
        "retentionMax": "retention_max",
        "retentionInterval": "retention_interval",
        "tailFollow": "tail_follow",
    }
    normalized = {aliases.get(key, key): value for key, value in payload.items()}
    if isinstance(normalized.get("retention_max"), str):
        normalized["retention_max"] = _parse_retention_max(normalized["retention_max"])
    return _merge_dataclass(default_config(), normalized)


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _parse_list(raw: str) -> List[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def _parse_retention_max(raw: str) -> Optional[int]:
    if raw.strip().lower() in UNLIMITED:
        return None
    return int(raw)


_ENV_PARSERS = {
    "idle_threshold": float,
    "retention_max": _parse_retention_max,
    "retention_interval": float,
    "tail_follow": _parse_bool,
    "initially_visible": _parse_bool,
    "hidden_tags": _parse_list,
    "ignored_commands": _parse_list,
    "ignored_contexts": _parse_list,
    "mask_token": str,
}


def config_from_env(
    base: Optional[InteractionLogConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> InteractionLogConfig:
    """Overlay ``INTERLOG_<FIELD>`` environment variables onto ``base``."""
    config = base if base is not None else default_config()
    env = environ if environ is not None else os.environ
    for name, parser in _ENV_PARSERS.items():
        raw = env.get(ENV_PREFIX + name.upper())
        if raw is None:
            continue
        try:
            setattr(config, name, parser(raw))
        except ValueError as exc:
            raise ValueError(f"Invalid {ENV_PREFIX}{name.upper()}={raw!r}: {exc}") from exc
    return config


def validate_config(config: InteractionLogConfig) -> List[str]:
    errors = []
    if not isinstance(config.idle_threshold, (int, float)) or config.idle_threshold <= 0:
        errors.append(f"idle_threshold must be > 0, got {config.idle_threshold!r}")
    if not isinstance(config.retention_interval, (int, float)) or config.retention_interval <= 0:
        errors.append(f"retention_interval must be > 0, got {config.retention_interval!r}")
    if config.retention_max is not None:
        if isinstance(config.retention_max, bool) or not isinstance(config.retention_max, int):
            errors.append(f"retention_max must be an integer or None, got {config.retention_max!r}")
        elif config.retention_max < 1:
            errors.append(f"retention_max must be >= 1, got {config.retention_max}")
    for tag in config.hidden_tags:
        if tag not in LINE_TAGS:
            errors.append(f"Unknown tag in hidden_tags: {tag}")
    if not config.mask_token:
        errors.append("mask_token must not be empty")
    return errors


def config_to_dict(config: InteractionLogConfig) -> Dict[str, Any]:
    return asdict(config)
