"""Orchestrator configuration (v1).

Goal: make the tunables of the adaptive layer explicit and portable
(services, batch jobs, CI) instead of constants buried in code.

This module intentionally stays *small* and strict:
  - JSON only
  - explicit schema id
  - unknown keys are rejected
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from smartcomp.errors import ConfigError
from smartcomp.record import FALLBACK_IDS

CONFIG_ID_V1 = "smartcomp.config.v1"

DEFAULT_RATIO_THRESHOLD = 1.1


@dataclass(frozen=True)
class OrchestratorConfig:
    """Tunables of the adaptive layer.

    ratio_threshold: below this ratio the fallback is tried as well and kept
    when smaller. 1.1 matches the historical behaviour; the cutoff itself is
    a heuristic.
    """

    ratio_threshold: float = DEFAULT_RATIO_THRESHOLD
    window_size: int = 4096
    lookahead_size: int = 18
    fallback_codec: str = "gzip"
    fallback_level: int = 9

    def __post_init__(self) -> None:
        if self.ratio_threshold < 0:
            raise ConfigError(f"config: ratio_threshold must be >= 0, got {self.ratio_threshold}")
        if self.window_size < 1:
            raise ConfigError(f"config: window_size must be >= 1, got {self.window_size}")
        if self.lookahead_size < 3:
            raise ConfigError(f"config: lookahead_size must be >= 3, got {self.lookahead_size}")
        if self.fallback_codec not in FALLBACK_IDS:
            raise ConfigError(
                f"config: fallback_codec must be one of {', '.join(FALLBACK_IDS)}, "
                f"got {self.fallback_codec!r}"
            )
        max_level = 22 if self.fallback_codec == "zstd" else 9
        if not (0 <= self.fallback_level <= max_level):
            raise ConfigError(
                f"config: fallback_level must be 0..{max_level} for {self.fallback_codec}, "
                f"got {self.fallback_level}"
            )


def _load_json_arg(config_arg: str) -> dict[str, Any]:
    s = config_arg.strip()
    if not s:
        raise ConfigError("config: empty argument")

    if s.startswith("@"):
        p = Path(s[1:]).expanduser()
        if not p.exists() or not p.is_file():
            raise ConfigError(f"config: file not found: {p}")
        raw = p.read_text(encoding="utf-8")
        try:
            obj = json.loads(raw)
        except Exception as e:
            raise ConfigError(f"config: invalid JSON in {p}: {e}") from e
        if not isinstance(obj, dict):
            raise ConfigError(f"config: JSON in {p} must be an object")
        return obj

    try:
        obj = json.loads(s)
    except Exception as e:
        raise ConfigError(f"config: invalid inline JSON: {e}") from e
    if not isinstance(obj, dict):
        raise ConfigError("config: inline JSON must be an object")
    return obj


def _optional_number(obj: dict[str, Any], key: str) -> float | None:
    if key not in obj:
        return None
    v = obj.get(key)
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise ConfigError(f"config: field '{key}' must be a number")
    return float(v)


def _optional_int(obj: dict[str, Any], key: str) -> int | None:
    if key not in obj:
        return None
    v = obj.get(key)
    if isinstance(v, bool) or not isinstance(v, int):
        raise ConfigError(f"config: field '{key}' must be an integer")
    return v


def _optional_str(obj: dict[str, Any], key: str) -> str | None:
    if key not in obj:
        return None
    v = obj.get(key)
    if not isinstance(v, str) or not v.strip():
        raise ConfigError(f"config: field '{key}' must be a string")
    return v.strip()


def load_config(config_arg: str) -> OrchestratorConfig:
    """Load and validate an orchestrator config.

    config_arg:
      - '@file.json'
      - inline JSON object
    """
    obj = _load_json_arg(config_arg)

    allowed = {
        "spec",
        "ratio_threshold",
        "window_size",
        "lookahead_size",
        "fallback_codec",
        "fallback_level",
    }
    extra = sorted(set(obj.keys()) - allowed)
    if extra:
        raise ConfigError(f"config: unsupported keys: {', '.join(extra)}")

    spec_id = obj.get("spec")
    if spec_id != CONFIG_ID_V1:
        raise ConfigError(f"config: unsupported spec: {spec_id!r} (expected {CONFIG_ID_V1!r})")

    kwargs: dict[str, Any] = {}
    threshold = _optional_number(obj, "ratio_threshold")
    if threshold is not None:
        kwargs["ratio_threshold"] = threshold
    for key in ("window_size", "lookahead_size", "fallback_level"):
        v = _optional_int(obj, key)
        if v is not None:
            kwargs[key] = v
    fallback = _optional_str(obj, "fallback_codec")
    if fallback is not None:
        kwargs["fallback_codec"] = fallback

    return OrchestratorConfig(**kwargs)
