"""Service configuration from files, environment and defaults."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

import yaml

from .errors import CommonError, ErrorCode

VERSION = "dev"

ENV_PREFIX = "CLASHSUB"
DEFAULT_SEARCH_PATHS = (".", "./config", "/etc/clashsub/")
CONFIG_NAMES = ("config", "clashsub")
CONFIG_EXTS = ("yaml", "yml", "json")


@dataclass
class Config:
    """Settings of the conversion service."""

    address: str = "0.0.0.0:8011"
    meta_template: str = "template_meta.yaml"
    clash_template: str = "template_clash.yaml"
    request_retry_times: int = 3
    request_max_file_size: int = 1024 * 1024
    cache_expire: int = 60 * 5
    log_level: str = "info"
    short_link_length: int = 6


def _read_file(path: Path, ext: str) -> Optional[Dict[str, Any]]:
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text) if ext == "json" else yaml.safe_load(text)
    except (OSError, ValueError, yaml.YAMLError):
        return None
    if data is None:
        return {}
    if not isinstance(data, dict):
        return None
    return {str(k).lower(): v for k, v in data.items()}


def _find_config(search_paths: Iterable[os.PathLike]) -> Dict[str, Any]:
    paths = list(search_paths)
    for name in CONFIG_NAMES:
        for directory in paths:
            for ext in CONFIG_EXTS:
                candidate = Path(directory) / f"{name}.{ext}"
                if candidate.is_file():
                    data = _read_file(candidate, ext)
                    if data is not None:
                        return data
    return {}


def _as_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        if value == "":
            return 0
        try:
            return int(value, 0)
        except ValueError:
            try:
                return int(value)
            except ValueError:
                pass
    raise CommonError(ErrorCode.CONFIG_INVALID, f"invalid integer for {name}: {value!r}")


def _as_str(name: str, value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise CommonError(ErrorCode.CONFIG_INVALID, f"invalid string for {name}: {value!r}")


def load_config(
    search_paths: Optional[Iterable[os.PathLike]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Config:
    """Build the configuration; environment variables win over the file."""
    env = os.environ if environ is None else environ
    values = _find_config(DEFAULT_SEARCH_PATHS if search_paths is None else search_paths)

    for field in fields(Config):
        env_value = env.get(f"{ENV_PREFIX}_{field.name.upper()}")
        if env_value:
            values[field.name] = env_value

    kwargs: Dict[str, Any] = {}
    for field in fields(Config):
        value = values.get(field.name)
        if value is None:
            continue
        if isinstance(field.default, int):
            kwargs[field.name] = _as_int(field.name, value)
        else:
            kwargs[field.name] = _as_str(field.name, value)
    return Config(**kwargs)