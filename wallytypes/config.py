"""Configuration loading for wallytypes (.wallytypes.yml)."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .constants import CONFIG_FILENAME, DEFAULT_MAX_DEPTH, DEFAULT_THUNK_MARKER
from .errors import ConfigError


@dataclass
class WallyTypesConfig:
    """Represents the settings defined in .wallytypes.yml."""

    root: Path
    sourcemap: Optional[Path] = None
    mount_path: Optional[List[str]] = None
    max_depth: int = DEFAULT_MAX_DEPTH
    workers: Optional[int] = None
    thunk_marker: Optional[str] = DEFAULT_THUNK_MARKER
    exclude: List[str] = field(default_factory=list)


def load_config(config_path: Path) -> WallyTypesConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return WallyTypesConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    sourcemap_str = _as_str(data.get("sourcemap"))
    sourcemap = root / sourcemap_str if sourcemap_str else None

    max_depth = _as_int(data.get("max_depth"))
    if max_depth is not None and max_depth < 0:
        raise ConfigError("max_depth must not be negative")

    workers = _as_int(data.get("workers"))
    if workers is not None and workers < 1:
        raise ConfigError("workers must be at least 1")

    marker = DEFAULT_THUNK_MARKER
    if "thunk_marker" in data:
        marker = _as_str(data.get("thunk_marker"))
        if marker:
            try:
                re.compile(marker)
            except re.error as exc:
                raise ConfigError(f"thunk_marker is not a valid pattern: {exc}") from exc

    return WallyTypesConfig(
        root=root,
        sourcemap=sourcemap,
        mount_path=_as_segments(data.get("mount_path")),
        max_depth=max_depth if max_depth is not None else DEFAULT_MAX_DEPTH,
        workers=workers,
        thunk_marker=marker or None,
        exclude=_as_str_list(data.get("exclude")),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = Path(config_path).expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


def _as_segments(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return [segment for segment in value.split(".") if segment]
    return _as_str_list(value)


__all__ = ["WallyTypesConfig", "load_config"]
