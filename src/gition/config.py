"""
Workspace configuration.

Directory resolution order:
    target dir: GITION_TARGET_DIR, else ./data when ./data/docs exists, else cwd
    docs dir:   GITION_DOCS_DIR, else <target>/<docs_dir>
    tasks dir:  GITION_TASKS_DIR, else <target>/<tasks_dir>
    poll:       GITION_POLL_INTERVAL, else poll_interval

``docs_dir``/``tasks_dir`` and the server settings come from
``<target>/.gitionrc/config.yaml`` when present.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Set

import yaml

log = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".gitionrc"
CONFIG_FILE_NAME = "config.yaml"

# config.yaml key → GitionConfig attribute (camelCase keys come from older workspaces)
_KEY_ALIASES = {
    "docsDir": "docs_dir",
    "tasksDir": "tasks_dir",
    "excludeDirs": "exclude_dirs",
    "pollInterval": "poll_interval",
}


@dataclass
class GitionConfig:
    name: str = "Gition Workspace"
    description: str = "Documentation and task management workspace"
    docs_dir: str = "docs"
    tasks_dir: str = "tasks"
    host: str = "127.0.0.1"
    port: int = 3000
    exclude_dirs: Set[str] = field(default_factory=lambda: {".git", "node_modules"})
    poll_interval: float = 5.0

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["exclude_dirs"] = sorted(self.exclude_dirs)
        return d


def config_path(workspace_dir: Path) -> Path:
    return workspace_dir / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def _apply(config: GitionConfig, raw: Dict[str, Any]) -> GitionConfig:
    for key, value in raw.items():
        attr = _KEY_ALIASES.get(key, key)
        if not hasattr(config, attr) or value is None:
            continue
        if attr == "exclude_dirs":
            value = set(value)
        elif attr == "port":
            value = int(value)
        elif attr == "poll_interval":
            value = float(value)
        setattr(config, attr, value)
    return config


def merge_config(base: GitionConfig, raw: Dict[str, Any]) -> GitionConfig:
    """
    Return a copy of ``base`` with the keys of ``raw`` applied.

    Unknown keys and ``None`` values are ignored.

    Raises:
        TypeError, ValueError: when a value cannot be converted
    """
    return _apply(replace(base, exclude_dirs=set(base.exclude_dirs)), raw)


def load_config(workspace_dir: Path) -> GitionConfig:
    """
    Load ``.gitionrc/config.yaml`` over the defaults.

    A missing file gives the defaults. A file that cannot be read or parsed
    is logged and also gives the defaults.
    """
    config = GitionConfig()
    path = config_path(workspace_dir)
    if not path.is_file():
        log.debug("No config at %s, using defaults", path)
        return config

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError):
        log.exception("Failed to load config %s, using defaults", path)
        return config

    if not isinstance(raw, dict):
        log.error("Config %s is not a mapping, using defaults", path)
        return config

    try:
        _apply(config, raw)
    except (TypeError, ValueError):
        log.exception("Invalid value in config %s, using defaults", path)
        return GitionConfig()

    log.info("Configuration loaded from %s", path)
    return config


def save_config(workspace_dir: Path, config: GitionConfig) -> Path:
    """Write ``config`` to ``.gitionrc/config.yaml`` and return the path."""
    path = config_path(workspace_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        yaml.safe_dump(config.to_dict(), sort_keys=False),
        encoding="utf-8",
    )
    return path


def get_target_directory() -> Path:
    target = os.environ.get("GITION_TARGET_DIR", "")
    if target:
        return Path(target)
    cwd = Path.cwd()
    if (cwd / "data" / "docs").is_dir():
        return cwd / "data"
    return cwd


def get_docs_directory(config: Optional[GitionConfig] = None) -> Path:
    override = os.environ.get("GITION_DOCS_DIR", "")
    if override:
        return Path(override)
    config = config or GitionConfig()
    return get_target_directory() / config.docs_dir


def get_tasks_directory(config: Optional[GitionConfig] = None) -> Path:
    override = os.environ.get("GITION_TASKS_DIR", "")
    if override:
        return Path(override)
    config = config or GitionConfig()
    return get_target_directory() / config.tasks_dir


def get_poll_interval(config: Optional[GitionConfig] = None) -> float:
    override = os.environ.get("GITION_POLL_INTERVAL", "")
    if override:
        return float(override)
    config = config or GitionConfig()
    return config.poll_interval
