"""
dompile configuration management (YAML layers, env overrides, schema check).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from dompile.core.exceptions import ConfigError
from dompile.core.schemas import SchemaValidationError, validate_payload
from dompile.core.utils.io import read_yaml
from dompile.core.utils.merge import deep_merge
from dompile.data import read_yaml as read_data_yaml

from .render import RenderConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG_NAMES = ("dompile.config.yaml", "dompile.config.yml")
ENV_PREFIX = "DOMPILE_"
CONFIG_SCHEMA = "config"


class ConfigManager:
    """Load, merge, and validate dompile configuration.

    Configuration sources (highest to lowest priority):
    1. Explicit overrides passed to ``load()`` (CLI flags)
    2. Environment variables: DOMPILE_*
    3. Project config: <project-root>/dompile.config.yaml (or .yml)
    4. Bundled defaults: dompile.data/config/defaults.yaml
    """

    def __init__(self, project_root: Path, *, environ: Optional[Mapping[str, str]] = None) -> None:
        self.project_root = Path(project_root).resolve()
        self._environ = environ if environ is not None else os.environ

    @property
    def project_config_path(self) -> Optional[Path]:
        for name in PROJECT_CONFIG_NAMES:
            candidate = self.project_root / name
            if candidate.is_file():
                return candidate
        return None

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        # Fail closed: configuration must never silently ignore invalid YAML.
        try:
            data = read_yaml(path, default={}, raise_on_error=True)
        except Exception as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}", context={"path": str(path)}) from exc
        if not isinstance(data, dict):
            raise ConfigError(
                f"Config file {path} must contain a mapping, got {type(data).__name__}",
                context={"path": str(path)},
            )
        return data

    # ---- environment overrides ------------------------------------------

    def _coerce_type(self, value: str) -> Any:
        s = value.strip()
        low = s.lower()
        if low in {"true", "false"}:
            return low == "true"
        if low in {"null", "none"}:
            return None
        if re.fullmatch(r"[-+]?\d+", s):
            return int(s)
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except json.JSONDecodeError:
                return s
        return s

    def _iter_env_overrides(self) -> Iterator[Tuple[List[str], Any]]:
        for key in sorted(self._environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX):]
            segments = [seg.lower() for seg in raw.split("__")]
            if not raw or any(seg == "" for seg in segments):
                logger.warning("Ignoring malformed config override %s", key)
                continue
            yield segments, self._coerce_type(self._environ[key])

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> Dict[str, Any]:
        result = dict(cfg)
        for path, value in self._iter_env_overrides():
            nested: Dict[str, Any] = {path[-1]: value}
            for segment in reversed(path[:-1]):
                nested = {segment: nested}
            result = deep_merge(result, nested)
        return result

    # ---- loading ----------------------------------------------------------

    def load_dict(self, overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Return the merged, validated configuration mapping."""
        cfg: Dict[str, Any] = dict(read_data_yaml("config", "defaults.yaml"))

        project_path = self.project_config_path
        if project_path is not None:
            logger.debug("Loading project config %s", project_path)
            cfg = deep_merge(cfg, self.load_yaml(project_path))

        cfg = self.apply_env_overrides(cfg)
        if overrides:
            cfg = deep_merge(cfg, dict(overrides))

        try:
            validate_payload(cfg, CONFIG_SCHEMA)
        except SchemaValidationError as exc:
            raise ConfigError(str(exc), context={"project_root": str(self.project_root)}) from exc
        return cfg

    def load(self, overrides: Optional[Mapping[str, Any]] = None) -> RenderConfig:
        """Return the typed render configuration for this project."""
        return RenderConfig.from_dict(self.project_root, self.load_dict(overrides))


def load_render_config(
    project_root: Path,
    overrides: Optional[Mapping[str, Any]] = None,
) -> RenderConfig:
    """Convenience wrapper: ``ConfigManager(project_root).load(overrides)``."""
    return ConfigManager(project_root).load(overrides)


def find_project_root(start: Path) -> Path:
    """Walk up from ``start`` to the nearest directory holding a dompile config.

    Without a config file, the parent of the closest enclosing ``src``
    directory is used, and failing that ``start`` itself (or its parent for
    files).
    """
    start = Path(start).resolve()
    base = start if start.is_dir() else start.parent
    candidates = [base, *base.parents]
    for parent in candidates:
        if any((parent / name).is_file() for name in PROJECT_CONFIG_NAMES):
            return parent
    for parent in candidates:
        if parent.name == "src":
            return parent.parent
    return base


__all__ = ["ConfigManager", "load_render_config", "find_project_root"]
