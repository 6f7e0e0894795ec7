"""Bundled package data.

    config/defaults.yaml   lowest configuration layer
    schemas/config.yaml    JSON Schema for the merged configuration
    templates/error.html   Jinja2 error page

Files are located through importlib.resources so they resolve the same way
from a source checkout and from an installed wheel.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """Filesystem path of ``<subpackage>/<filename>`` (or of the subpackage directory)."""
    base = Path(str(resources.files(__name__) / subpackage))
    return base / filename if filename else base


@lru_cache(maxsize=None)
def read_yaml(subpackage: str, filename: str) -> dict[str, Any]:
    """Parsed YAML data file; an empty file reads as ``{}``.

    Results are cached and shared, so callers must not mutate them.
    """
    text = get_data_path(subpackage, filename).read_text(encoding="utf-8")
    return yaml.safe_load(text) or {}


def read_text(subpackage: str, filename: str) -> str:
    return get_data_path(subpackage, filename).read_text(encoding="utf-8")


__all__ = ["get_data_path", "read_yaml", "read_text"]
