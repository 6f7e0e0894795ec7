"""Merging of configuration layers.

Each layer (bundled defaults, project file, environment, overrides) is a
plain mapping; later layers win. Mappings merge key by key, lists are
replaced unless the overriding list opts into appending:

    markdown:
      extensions: ["+", "admonition"]   # keep the defaults, add one
"""
from __future__ import annotations

from typing import Any, Dict, List

APPEND_MARKER = "+"
REPLACE_MARKER = "="


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return ``base`` with ``override`` layered on top; neither input is modified.

    >>> deep_merge({"source": "src", "markdown": {"processor": "markdown"}},
    ...            {"markdown": {"default_layout": "page.html"}})
    {'source': 'src', 'markdown': {'processor': 'markdown', 'default_layout': 'page.html'}}
    """
    merged: Dict[str, Any] = dict(base)
    for key, value in (override or {}).items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            merged[key] = merge_arrays(current, value)
        else:
            merged[key] = value
    return merged


def merge_arrays(base: List[Any], override: List[Any]) -> List[Any]:
    """Combine two list layers.

    A leading ``"+"`` appends the remaining items to ``base``, a leading
    ``"="`` (or no marker) replaces it. An empty override keeps ``base``.
    """
    if not override:
        return base
    marker, rest = override[0], override[1:]
    if marker == APPEND_MARKER:
        return [*base, *rest]
    if marker == REPLACE_MARKER:
        return list(rest)
    return list(override)


__all__ = ["deep_merge", "merge_arrays"]
