"""Collect the local static files a rendered page references."""
from __future__ import annotations

import re
from pathlib import Path
from typing import List

from ..models import IncludeKind
from .base import ContentTransformer, TransformContext

ASSET_ATTR_PATTERN = re.compile(r"""\b(?:src|href)\s*=\s*(?:"([^"]*)"|'([^']*)')""", re.IGNORECASE)
EXTERNAL_PREFIXES = ("//", "#", "mailto:", "data:", "javascript:", "tel:")
PAGE_SUFFIXES = (".html", ".htm", ".md", ".markdown")
SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


def asset_references(html: str) -> List[str]:
    """Local, non-page ``src``/``href`` values in document order (query/fragment stripped)."""
    refs: List[str] = []
    for match in ASSET_ATTR_PATTERN.finditer(html):
        value = (match.group(1) if match.group(1) is not None else match.group(2)).strip()
        if not value or value.lower().startswith(EXTERNAL_PREFIXES) or SCHEME_PATTERN.match(value):
            continue
        value = re.split(r"[?#]", value, maxsplit=1)[0]
        if not value or value.endswith("/") or value.lower().endswith(PAGE_SUFFIXES):
            continue
        refs.append(value)
    return refs


class AssetCollector(ContentTransformer):
    """Pipeline stage: record referenced assets that exist; content is unchanged."""

    stage = "assets"

    def transform(self, content: str, context: TransformContext) -> str:
        for ref in asset_references(content):
            kind = IncludeKind.VIRTUAL if ref.startswith("/") else IncludeKind.FILE
            resolved = context.resolver.resolve_path(ref, kind, Path(context.document.path))
            if resolved is not None and context.store.exists(resolved):
                context.record_asset(str(resolved))
        return content


__all__ = ["AssetCollector", "asset_references"]
