"""Backing store capability.

The engine never touches the filesystem directly; it asks a BackingStore
whether a file exists and for its text. Hosts can layer unsaved editor
buffers over the disk with :class:`OverlayStore`.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol

from dompile.core.exceptions import BackingStoreError

from .models import normalize_path

logger = logging.getLogger(__name__)


class BackingStore(Protocol):
    """Read-only file access used by the render pipeline."""

    def exists(self, path: Path) -> bool:
        """True when ``path`` is a readable regular file (directories are not)."""
        ...

    def read_text(self, path: Path) -> str:
        """Return the file text or raise :class:`BackingStoreError`."""
        ...


class FileSystemStore:
    """BackingStore over the local filesystem (UTF-8)."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def exists(self, path: Path) -> bool:
        try:
            return Path(path).is_file()
        except OSError:
            return False

    def read_text(self, path: Path) -> str:
        # newline="" keeps CRLF intact; rendered output preserves text byte for byte
        try:
            with open(path, "r", encoding=self.encoding, newline="") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise BackingStoreError(f"Cannot read {path}: {exc}", path=str(path)) from exc


class OverlayStore:
    """BackingStore that serves in-memory texts before falling back to ``base``."""

    def __init__(self, base: Optional[BackingStore] = None, overlays: Optional[Mapping[Path | str, str]] = None) -> None:
        self.base: BackingStore = base if base is not None else FileSystemStore()
        self._overlays: Dict[Path, str] = {}
        for path, text in (overlays or {}).items():
            self.set(path, text)

    def set(self, path: Path | str, text: str) -> None:
        self._overlays[normalize_path(path)] = text

    def discard(self, path: Path | str) -> None:
        self._overlays.pop(normalize_path(path), None)

    def exists(self, path: Path) -> bool:
        return normalize_path(path) in self._overlays or self.base.exists(path)

    def read_text(self, path: Path) -> str:
        key = normalize_path(path)
        if key in self._overlays:
            logger.debug("Serving %s from overlay", key)
            return self._overlays[key]
        return self.base.read_text(path)


__all__ = ["BackingStore", "FileSystemStore", "OverlayStore"]
