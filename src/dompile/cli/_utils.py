"""Shared helpers for dompile CLI commands."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Mapping, Optional

from dompile.core.composition import RenderPipeline
from dompile.core.composition.transformers.markdown import MARKDOWN_SUFFIXES
from dompile.core.config import find_project_root, load_render_config
from dompile.core.utils.logging_setup import configure_stdlib_logging, suppress_lastresort_in_json_mode

DOCUMENT_SUFFIXES = (".html", ".htm") + MARKDOWN_SUFFIXES


def get_project_root(args: argparse.Namespace, document: Optional[Path] = None) -> Path:
    """Return ``--project-root`` when given, otherwise detect it from ``document`` (or the cwd)."""
    explicit = getattr(args, "project_root", None)
    if explicit:
        return Path(explicit).resolve()
    return find_project_root(document if document is not None else Path.cwd())


def setup_logging(args: argparse.Namespace) -> None:
    """Configure stderr logging from ``--verbose`` and keep ``--json`` output clean."""
    verbosity = int(getattr(args, "verbose", 0) or 0)
    if verbosity:
        configure_stdlib_logging(level="DEBUG" if verbosity > 1 else "INFO")
    elif getattr(args, "json", False):
        suppress_lastresort_in_json_mode()


def build_pipeline(
    args: argparse.Namespace,
    document: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> RenderPipeline:
    """Load the project config for ``document`` and build a render pipeline.

    Raises:
        ConfigError: if the project configuration is invalid
    """
    project_root = get_project_root(args, document)
    return RenderPipeline(load_render_config(project_root, overrides))


def iter_documents(paths: Iterable[str | Path]) -> Iterator[Path]:
    """Yield documents named on the command line; directories are walked for pages."""
    seen: List[Path] = []
    for raw in paths:
        path = Path(raw).resolve()
        candidates = sorted(p for p in path.rglob("*") if p.is_file()) if path.is_dir() else [path]
        for candidate in candidates:
            if path.is_dir() and candidate.suffix.lower() not in DOCUMENT_SUFFIXES:
                continue
            if candidate in seen:
                continue
            seen.append(candidate)
            yield candidate


__all__ = ["build_pipeline", "get_project_root", "iter_documents", "setup_logging", "DOCUMENT_SUFFIXES"]
