"""
dompile check command.

SUMMARY: Report include/template diagnostics for one or more documents

Directories are walked for .html/.htm/.md/.markdown pages, skipping the
includes and layouts directories. Exit code is 1 when any error is found, or
any warning with --strict.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List

from dompile.cli import (
    OutputFormatter,
    add_standard_flags,
    build_pipeline,
    get_project_root,
    iter_documents,
    setup_logging,
)
from dompile.core.composition import RenderPipeline

SUMMARY = "Report include/template diagnostics for documents"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("paths", nargs="+", help="Documents or directories to check")
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat warnings as failures",
    )
    add_standard_flags(parser)


def _is_partial(document: Path, pipeline: RenderPipeline) -> bool:
    """Fragments and layouts are only checked through the pages that use them."""
    config = pipeline.config
    return any(parent in document.parents for parent in (config.includes_dir, config.layouts_dir))


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    setup_logging(args)

    documents = list(iter_documents(args.paths))
    if not documents:
        formatter.error("No documents found", error_code="not_found")
        return 1

    explicit = {Path(p).resolve() for p in args.paths}
    pipelines: Dict[str, RenderPipeline] = {}
    reports: List[Dict[str, Any]] = []
    errors = warnings = 0
    for document in documents:
        # One pipeline per project root.
        root = str(get_project_root(args, document))
        if root not in pipelines:
            pipelines[root] = build_pipeline(args, document)
        pipeline = pipelines[root]
        if document not in explicit and _is_partial(document, pipeline):
            continue
        result = pipeline.render(document)
        errors += len(result.errors)
        warnings += len(result.warnings)
        reports.append({"path": str(document), "diagnostics": [d.to_dict() for d in result.diagnostics]})
        for diagnostic in result.diagnostics:
            formatter.text(diagnostic.format())

    failed = errors > 0 or (args.strict and warnings > 0)
    summary = f"{len(reports)} document(s) checked: {errors} error(s), {warnings} warning(s)"
    formatter.success(
        {"documents": reports, "errors": errors, "warnings": warnings},
        summary,
        status="failed" if failed else "success",
    )
    return 1 if failed else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
