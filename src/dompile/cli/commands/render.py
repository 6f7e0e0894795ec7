"""
dompile render command.

SUMMARY: Render a document with its includes, layouts and head snippet
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dompile.cli import OutputFormatter, add_standard_flags, build_pipeline, setup_logging

SUMMARY = "Render a document with its includes, layouts and head snippet"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", help="Document to render (.html or .md)")
    parser.add_argument(
        "--out",
        "-o",
        type=str,
        help="Write rendered HTML to this file instead of stdout",
    )
    parser.add_argument(
        "--pretty-urls",
        action="store_true",
        default=None,
        help="Rewrite markdown page links to directory URLs",
    )
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    setup_logging(args)

    path = Path(str(args.path)).resolve()
    overrides = {"pretty_urls": True} if getattr(args, "pretty_urls", None) else None
    pipeline = build_pipeline(args, path, overrides)
    result = pipeline.render(path)

    for diagnostic in result.diagnostics:
        if not formatter.json_mode:
            print(diagnostic.format(), file=sys.stderr)

    out = getattr(args, "out", None)
    if out:
        out_path = Path(out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(result.html, encoding="utf-8")

    if formatter.json_mode:
        payload = result.to_dict()
        if out:
            payload["out"] = str(Path(out).resolve())
        formatter.json_output(payload)
    elif not out:
        sys.stdout.write(result.html)

    return 0 if result.ok else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
