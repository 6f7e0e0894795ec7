"""
dompile deps command.

SUMMARY: List the files a document depends on
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dompile.cli import OutputFormatter, add_standard_flags, build_pipeline, setup_logging

SUMMARY = "List the files a document depends on (includes, layouts, head)"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", help="Document to analyse")
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    setup_logging(args)

    path = Path(str(args.path)).resolve()
    result = build_pipeline(args, path).render(path)

    if formatter.json_mode:
        formatter.json_output({"path": str(path), "dependencies": list(result.dependencies)})
    else:
        for dependency in result.dependencies:
            formatter.text(dependency)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
