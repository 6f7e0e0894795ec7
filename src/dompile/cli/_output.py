"""Unified CLI output formatting utilities.

Every dompile command prints either human-readable text or, with ``--json``,
a single JSON document on stdout. Errors go to stderr.
"""
from __future__ import annotations

import json
import sys
from typing import Any, Dict, Optional


class OutputFormatter:
    """Unified output formatter for CLI commands."""

    def __init__(self, json_mode: bool = False, indent: int = 2):
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON; otherwise output text
            indent: JSON indentation level
        """
        self.json_mode = json_mode
        self.indent = indent

    def success(
        self,
        data: Dict[str, Any],
        message: str,
        *,
        status: str = "success",
    ) -> None:
        """Output success result.

        Args:
            data: Result data dictionary
            message: Human-readable message (used in text mode)
            status: Status string for JSON output
        """
        if self.json_mode:
            output = {"status": status, **data}
            print(json.dumps(output, indent=self.indent, default=str))
        else:
            print(message)

    def error(
        self,
        error: Exception | str,
        message: Optional[str] = None,
        *,
        error_code: str = "error",
    ) -> None:
        """Output error result.

        Args:
            error: The exception (or message) describing the failure
            message: Optional human-readable message (defaults to str(error))
            error_code: Error code for JSON output
        """
        msg = message or str(error)
        if self.json_mode:
            output: Dict[str, Any] = {"error": error_code, "message": msg}
            to_json = getattr(error, "to_json_error", None)
            if callable(to_json):
                output["context"] = to_json().get("context", {})
            print(json.dumps(output, indent=self.indent, default=str), file=sys.stderr)
        else:
            print(f"Error: {msg}", file=sys.stderr)

    def json_output(self, data: Any) -> None:
        print(json.dumps(data, indent=self.indent, default=str))

    def text(self, message: str) -> None:
        if not self.json_mode:
            print(message)


__all__ = [
    "OutputFormatter",
]
