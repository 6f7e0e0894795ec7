"""Structured diagnostics produced while rendering.

Every problem the engine finds is reported as a :class:`Diagnostic` that
carries the file it belongs to and a zero-based line/character range in that
file, so editors can underline the exact directive and build drivers can
print ``path:line:col`` locations.
"""
from __future__ import annotations

import bisect
import html
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Category(str, Enum):
    INCLUDE = "include"
    TEMPLATE = "template"
    SLOT = "slot"
    LAYOUT = "layout"


class DiagnosticKind(str, Enum):
    """Error taxonomy.

    Only BACKING_STORE_FAILURE on the root document aborts a render; every
    other kind is local to the include or layout branch it was found in.
    """

    INCLUDE_NOT_FOUND = "IncludeNotFound"
    INCLUDE_CYCLE = "IncludeCycle"
    MAX_DEPTH_EXCEEDED = "MaxDepthExceeded"
    LAYOUT_CYCLE = "LayoutCycle"
    LAYOUT_NOT_FOUND = "LayoutNotFound"
    MISSING_REQUIRED_SLOT = "MissingRequiredSlot"
    ORPHAN_SLOT_CONTENT = "OrphanSlotContent"
    DUPLICATE_SLOT = "DuplicateSlot"
    HEAD_TARGET_MISSING = "HeadTargetMissing"
    HEAD_SNIPPET_NOT_FOUND = "HeadSnippetNotFound"
    BACKING_STORE_FAILURE = "BackingStoreFailure"
    RENDER_FAILURE = "RenderFailure"


@dataclass(frozen=True)
class Position:
    line: int
    character: int

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "character": self.character}


@dataclass(frozen=True)
class SourceRange:
    start: Position
    end: Position

    @classmethod
    def empty(cls) -> "SourceRange":
        return cls(Position(0, 0), Position(0, 0))

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


class LineIndex:
    """Maps character offsets in a text to zero-based line/character positions."""

    def __init__(self, text: str) -> None:
        self._starts: List[int] = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                self._starts.append(i + 1)
        self._length = len(text)

    def position(self, offset: int) -> Position:
        offset = max(0, min(offset, self._length))
        line = bisect.bisect_right(self._starts, offset) - 1
        return Position(line, offset - self._starts[line])

    def range(self, start: int, end: int) -> SourceRange:
        return SourceRange(self.position(start), self.position(end))


@dataclass(frozen=True)
class Diagnostic:
    range: SourceRange
    message: str
    severity: Severity
    category: Category
    kind: DiagnosticKind
    path: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "range": self.range.to_dict(),
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "kind": self.kind.value,
            "path": self.path,
        }

    def format(self) -> str:
        """``path:line:col: severity: message`` with one-based line/column."""
        where = self.path or "<document>"
        pos = self.range.start
        return f"{where}:{pos.line + 1}:{pos.character + 1}: {self.severity.value}: {self.message}"


def error_marker(message: str, category: Category) -> str:
    """Visible inline marker substituted for a failed directive."""
    return (
        f'<mark class="dompile-error" data-category="{category.value}">'
        f"{html.escape(message)}</mark>"
    )


__all__ = [
    "Category",
    "Diagnostic",
    "DiagnosticKind",
    "LineIndex",
    "Position",
    "Severity",
    "SourceRange",
    "error_marker",
]
