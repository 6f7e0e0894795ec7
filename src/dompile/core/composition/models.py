"""Data model for a single render pass.

Everything here is created fresh for each render and discarded once the
RenderResult is handed back; snapshots are frozen so that re-rendering a
document always produces new objects rather than mutating cached ones.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .diagnostics import Diagnostic, Severity

if TYPE_CHECKING:
    from .storage import BackingStore


def normalize_path(path: Path | str) -> Path:
    """Absolute path with symlinks resolved, ``/`` separators and no ``..`` segments.

    Must agree with ``RenderConfig`` roots, which are resolved the same way,
    or confinement checks compare paths from different namespaces.
    """
    raw = str(path).replace("\\", "/")
    return Path(raw).resolve(strict=False)


def relative_to_root(path: Path, root: Path) -> str:
    """POSIX path of ``path`` relative to ``root``, or the absolute path when outside."""
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


@dataclass(frozen=True)
class SourceDocument:
    """Immutable snapshot of one document for one render pass."""

    path: Path
    text: str
    relative_path: str

    @classmethod
    def from_text(cls, path: Path | str, text: str, source_root: Path) -> "SourceDocument":
        abs_path = normalize_path(path)
        return cls(path=abs_path, text=text, relative_path=relative_to_root(abs_path, source_root))

    @classmethod
    def load(cls, path: Path | str, source_root: Path, store: "BackingStore") -> "SourceDocument":
        """Snapshot ``path`` from the backing store (raises BackingStoreError)."""
        abs_path = normalize_path(path)
        return cls.from_text(abs_path, store.read_text(abs_path), source_root)


class IncludeKind(str, Enum):
    VIRTUAL = "virtual"
    FILE = "file"


@dataclass(frozen=True)
class IncludeDirective:
    """A parsed ``<!--#include ...-->`` with its span in the including file."""

    kind: IncludeKind
    raw_path: str
    start: int
    end: int


@dataclass(frozen=True)
class ResolvedInclude:
    directive: IncludeDirective
    resolved_path: Optional[Path]
    exists: bool


@dataclass(frozen=True)
class DependencyEdge:
    from_file: str
    to_file: str


@dataclass(frozen=True)
class SlotInfo:
    """A named slot fill supplied by a child document."""

    name: str
    content: str
    start: int
    end: int


@dataclass(frozen=True)
class SlotPlaceholder:
    """A ``<slot>`` declared by a layout. ``name`` is empty for the default slot."""

    name: str
    fallback: str
    required: bool
    start: int
    end: int


@dataclass(frozen=True)
class TemplateInfo:
    """Layout relationship and slot fills declared by one document."""

    extends: Optional[str] = None
    slots: List[SlotInfo] = field(default_factory=list)
    default_content: str = ""
    extends_start: int = 0
    extends_end: int = 0


@dataclass
class RenderResult:
    """Output of one render, owned by the caller."""

    html: str
    dependencies: List[str] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    assets: List[str] = field(default_factory=list)
    #: front matter of a markdown page
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "html": self.html,
            "dependencies": list(self.dependencies),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "assets": list(self.assets),
            "metadata": dict(self.metadata),
        }


__all__ = [
    "DependencyEdge",
    "IncludeDirective",
    "IncludeKind",
    "RenderResult",
    "ResolvedInclude",
    "SlotInfo",
    "SlotPlaceholder",
    "SourceDocument",
    "TemplateInfo",
    "normalize_path",
    "relative_to_root",
]
