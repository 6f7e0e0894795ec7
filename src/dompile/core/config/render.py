"""Typed render configuration.

RenderConfig is the single explicit configuration object handed to the render
pipeline. It is frozen: a pipeline never reads ambient state, and changing a
setting means building a new config (``RenderConfig.replace``).
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional, Tuple

from dompile.data import read_yaml as read_data_yaml

PathConfinement = Literal["confined", "unconfined"]
MarkdownProcessorName = Literal["markdown", "minimal"]


@dataclass(frozen=True)
class MarkdownSettings:
    """Markdown stage settings."""

    processor: MarkdownProcessorName = "markdown"
    extensions: Tuple[str, ...] = ("extra", "fenced_code", "tables", "toc")
    default_layout: Optional[str] = None


@dataclass(frozen=True)
class RenderConfig:
    """Project configuration for one render pipeline.

    Attributes:
        project_root: Workspace root; the confinement boundary.
        source: Content root, relative to ``project_root``.
        includes: Shared fragment directory, relative to the source root.
        layouts: Layout directory, relative to the source root.
        head: Head snippet path relative to the source root, or None to use
            ``<includes>/head.html`` when present.
        pretty_urls: Rewrite markdown page links to ``name/`` instead of ``name.html``.
        path_confinement: ``confined`` or ``unconfined``.
        max_include_depth: Nesting bound for include expansion.
        max_layout_depth: Length bound for layout chains.
        markdown: Markdown stage settings.
    """

    project_root: Path
    source: str = "src"
    includes: str = "includes"
    layouts: str = "layouts"
    head: Optional[str] = None
    pretty_urls: bool = False
    path_confinement: PathConfinement = "confined"
    max_include_depth: int = 10
    max_layout_depth: int = 10
    markdown: MarkdownSettings = field(default_factory=MarkdownSettings)

    def __post_init__(self) -> None:
        object.__setattr__(self, "project_root", Path(self.project_root).resolve())

    @property
    def source_root(self) -> Path:
        return (self.project_root / self.source).resolve()

    @property
    def includes_dir(self) -> Path:
        return self.source_root / self.includes

    @property
    def layouts_dir(self) -> Path:
        return self.source_root / self.layouts

    @property
    def head_snippet_path(self) -> Path:
        """Configured head snippet, or the conventional ``<includes>/head.html``."""
        if self.head:
            return self.source_root / self.head.lstrip("/")
        return self.includes_dir / "head.html"

    def replace(self, **changes: Any) -> "RenderConfig":
        return dataclasses.replace(self, **changes)

    @classmethod
    def defaults(cls, project_root: Path) -> "RenderConfig":
        """Config built from the bundled defaults only."""
        return cls.from_dict(project_root, read_data_yaml("config", "defaults.yaml"))

    @classmethod
    def from_dict(cls, project_root: Path, data: Mapping[str, Any]) -> "RenderConfig":
        """Build a config from an already merged and validated mapping."""
        md: Dict[str, Any] = dict(data.get("markdown") or {})
        markdown = MarkdownSettings(
            processor=md.get("processor", "markdown"),
            extensions=tuple(md.get("extensions") or MarkdownSettings.extensions),
            default_layout=md.get("default_layout"),
        )
        return cls(
            project_root=Path(project_root),
            source=str(data.get("source", "src")),
            includes=str(data.get("includes", "includes")),
            layouts=str(data.get("layouts", "layouts")),
            head=data.get("head"),
            pretty_urls=bool(data.get("pretty_urls", False)),
            path_confinement=data.get("path_confinement", "confined"),
            max_include_depth=int(data.get("max_include_depth", 10)),
            max_layout_depth=int(data.get("max_layout_depth", 10)),
            markdown=markdown,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_root": str(self.project_root),
            "source": self.source,
            "includes": self.includes,
            "layouts": self.layouts,
            "head": self.head,
            "pretty_urls": self.pretty_urls,
            "path_confinement": self.path_confinement,
            "max_include_depth": self.max_include_depth,
            "max_layout_depth": self.max_layout_depth,
            "markdown": {
                "processor": self.markdown.processor,
                "extensions": list(self.markdown.extensions),
                "default_layout": self.markdown.default_layout,
            },
        }


__all__ = ["MarkdownSettings", "PathConfinement", "RenderConfig"]
