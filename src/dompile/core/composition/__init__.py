"""Include/template resolution and dependency tracking.

Public API:
- RenderPipeline / render_file: render a document to a RenderResult
- PathResolver, DependencyTracker, IncludeExpander, TemplateComposer,
  HeadInjector: the individual stages, usable on their own
- FileSystemStore / OverlayStore: backing stores
"""
from .dependencies import DependencyTracker
from .diagnostics import Category, Diagnostic, DiagnosticKind, Position, Severity, SourceRange
from .engine import RenderPipeline, render_file
from .models import (
    DependencyEdge,
    IncludeDirective,
    IncludeKind,
    RenderResult,
    ResolvedInclude,
    SlotInfo,
    SlotPlaceholder,
    SourceDocument,
    TemplateInfo,
)
from .paths import PathResolver
from .storage import BackingStore, FileSystemStore, OverlayStore
from .transformers import (
    HeadInjector,
    IncludeExpander,
    MinimalMarkdownProcessor,
    PythonMarkdownProcessor,
    TemplateComposer,
    TransformContext,
    find_directives,
    is_markdown_file,
)

__all__ = [
    "BackingStore",
    "Category",
    "DependencyEdge",
    "DependencyTracker",
    "Diagnostic",
    "DiagnosticKind",
    "FileSystemStore",
    "HeadInjector",
    "IncludeDirective",
    "IncludeExpander",
    "IncludeKind",
    "MinimalMarkdownProcessor",
    "OverlayStore",
    "PathResolver",
    "Position",
    "PythonMarkdownProcessor",
    "RenderPipeline",
    "RenderResult",
    "ResolvedInclude",
    "Severity",
    "SlotInfo",
    "SlotPlaceholder",
    "SourceDocument",
    "SourceRange",
    "TemplateComposer",
    "TemplateInfo",
    "TransformContext",
    "find_directives",
    "is_markdown_file",
    "render_file",
]
