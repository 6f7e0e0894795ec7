"""Base class for content transformers in the render pipeline.

The RenderPipeline runs a document through an ordered list of transformers.
Each transformer handles one stage of rendering.

Stage order:
1. MARKDOWN  - markdown to HTML, front matter ``layout:`` (markdown files only)
2. INCLUDES  - <!--#include virtual="..."--> / <!--#include file="..."-->
3. TEMPLATES - <template extends="...">, <template slot="...">, <slot>
4. HEAD      - head snippet before </head>
5. ASSETS    - collect referenced local static files
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from dompile.core.config.render import RenderConfig
from dompile.core.exceptions import DompileError, RenderError

from ..dependencies import DependencyTracker
from ..diagnostics import Category, Diagnostic, DiagnosticKind, LineIndex, Severity, SourceRange
from ..models import SourceDocument
from ..paths import PathResolver
from ..storage import BackingStore

logger = logging.getLogger(__name__)


@dataclass
class TransformContext:
    """Per-render state shared by the pipeline stages.

    One context belongs to exactly one render call; nothing in it is shared
    between concurrent renders.
    """

    document: SourceDocument
    config: RenderConfig
    store: BackingStore
    resolver: PathResolver

    tracker: DependencyTracker = field(default_factory=DependencyTracker)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    assets: List[str] = field(default_factory=list)

    # Set by the markdown stage; metadata ends up on the RenderResult
    layout: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    stage: str = "start"

    @property
    def source_root(self) -> Path:
        return self.config.source_root

    def add_diagnostics(self, diagnostics: List[Diagnostic]) -> None:
        self.diagnostics.extend(diagnostics)

    def record_asset(self, path: str) -> None:
        if path not in self.assets:
            self.assets.append(path)


def make_diagnostic(
    kind: DiagnosticKind,
    message: str,
    *,
    category: Category,
    severity: Severity = Severity.ERROR,
    path: Optional[Path | str] = None,
    index: Optional[LineIndex] = None,
    start: int = 0,
    end: int = 0,
) -> Diagnostic:
    """Build a Diagnostic, converting offsets with ``index`` when given."""
    rng = index.range(start, end) if index is not None else SourceRange.empty()
    return Diagnostic(
        range=rng,
        message=message,
        severity=severity,
        category=category,
        kind=kind,
        path=str(path) if path is not None else None,
    )


class ContentTransformer(ABC):
    """Abstract base class for pipeline stages.

    Transformers are stateless and receive everything through the context.
    """

    #: short stage name used for logging and the pipeline state
    stage = "transform"

    @abstractmethod
    def transform(self, content: str, context: TransformContext) -> str:
        """Transform content using this transformer's rules."""
        ...


class TransformerPipeline:
    """Execute a sequence of transformers on content.

    A stage failing with anything other than a DompileError is re-raised as
    RenderError so the engine can report which stage broke.
    """

    def __init__(self, transformers: List[ContentTransformer]) -> None:
        self.transformers = transformers

    def execute(self, content: str, context: TransformContext) -> str:
        result = content
        for transformer in self.transformers:
            context.stage = transformer.stage
            logger.debug("Stage %s on %s", transformer.stage, context.document.relative_path)
            try:
                result = transformer.transform(result, context)
            except DompileError:
                raise
            except Exception as exc:
                raise RenderError(
                    f"{transformer.stage} stage failed: {exc}",
                    context={"stage": transformer.stage, "path": str(context.document.path)},
                ) from exc
        context.stage = "done"
        return result


__all__ = [
    "ContentTransformer",
    "TransformContext",
    "TransformerPipeline",
    "make_diagnostic",
]
