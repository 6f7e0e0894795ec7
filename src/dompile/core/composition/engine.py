"""Render pipeline.

Entry point for hosts (editor preview, build driver). A render walks the
stages

    start -> markdown? -> includes -> templates -> head -> assets -> done

and any stage can drop into the ``error`` state on an unrecoverable failure
(the rendered document itself cannot be read). The error state short-circuits
the remaining stages and returns an error page with a single diagnostic.
Every other problem stays local to its include or layout branch.

Usage:
    pipeline = RenderPipeline(load_render_config(project_root))
    result = pipeline.render(project_root / "src/index.html")
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from dompile.core.config.render import RenderConfig
from dompile.core.exceptions import BackingStoreError, DompileError

from .diagnostics import Category, DiagnosticKind
from .error_page import render_error_page
from .models import RenderResult, SourceDocument, normalize_path
from .paths import PathResolver
from .storage import BackingStore, FileSystemStore
from .transformers.assets import AssetCollector
from .transformers.base import ContentTransformer, TransformContext, TransformerPipeline, make_diagnostic
from .transformers.head import HeadTransformer
from .transformers.includes import IncludeExpander
from .transformers.markdown import MarkdownProcessor, MarkdownTransformer, create_markdown_processor
from .transformers.templates import TemplateComposer

logger = logging.getLogger(__name__)


class RenderPipeline:
    """Render documents of one project.

    The pipeline holds only configuration and stateless collaborators; every
    call to :meth:`render` builds its own TransformContext, so one pipeline can
    serve concurrent renders of different documents.
    """

    def __init__(
        self,
        config: RenderConfig,
        store: Optional[BackingStore] = None,
        markdown: Optional[MarkdownProcessor] = None,
    ) -> None:
        """
        Args:
            config: Project render configuration
            store: Backing store (defaults to the local filesystem)
            markdown: Markdown capability (defaults to the one the config selects)
        """
        self.config = config
        self.store: BackingStore = store if store is not None else FileSystemStore()
        self.markdown: MarkdownProcessor = markdown if markdown is not None else create_markdown_processor(config.markdown)
        self.resolver = PathResolver(
            config.project_root,
            config.source_root,
            self.store,
            confinement=config.path_confinement,
        )
        self.expander = IncludeExpander()
        self.composer = TemplateComposer(self.expander)
        self.head = HeadTransformer(expander=self.expander)
        self.assets = AssetCollector()

    def build_pipeline(self, document: SourceDocument) -> TransformerPipeline:
        stages: List[ContentTransformer] = []
        if self.markdown.is_markdown_file(document.path):
            stages.append(MarkdownTransformer(self.markdown))
        stages.extend([self.expander, self.composer, self.head, self.assets])
        return TransformerPipeline(stages)

    def new_context(self, document: SourceDocument) -> TransformContext:
        return TransformContext(
            document=document,
            config=self.config,
            store=self.store,
            resolver=self.resolver,
        )

    def render(self, document_path: Path | str, text: Optional[str] = None) -> RenderResult:
        """Render a document.

        Args:
            document_path: Path of the document
            text: Current document text (e.g. an unsaved editor buffer); read
                from the backing store when omitted

        Returns:
            RenderResult; on an unrecoverable failure its html is an error page
            and its diagnostics hold exactly one error
        """
        path = normalize_path(document_path)
        if text is not None:
            document = SourceDocument.from_text(path, text, self.config.source_root)
        else:
            try:
                document = SourceDocument.load(path, self.config.source_root, self.store)
            except BackingStoreError as exc:
                return self._error_result(path, exc, stage="start")
        return self.render_document(document)

    def render_document(self, document: SourceDocument) -> RenderResult:
        context = self.new_context(document)
        logger.debug("Rendering %s", document.relative_path)
        try:
            html = self.build_pipeline(document).execute(document.text, context)
        except DompileError as exc:
            return self._error_result(document.path, exc, stage=context.stage, context=context)

        return RenderResult(
            html=html,
            dependencies=context.tracker.get_dependencies(document.path),
            diagnostics=list(context.diagnostics),
            assets=list(context.assets),
            metadata=dict(context.metadata),
        )

    def _error_result(
        self,
        path: Path,
        exc: DompileError,
        *,
        stage: str,
        context: Optional[TransformContext] = None,
    ) -> RenderResult:
        logger.error("Render of %s failed during %s: %s", path, stage, exc)
        kind = DiagnosticKind.BACKING_STORE_FAILURE if isinstance(exc, BackingStoreError) else DiagnosticKind.RENDER_FAILURE
        diagnostic = make_diagnostic(
            kind,
            f"Render error: {exc}",
            category=Category.TEMPLATE,
            path=path,
        )
        return RenderResult(
            html=render_error_page(str(exc), str(path)),
            dependencies=context.tracker.get_dependencies(path) if context is not None else [],
            diagnostics=[diagnostic],
            assets=[],
        )


def render_file(config: RenderConfig, document_path: Path | str, text: Optional[str] = None) -> RenderResult:
    """One-shot render with a filesystem store."""
    return RenderPipeline(config).render(document_path, text)


__all__ = ["RenderPipeline", "render_file"]
