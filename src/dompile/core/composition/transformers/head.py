"""Head snippet injection.

The shared head snippet (``head`` in the config, or ``<includes>/head.html``)
goes immediately before the closing ``</head>`` tag. Documents without a head
get the snippet prepended plus a warning. Injection runs once per render;
it does not look for a snippet that is already present.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional

from dompile.core.exceptions import BackingStoreError

from ..diagnostics import Category, Diagnostic, DiagnosticKind, Severity
from ..models import SourceDocument
from .base import ContentTransformer, TransformContext, make_diagnostic
from .includes import IncludeExpander

logger = logging.getLogger(__name__)

HEAD_CLOSE_PATTERN = re.compile(r"</head\s*>", re.IGNORECASE)


class HeadInjector:
    """Insert a snippet before ``</head>``."""

    def inject(
        self,
        html: str,
        head_snippet: str,
        diagnostics: Optional[List[Diagnostic]] = None,
        path: Optional[Path | str] = None,
    ) -> str:
        """Return ``html`` with ``head_snippet`` inserted.

        A missing ``</head>`` is reported to ``diagnostics`` when a list is given.
        """
        match = HEAD_CLOSE_PATTERN.search(html)
        if match is None:
            diagnostic = make_diagnostic(
                DiagnosticKind.HEAD_TARGET_MISSING,
                "Document has no <head> element; head snippet prepended",
                category=Category.TEMPLATE,
                severity=Severity.WARNING,
                path=path,
            )
            if diagnostics is not None:
                diagnostics.append(diagnostic)
            return head_snippet + html
        return html[: match.start()] + head_snippet + html[match.start():]


class HeadTransformer(ContentTransformer):
    """Pipeline stage: locate, expand and inject the head snippet."""

    stage = "head"

    def __init__(self, injector: Optional[HeadInjector] = None, expander: Optional[IncludeExpander] = None) -> None:
        self.injector = injector or HeadInjector()
        self.expander = expander or IncludeExpander()

    def transform(self, content: str, context: TransformContext) -> str:
        snippet = self.load_snippet(context)
        if snippet is None:
            return content
        return self.injector.inject(content, snippet, context.diagnostics, context.document.path)

    def load_snippet(self, context: TransformContext) -> Optional[str]:
        """Expanded head snippet text, or None when there is none to inject."""
        config = context.config
        snippet_path = config.head_snippet_path
        if not context.store.exists(snippet_path):
            if config.head:
                context.add_diagnostics([
                    make_diagnostic(
                        DiagnosticKind.HEAD_SNIPPET_NOT_FOUND,
                        f"Head snippet not found: {config.head}",
                        category=Category.INCLUDE,
                        severity=Severity.WARNING,
                        path=context.document.path,
                    )
                ])
            return None

        try:
            text = context.store.read_text(snippet_path)
        except BackingStoreError as exc:
            logger.warning("Skipping head snippet %s: %s", snippet_path, exc)
            context.add_diagnostics([
                make_diagnostic(
                    DiagnosticKind.BACKING_STORE_FAILURE,
                    f"Cannot read head snippet: {exc}",
                    category=Category.INCLUDE,
                    severity=Severity.WARNING,
                    path=context.document.path,
                )
            ])
            return None

        context.tracker.record(context.document.path, snippet_path)
        document = SourceDocument.from_text(snippet_path, text, context.source_root)
        expanded = self.expander.expand(document, context, (str(document.path),))
        context.add_diagnostics(expanded.diagnostics)
        return expanded.content


__all__ = ["HeadInjector", "HeadTransformer"]
