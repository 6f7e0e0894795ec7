"""Include expansion.

Handles the server-side include directives:
- <!--#include virtual="PATH"--> - PATH relative to the source root
- <!--#include file="PATH"-->    - PATH relative to the including file

Includes are expanded recursively, depth first, in document order. Anything
that goes wrong with one directive (missing target, cycle, depth bound,
unreadable file) is reported as a diagnostic and the directive is replaced
with a visible error marker; the rest of the document still renders.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from dompile.core.exceptions import BackingStoreError

from ..diagnostics import Category, Diagnostic, DiagnosticKind, LineIndex, error_marker
from ..models import IncludeDirective, IncludeKind, SourceDocument
from .base import ContentTransformer, TransformContext, make_diagnostic

logger = logging.getLogger(__name__)

INCLUDE_PATTERN = re.compile(r'<!--#include\s+(virtual|file)="([^"]+)"\s*-->', re.IGNORECASE)


def find_directives(text: str) -> List[IncludeDirective]:
    """All well-formed include directives in ``text``, in document order."""
    return [
        IncludeDirective(IncludeKind(m.group(1).lower()), m.group(2), m.start(), m.end())
        for m in INCLUDE_PATTERN.finditer(text)
    ]


class SourceAnchors:
    """Locate directives of a converted text (markdown output) in its source.

    Directives keep their document order through conversion, so each one is
    matched to the next unused source directive with the same kind and path.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self._pending = find_directives(source)

    def locate(self, directive: IncludeDirective) -> Tuple[int, int]:
        for i, candidate in enumerate(self._pending):
            if candidate.kind is directive.kind and candidate.raw_path == directive.raw_path:
                del self._pending[: i + 1]
                return candidate.start, candidate.end
        return 0, 0


@dataclass
class ExpansionResult:
    content: str
    diagnostics: List[Diagnostic] = field(default_factory=list)


class IncludeExpander(ContentTransformer):
    """Resolve include directives recursively.

    The active expansion chain is an immutable tuple of ancestor paths passed
    down each call, so a cycle is detected exactly when a file re-enters its
    own chain; including the same file twice side by side is fine.
    """

    stage = "includes"

    def __init__(self, max_depth: Optional[int] = None) -> None:
        """
        Args:
            max_depth: Maximum include nesting; defaults to the render config's
                ``max_include_depth``.
        """
        self.max_depth = max_depth

    def transform(self, content: str, context: TransformContext) -> str:
        document = SourceDocument(
            path=context.document.path,
            text=content,
            relative_path=context.document.relative_path,
        )
        # the markdown stage ran: report directive positions in the markdown source
        anchors = SourceAnchors(context.document.text) if content != context.document.text else None
        result = self.expand(document, context, anchors=anchors)
        context.add_diagnostics(result.diagnostics)
        return result.content

    def expand(
        self,
        document: SourceDocument,
        context: TransformContext,
        visited_ancestors: Tuple[str, ...] = (),
        depth: int = 0,
        anchors: Optional[SourceAnchors] = None,
    ) -> ExpansionResult:
        """Expand every include in ``document``.

        Args:
            document: Snapshot whose text is scanned for directives
            context: Render context (resolver, store, tracker, config)
            visited_ancestors: Paths currently being expanded above this document
            depth: Nesting level of ``document`` (0 for the rendered document)
            anchors: Source positions for directives when ``document.text`` is
                converted output rather than the file's own text

        Returns:
            Expanded content plus diagnostics in depth-first directive order
        """
        max_depth = self.max_depth if self.max_depth is not None else context.config.max_include_depth
        own = str(document.path)
        ancestors = visited_ancestors if own in visited_ancestors else (*visited_ancestors, own)
        diagnostics: List[Diagnostic] = []
        index: Optional[LineIndex] = None

        def report(kind: DiagnosticKind, message: str, span: Tuple[int, int]) -> str:
            nonlocal index
            if index is None:
                index = LineIndex(anchors.source if anchors is not None else document.text)
            diagnostics.append(
                make_diagnostic(
                    kind,
                    message,
                    category=Category.INCLUDE,
                    path=document.path,
                    index=index,
                    start=span[0],
                    end=span[1],
                )
            )
            logger.debug("%s in %s: %s", kind.value, document.relative_path, message)
            return error_marker(message, Category.INCLUDE)

        def replace_include(match: re.Match[str]) -> str:
            directive = IncludeDirective(
                IncludeKind(match.group(1).lower()), match.group(2), match.start(), match.end()
            )
            span = anchors.locate(directive) if anchors is not None else (directive.start, directive.end)
            resolved = context.resolver.resolve(directive, document.path)
            target = resolved.resolved_path

            if target is not None and str(target) in ancestors:
                return report(
                    DiagnosticKind.INCLUDE_CYCLE,
                    f"Circular include detected: {directive.raw_path}",
                    span,
                )
            if target is None or not resolved.exists:
                return report(
                    DiagnosticKind.INCLUDE_NOT_FOUND,
                    f"Include file not found: {directive.raw_path}",
                    span,
                )
            if depth + 1 > max_depth:
                return report(
                    DiagnosticKind.MAX_DEPTH_EXCEEDED,
                    f"Maximum include depth ({max_depth}) exceeded at: {directive.raw_path}",
                    span,
                )

            try:
                text = context.store.read_text(target)
            except BackingStoreError as exc:
                return report(
                    DiagnosticKind.BACKING_STORE_FAILURE,
                    f"Cannot read include {directive.raw_path}: {exc}",
                    span,
                )

            context.tracker.record(document.path, target)
            child = SourceDocument.from_text(target, text, context.source_root)
            nested = self.expand(child, context, (*ancestors, str(target)), depth + 1)
            diagnostics.extend(nested.diagnostics)
            return nested.content

        content = INCLUDE_PATTERN.sub(replace_include, document.text)
        return ExpansionResult(content=content, diagnostics=diagnostics)


__all__ = ["INCLUDE_PATTERN", "ExpansionResult", "IncludeExpander", "SourceAnchors", "find_directives"]
