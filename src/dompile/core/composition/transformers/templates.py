"""Layout and slot composition.

Syntax:
- Child page:  <template extends="layout.html"> ... </template>
               <template slot="title">Page title</template>  (named fill)
               anything else inside the extends block fills the default slot
- Layout:      <slot name="title">Fallback</slot>
               <slot name="main" required></slot>
               <slot></slot>                                 (default slot)

``extends`` references resolve relative to the extending file, a leading
``/`` makes them source-root relative, and bare names that do not resolve
are looked up in the layouts directory. Layouts may extend layouts; the
closest layout wraps the child first and each ancestor then wraps the result.
"""
from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from dompile.core.exceptions import BackingStoreError

from ..diagnostics import Category, Diagnostic, DiagnosticKind, LineIndex, Severity, error_marker
from ..models import IncludeKind, SlotInfo, SlotPlaceholder, SourceDocument, TemplateInfo, normalize_path
from .base import ContentTransformer, TransformContext, make_diagnostic
from .includes import IncludeExpander
from .markdown import FRONT_MATTER_PATTERN

logger = logging.getLogger(__name__)

EXTENDS_PATTERN = re.compile(r'<template\s+extends="([^"]+)"\s*>', re.IGNORECASE)
TEMPLATE_OPEN_PATTERN = re.compile(r"<template\b", re.IGNORECASE)
TEMPLATE_CLOSE_PATTERN = re.compile(r"</template\s*>", re.IGNORECASE)
SLOT_FILL_PATTERN = re.compile(
    r'<template\s+slot="([^"]+)"\s*>(.*?)</template\s*>',
    re.IGNORECASE | re.DOTALL,
)
SLOT_PATTERN = re.compile(r"<slot\b([^>]*?)(?:/>|>(.*?)</slot\s*>)", re.IGNORECASE | re.DOTALL)
SLOT_NAME_PATTERN = re.compile(r'\bname="([^"]*)"', re.IGNORECASE)
SLOT_REQUIRED_PATTERN = re.compile(r"\brequired\b", re.IGNORECASE)
LAYOUT_KEY_PATTERN = re.compile(r"^layout[ \t]*:.*$", re.MULTILINE)


def parse_template(text: str) -> TemplateInfo:
    """Extract the extends reference, named slot fills and default content."""
    extends: Optional[str] = None
    extends_start = extends_end = 0
    body, body_offset = text, 0
    outside = ""

    match = EXTENDS_PATTERN.search(text)
    if match:
        extends = match.group(1).strip()
        extends_start, extends_end = match.start(), match.end()
        inner = text[match.end():]
        closes = list(TEMPLATE_CLOSE_PATTERN.finditer(inner))
        # the wrapper owns the last close tag only if every nested <template> has its own
        if len(closes) > len(TEMPLATE_OPEN_PATTERN.findall(inner)):
            body = inner[: closes[-1].start()]
            outside = text[: match.start()] + inner[closes[-1].end():]
        else:
            body = inner
            outside = text[: match.start()]
        body_offset = match.end()

    slots = [
        SlotInfo(
            name=m.group(1).strip(),
            content=m.group(2).strip(),
            start=body_offset + m.start(),
            end=body_offset + m.end(),
        )
        for m in SLOT_FILL_PATTERN.finditer(body)
    ]
    default_parts = [SLOT_FILL_PATTERN.sub("", body).strip()]
    if extends and outside.strip():
        default_parts.append(outside.strip())
    default_content = "\n".join(p for p in default_parts if p)

    return TemplateInfo(
        extends=extends,
        slots=slots,
        default_content=default_content,
        extends_start=extends_start,
        extends_end=extends_end,
    )


def anchor_template(info: TemplateInfo, source: str, pin: Optional[Tuple[int, int]] = None) -> TemplateInfo:
    """Move the spans of ``info`` onto ``source``, the text it was parsed from
    before includes were expanded.

    Include directives never sit inside template tags, so the extends tag and
    every slot fill written in the file are found in ``source`` in the same
    order. Fills that came in through an include have no source tag and are
    pinned to ``pin``, by default the extends tag.
    """
    raw = parse_template(source)
    pin_start, pin_end = pin if pin is not None else (raw.extends_start, raw.extends_end)
    pending = list(raw.slots)
    slots: List[SlotInfo] = []
    for slot in info.slots:
        match = next((s for s in pending if s.name == slot.name), None)
        if match is None:
            slots.append(dataclasses.replace(slot, start=pin_start, end=pin_end))
            continue
        pending.remove(match)
        slots.append(dataclasses.replace(slot, start=match.start, end=match.end))
    return dataclasses.replace(info, slots=slots, extends_start=pin_start, extends_end=pin_end)


def front_matter_span(source: str) -> Tuple[int, int]:
    """Span of the ``layout:`` line of markdown front matter, or (0, 0)."""
    front = FRONT_MATTER_PATTERN.match(source)
    if front is None:
        return 0, 0
    line = LAYOUT_KEY_PATTERN.search(front.group(0))
    if line is None:
        return 0, 0
    return line.start(), line.end()


def parse_placeholders(text: str) -> List[SlotPlaceholder]:
    """All ``<slot>`` placeholders declared in a layout, in document order."""
    placeholders: List[SlotPlaceholder] = []
    for m in SLOT_PATTERN.finditer(text):
        attrs = m.group(1) or ""
        name_match = SLOT_NAME_PATTERN.search(attrs)
        placeholders.append(
            SlotPlaceholder(
                name=name_match.group(1).strip() if name_match else "",
                fallback=m.group(2) or "",
                required=bool(SLOT_REQUIRED_PATTERN.search(attrs)),
                start=m.start(),
                end=m.end(),
            )
        )
    return placeholders


@dataclass
class CompositionResult:
    html: str
    diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass
class _Level:
    """One document in the layout chain, as seen by the layout it extends."""

    path: Path
    text: str
    info: TemplateInfo
    index: LineIndex


class LayoutChainError(Exception):
    """Internal: aborts a chain; carries the diagnostic to report."""

    def __init__(self, diagnostic: Diagnostic) -> None:
        super().__init__(diagnostic.message)
        self.diagnostic = diagnostic


class TemplateComposer(ContentTransformer):
    """Compose a document into its layout chain."""

    stage = "templates"

    def __init__(self, expander: Optional[IncludeExpander] = None) -> None:
        self.expander = expander or IncludeExpander()

    def transform(self, content: str, context: TransformContext) -> str:
        result = self.compose(
            content,
            context.document.path,
            context,
            layout=context.layout,
            source=context.document.text,
        )
        context.add_diagnostics(result.diagnostics)
        return result.html

    def compose(
        self,
        content: str,
        document_path: Path,
        context: TransformContext,
        layout: Optional[str] = None,
        source: Optional[str] = None,
    ) -> CompositionResult:
        """Wrap ``content`` in its layout chain.

        Args:
            content: Include-expanded document content
            document_path: Path of the document the content belongs to
            context: Render context
            layout: Layout reference overriding/supplying ``extends`` (markdown
                front matter)
            source: The document's own text, before include expansion and
                markdown conversion; diagnostic positions refer to it
                (defaults to ``content``)

        Returns:
            Composed HTML plus template/slot/layout diagnostics
        """
        source = content if source is None else source
        info = parse_template(content)
        if info.extends:
            info = anchor_template(info, source)
        elif layout:
            info = anchor_template(
                dataclasses.replace(info, extends=layout),
                source,
                pin=front_matter_span(source),
            )
        else:
            return CompositionResult(html=content)

        diagnostics: List[Diagnostic] = []
        orphans: List[str] = []
        current = _Level(normalize_path(document_path), content, info, LineIndex(source))
        chain: List[str] = [str(current.path)]

        try:
            while current.info.extends:
                if len(chain) > context.config.max_layout_depth:
                    raise LayoutChainError(
                        self._chain_diagnostic(
                            DiagnosticKind.MAX_DEPTH_EXCEEDED,
                            f"Maximum layout depth ({context.config.max_layout_depth}) exceeded at: "
                            f"{current.info.extends}",
                            current,
                        )
                    )
                layout_path = self._resolve_layout(current, context)
                if str(layout_path) in chain:
                    raise LayoutChainError(
                        self._chain_diagnostic(
                            DiagnosticKind.LAYOUT_CYCLE,
                            f"Circular layout chain: {' -> '.join([*chain, str(layout_path)])}",
                            current,
                        )
                    )
                layout_source, layout_text = self._load_layout(layout_path, current, context, diagnostics)
                context.tracker.record(current.path, layout_path)

                filled, level_orphans = self._fill_slots(layout_text, layout_path, current, diagnostics)
                orphans.extend(level_orphans)
                chain.append(str(layout_path))
                current = _Level(
                    layout_path,
                    filled,
                    anchor_template(parse_template(filled), layout_source),
                    LineIndex(layout_source),
                )
        except LayoutChainError as exc:
            diagnostics.append(exc.diagnostic)
            return CompositionResult(html=self._fallback(info, exc.diagnostic.message), diagnostics=diagnostics)

        html = current.text
        if orphans:
            html = html.rstrip("\n") + "\n" + "\n".join(orphans) + "\n"
        return CompositionResult(html=html, diagnostics=diagnostics)

    # ---- chain steps -----------------------------------------------------

    def _resolve_layout(self, level: _Level, context: TransformContext) -> Path:
        ref = level.info.extends or ""
        kind = IncludeKind.VIRTUAL if ref.startswith("/") else IncludeKind.FILE
        candidates = [context.resolver.resolve_path(ref, kind, level.path)]
        if kind is IncludeKind.FILE and not ref.startswith("."):
            candidates.append(
                context.resolver.resolve_path(f"{context.config.layouts}/{ref}", IncludeKind.VIRTUAL, level.path)
            )
        for candidate in candidates:
            if candidate is not None and context.store.exists(candidate):
                return candidate
        raise LayoutChainError(
            self._chain_diagnostic(DiagnosticKind.LAYOUT_NOT_FOUND, f"Layout not found: {ref}", level)
        )

    def _load_layout(
        self,
        layout_path: Path,
        level: _Level,
        context: TransformContext,
        diagnostics: List[Diagnostic],
    ) -> Tuple[str, str]:
        """Return the layout's own text and its include-expanded text."""
        try:
            text = context.store.read_text(layout_path)
        except BackingStoreError as exc:
            raise LayoutChainError(
                self._chain_diagnostic(
                    DiagnosticKind.BACKING_STORE_FAILURE,
                    f"Cannot read layout {level.info.extends}: {exc}",
                    level,
                )
            ) from exc
        document = SourceDocument.from_text(layout_path, text, context.source_root)
        expanded = self.expander.expand(document, context, (str(document.path),))
        diagnostics.extend(expanded.diagnostics)
        logger.debug("Composing %s into layout %s", level.path, layout_path)
        return text, expanded.content

    def _fill_slots(
        self,
        layout_text: str,
        layout_path: Path,
        child: _Level,
        diagnostics: List[Diagnostic],
    ) -> Tuple[str, List[str]]:
        fills: Dict[str, SlotInfo] = {}
        for slot in child.info.slots:
            if slot.name in fills:
                diagnostics.append(
                    make_diagnostic(
                        DiagnosticKind.DUPLICATE_SLOT,
                        f"Slot '{slot.name}' is filled more than once; the last fill wins",
                        category=Category.SLOT,
                        severity=Severity.WARNING,
                        path=child.path,
                        index=child.index,
                        start=slot.start,
                        end=slot.end,
                    )
                )
            fills[slot.name] = slot

        placeholders = parse_placeholders(layout_text)
        declared = {p.name for p in placeholders}
        missing_reported: set[str] = set()

        def replace_slot(match: re.Match[str]) -> str:
            attrs = match.group(1) or ""
            name_match = SLOT_NAME_PATTERN.search(attrs)
            name = name_match.group(1).strip() if name_match else ""
            fallback = match.group(2) or ""
            if not name:
                return child.info.default_content or fallback
            if name in fills:
                return fills[name].content
            if SLOT_REQUIRED_PATTERN.search(attrs) and name not in missing_reported:
                missing_reported.add(name)
                diagnostics.append(
                    make_diagnostic(
                        DiagnosticKind.MISSING_REQUIRED_SLOT,
                        f"Required slot '{name}' of {layout_path.name} is not filled",
                        category=Category.SLOT,
                        severity=Severity.WARNING,
                        path=child.path,
                        index=child.index,
                        start=child.info.extends_start,
                        end=child.info.extends_end,
                    )
                )
            return fallback

        filled = SLOT_PATTERN.sub(replace_slot, layout_text)

        orphans: List[str] = []
        for name, slot in fills.items():
            if name in declared:
                continue
            diagnostics.append(
                make_diagnostic(
                    DiagnosticKind.ORPHAN_SLOT_CONTENT,
                    f"Layout {layout_path.name} has no slot named '{name}'; content appended at the end",
                    category=Category.SLOT,
                    severity=Severity.WARNING,
                    path=child.path,
                    index=child.index,
                    start=slot.start,
                    end=slot.end,
                )
            )
            orphans.append(slot.content)
        if child.info.default_content and "" not in declared:
            diagnostics.append(
                make_diagnostic(
                    DiagnosticKind.ORPHAN_SLOT_CONTENT,
                    f"Layout {layout_path.name} has no default <slot>; content appended at the end",
                    category=Category.SLOT,
                    severity=Severity.WARNING,
                    path=child.path,
                    index=child.index,
                    start=child.info.extends_start,
                    end=child.info.extends_end,
                )
            )
            orphans.append(child.info.default_content)
        return filled, orphans

    # ---- failures ----------------------------------------------------------

    def _chain_diagnostic(self, kind: DiagnosticKind, message: str, level: _Level) -> Diagnostic:
        return make_diagnostic(
            kind,
            message,
            category=Category.LAYOUT,
            path=level.path,
            index=level.index,
            start=level.info.extends_start,
            end=level.info.extends_end,
        )

    def _fallback(self, info: TemplateInfo, message: str) -> str:
        """The document's own content preceded by a visible error notice."""
        parts = [error_marker(message, Category.LAYOUT)]
        if info.default_content:
            parts.append(info.default_content)
        parts.extend(slot.content for slot in info.slots)
        return "\n".join(parts) + "\n"


__all__ = [
    "CompositionResult",
    "TemplateComposer",
    "anchor_template",
    "parse_placeholders",
    "parse_template",
]
