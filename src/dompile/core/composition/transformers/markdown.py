"""Markdown stage.

Two interchangeable processors implement the MarkdownProcessor capability:

- PythonMarkdownProcessor: full conversion through Python-Markdown
- MinimalMarkdownProcessor: headings and paragraphs only, for hosts that want
  a cheap preview

Which one a pipeline uses is decided once, by ``create_markdown_processor``
from the render config, when the pipeline is built.
"""
from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Protocol, Tuple

import markdown as python_markdown
import yaml

from dompile.core.config.render import MarkdownSettings

from .base import ContentTransformer, TransformContext

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIXES = (".md", ".markdown")
FRONT_MATTER_PATTERN = re.compile(r"\A---[ \t]*\n(.*?)\n---[ \t]*(?:\n|\Z)", re.DOTALL)
_MD_LINK_RE = re.compile(r'href="(?![a-zA-Z][a-zA-Z0-9+.-]*:|/{2}|#)([^"#?]+)\.(?:md|markdown)([#?][^"]*)?"')


def is_markdown_file(path: Path | str) -> bool:
    return Path(path).suffix.lower() in MARKDOWN_SUFFIXES


def split_front_matter(text: str) -> Tuple[Dict[str, Any], str]:
    """Return (metadata, body). Invalid or non-mapping front matter is kept as body."""
    match = FRONT_MATTER_PATTERN.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        logger.warning("Ignoring invalid front matter: %s", exc)
        return {}, text
    if not isinstance(data, dict):
        return {}, text
    return data, text[match.end():]


def rewrite_page_links(html_text: str, pretty_urls: bool = False) -> str:
    """Point relative links at ``.md`` pages to their rendered output."""

    def repl(match: re.Match[str]) -> str:
        base, suffix = match.group(1), match.group(2) or ""
        if not pretty_urls:
            return f'href="{base}.html{suffix}"'
        if base == "index" or base.endswith("/index"):
            target = base[: -len("index")] or "./"
        else:
            target = f"{base}/"
        return f'href="{target}{suffix}"'

    return _MD_LINK_RE.sub(repl, html_text)


@dataclass
class MarkdownResult:
    html: str
    layout: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class MarkdownProcessor(Protocol):
    """Markdown capability consumed by the pipeline."""

    def is_markdown_file(self, path: Path | str) -> bool:
        ...

    def transform(self, text: str, path: Path, source_root: Path, pretty_urls: bool = False) -> MarkdownResult:
        ...


def _layout_from(metadata: Dict[str, Any]) -> Optional[str]:
    layout = metadata.get("layout")
    if not layout:
        return None
    return str(layout).strip() or None


class PythonMarkdownProcessor:
    """Python-Markdown backed processor."""

    def __init__(self, extensions: Iterable[str] = MarkdownSettings.extensions) -> None:
        self.extensions = list(extensions)

    def is_markdown_file(self, path: Path | str) -> bool:
        return is_markdown_file(path)

    def transform(self, text: str, path: Path, source_root: Path, pretty_urls: bool = False) -> MarkdownResult:
        metadata, body = split_front_matter(text)
        converter = python_markdown.Markdown(extensions=self.extensions)
        rendered = converter.convert(body)
        return MarkdownResult(
            html=rewrite_page_links(rendered, pretty_urls),
            layout=_layout_from(metadata),
            metadata=metadata,
        )


class MinimalMarkdownProcessor:
    """Headings and paragraphs; raw HTML blocks pass through, other text is escaped."""

    HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)\s*#*\s*$")

    def is_markdown_file(self, path: Path | str) -> bool:
        return is_markdown_file(path)

    def transform(self, text: str, path: Path, source_root: Path, pretty_urls: bool = False) -> MarkdownResult:
        metadata, body = split_front_matter(text)
        blocks = []
        for block in re.split(r"\n\s*\n", body.strip()):
            block = block.strip()
            if not block:
                continue
            # include directives and <template> wrappers live in raw HTML blocks
            if block.startswith("<"):
                blocks.append(block)
                continue
            heading = self.HEADING_RE.match(block)
            if heading and "\n" not in block:
                level = len(heading.group(1))
                blocks.append(f"<h{level}>{html.escape(heading.group(2))}</h{level}>")
            else:
                blocks.append(f"<p>{html.escape(block.strip())}</p>")
        return MarkdownResult(html="\n".join(blocks) + ("\n" if blocks else ""), layout=_layout_from(metadata), metadata=metadata)


def create_markdown_processor(settings: MarkdownSettings) -> MarkdownProcessor:
    """Pick the markdown capability for a pipeline."""
    if settings.processor == "minimal":
        return MinimalMarkdownProcessor()
    if settings.processor == "markdown":
        return PythonMarkdownProcessor(settings.extensions)
    raise ValueError(f"Unknown markdown processor: {settings.processor!r}")


class MarkdownTransformer(ContentTransformer):
    """Pipeline stage: convert markdown, expose front matter layout to later stages."""

    stage = "markdown"

    def __init__(self, processor: MarkdownProcessor) -> None:
        self.processor = processor

    def transform(self, content: str, context: TransformContext) -> str:
        result = self.processor.transform(
            content,
            context.document.path,
            context.source_root,
            pretty_urls=context.config.pretty_urls,
        )
        context.metadata = dict(result.metadata)
        context.layout = result.layout or context.config.markdown.default_layout
        return result.html


__all__ = [
    "MarkdownProcessor",
    "MarkdownResult",
    "MarkdownTransformer",
    "MinimalMarkdownProcessor",
    "PythonMarkdownProcessor",
    "create_markdown_processor",
    "is_markdown_file",
    "rewrite_page_links",
    "split_front_matter",
]
