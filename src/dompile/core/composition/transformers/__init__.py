"""Render pipeline stages.

Each stage is a ContentTransformer; RenderPipeline runs them in order:
markdown (markdown files only), includes, templates, head, assets.
"""
from .assets import AssetCollector, asset_references
from .base import ContentTransformer, TransformContext, TransformerPipeline, make_diagnostic
from .head import HeadInjector, HeadTransformer
from .includes import INCLUDE_PATTERN, ExpansionResult, IncludeExpander, SourceAnchors, find_directives
from .markdown import (
    MarkdownProcessor,
    MarkdownResult,
    MarkdownTransformer,
    MinimalMarkdownProcessor,
    PythonMarkdownProcessor,
    create_markdown_processor,
    is_markdown_file,
)
from .templates import CompositionResult, TemplateComposer, anchor_template, parse_placeholders, parse_template

__all__ = [
    "AssetCollector",
    "asset_references",
    "ContentTransformer",
    "TransformContext",
    "TransformerPipeline",
    "make_diagnostic",
    "HeadInjector",
    "HeadTransformer",
    "INCLUDE_PATTERN",
    "ExpansionResult",
    "IncludeExpander",
    "SourceAnchors",
    "find_directives",
    "MarkdownProcessor",
    "MarkdownResult",
    "MarkdownTransformer",
    "MinimalMarkdownProcessor",
    "PythonMarkdownProcessor",
    "create_markdown_processor",
    "is_markdown_file",
    "CompositionResult",
    "TemplateComposer",
    "anchor_template",
    "parse_placeholders",
    "parse_template",
]
