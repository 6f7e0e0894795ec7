"""RenderPipeline end to end."""
from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from dompile.core.composition import (
    Category,
    DiagnosticKind,
    MinimalMarkdownProcessor,
    OverlayStore,
    RenderPipeline,
    RenderResult,
    SourceDocument,
    render_file,
)
from dompile.core.composition.error_page import ERROR_PAGE_TITLE
from dompile.core.exceptions import RenderError


class BrokenMarkdown(MinimalMarkdownProcessor):
    def transform(self, text, path, source_root, pretty_urls=False):
        raise ValueError("converter exploded")


SITE = {
    "includes/head.html": '<meta charset="utf-8">',
    "includes/nav.html": '<nav><!--#include file="links.html"--></nav>',
    "includes/links.html": '<a href="/">home</a>',
    "includes/footer.html": "<footer>f</footer>",
    "layouts/base.html": (
        "<html><head><title><slot name=\"title\">Site</slot></title></head>"
        '<body><!--#include virtual="includes/nav.html"--><slot></slot>'
        '<!--#include virtual="includes/footer.html"--></body></html>'
    ),
    "index.html": (
        '<template extends="base.html">'
        '<template slot="title">Home</template>'
        "<h1>Welcome</h1>"
        "</template>"
    ),
}


class TestRender:
    def test_full_render(self, site) -> None:
        site.write_files(SITE)

        result = site.render("index.html")

        assert result.html == (
            '<html><head><title>Home</title><meta charset="utf-8"></head>'
            '<body><nav><a href="/">home</a></nav><h1>Welcome</h1><footer>f</footer></body></html>'
        )
        assert result.diagnostics == []
        assert result.ok

    def test_dependencies_are_ordered_and_unique(self, site) -> None:
        site.write_files(SITE)

        result = site.render("index.html")

        assert result.dependencies == [
            str(site.path("layouts/base.html")),
            str(site.path("includes/nav.html")),
            str(site.path("includes/links.html")),
            str(site.path("includes/footer.html")),
            str(site.path("includes/head.html")),
        ]
        assert str(site.path("index.html")) not in result.dependencies

    def test_rendering_twice_gives_equal_independent_results(self, site) -> None:
        site.write_files(SITE)
        pipeline = site.pipeline()

        first = pipeline.render(site.path("index.html"))
        second = pipeline.render(site.path("index.html"))

        assert first.html == second.html
        assert first.dependencies == second.dependencies
        assert first.dependencies is not second.dependencies

    def test_text_argument_overrides_disk(self, site) -> None:
        site.write_files(SITE)

        result = site.pipeline().render(site.path("index.html"), text="<p>unsaved</p>")

        assert result.html == "<p>unsaved</p>"

    def test_overlay_store_serves_unsaved_includes(self, site) -> None:
        site.write_files(SITE)
        store = OverlayStore(overlays={site.path("includes/footer.html"): "<footer>draft</footer>"})
        pipeline = RenderPipeline(site.config(), store=store)

        result = pipeline.render(site.path("index.html"))

        assert "<footer>draft</footer>" in result.html

    def test_render_file_helper(self, site) -> None:
        site.write("index.html", "<p>x</p>")

        assert render_file(site.config(), site.path("index.html")).html == "<p>x</p>"

    def test_result_to_dict(self, site) -> None:
        site.write("index.html", '<!--#include file="nope.html"-->')

        payload = site.render("index.html").to_dict()

        assert payload["dependencies"] == []
        assert payload["diagnostics"][0]["kind"] == "IncludeNotFound"
        assert payload["diagnostics"][0]["severity"] == "error"
        assert payload["diagnostics"][0]["range"]["start"] == {"line": 0, "character": 0}


class TestErrorState:
    def test_unreadable_document_gives_error_page(self, site) -> None:
        result = site.pipeline().render(site.path("missing.html"))

        assert isinstance(result, RenderResult)
        assert ERROR_PAGE_TITLE in result.html
        assert len(result.diagnostics) == 1
        assert result.diagnostics[0].kind is DiagnosticKind.BACKING_STORE_FAILURE
        assert result.diagnostics[0].category is Category.TEMPLATE
        assert result.diagnostics[0].is_error
        assert result.dependencies == []

    def test_error_page_escapes_message(self, site) -> None:
        result = site.pipeline().render(site.path("<script>.html"))

        assert "<script>.html" not in result.html
        assert "&lt;script&gt;.html" in result.html

    def test_branch_failures_do_not_abort(self, site) -> None:
        site.write(
            "index.html",
            '<head></head><!--#include file="gone.html"--><p>still here</p><!--#include file="index.html"-->',
        )

        result = site.render("index.html")

        kinds: List[DiagnosticKind] = [d.kind for d in result.diagnostics]
        assert kinds == [DiagnosticKind.INCLUDE_NOT_FOUND, DiagnosticKind.INCLUDE_CYCLE]
        assert "<p>still here</p>" in result.html
        assert ERROR_PAGE_TITLE not in result.html

    def test_unexpected_stage_failure_gives_error_page(self, site) -> None:
        site.write("notes.md", "# Notes\n")
        pipeline = RenderPipeline(site.config(), markdown=BrokenMarkdown())

        result = pipeline.render(site.path("notes.md"))

        assert ERROR_PAGE_TITLE in result.html
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.RENDER_FAILURE]
        assert "markdown stage failed: converter exploded" in result.diagnostics[0].message

    def test_stage_failure_is_raised_as_render_error(self, site) -> None:
        site.write("notes.md", "# Notes\n")
        pipeline = RenderPipeline(site.config(), markdown=BrokenMarkdown())
        document = SourceDocument.load(site.path("notes.md"), site.config().source_root, pipeline.store)
        context = pipeline.new_context(document)

        with pytest.raises(RenderError) as excinfo:
            pipeline.build_pipeline(document).execute(document.text, context)

        assert excinfo.value.context["stage"] == "markdown"
        assert isinstance(excinfo.value.__cause__, ValueError)


class TestConcurrency:
    def test_shared_pipeline_across_threads(self, site) -> None:
        from concurrent.futures import ThreadPoolExecutor

        site.write_files(SITE)
        for n in range(8):
            site.write(f"pages/p{n}.html", f'<template extends="/layouts/base.html">page {n}</template>')
        pipeline = site.pipeline()
        paths: List[Path] = [site.path(f"pages/p{n}.html") for n in range(8)]

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(pipeline.render, paths))

        for n, result in enumerate(results):
            assert f"page {n}" in result.html
            assert result.diagnostics == []
            assert result.dependencies[0] == str(site.path("layouts/base.html"))
