"""Markdown stage: processors, front matter and layouts."""
from __future__ import annotations

import pytest

from dompile.core.composition import (
    DiagnosticKind,
    MinimalMarkdownProcessor,
    PythonMarkdownProcessor,
    is_markdown_file,
)
from dompile.core.composition.transformers.markdown import (
    create_markdown_processor,
    rewrite_page_links,
    split_front_matter,
)
from dompile.core.config import MarkdownSettings


class TestFrontMatter:
    def test_mapping_front_matter_is_split_off(self) -> None:
        metadata, body = split_front_matter("---\nlayout: page.html\ntitle: Hi\n---\n# Body\n")

        assert metadata == {"layout": "page.html", "title": "Hi"}
        assert body == "# Body\n"

    def test_without_front_matter(self) -> None:
        assert split_front_matter("# Body\n") == ({}, "# Body\n")

    def test_invalid_yaml_is_kept_as_body(self) -> None:
        text = "---\nlayout: [unclosed\n---\nbody"

        assert split_front_matter(text) == ({}, text)

    def test_non_mapping_is_kept_as_body(self) -> None:
        text = "---\n- a\n- b\n---\nbody"

        assert split_front_matter(text) == ({}, text)


class TestLinks:
    def test_markdown_links_point_at_html(self) -> None:
        html = '<a href="guide.md">g</a><a href="docs/setup.md#step-2">s</a>'

        assert rewrite_page_links(html) == '<a href="guide.html">g</a><a href="docs/setup.html#step-2">s</a>'

    def test_pretty_urls(self) -> None:
        html = '<a href="guide.md">g</a><a href="docs/index.md">d</a><a href="index.md">i</a>'

        assert rewrite_page_links(html, pretty_urls=True) == (
            '<a href="guide/">g</a><a href="docs/">d</a><a href="./">i</a>'
        )

    def test_external_links_untouched(self) -> None:
        html = '<a href="https://example.com/readme.md">x</a><a href="#notes.md">y</a>'

        assert rewrite_page_links(html) == html


class TestProcessors:
    def test_is_markdown_file(self) -> None:
        assert is_markdown_file("a/b.md")
        assert is_markdown_file("README.MARKDOWN")
        assert not is_markdown_file("index.html")

    def test_python_markdown_converts_and_reads_layout(self, tmp_path) -> None:
        processor = PythonMarkdownProcessor(["extra"])

        result = processor.transform(
            "---\nlayout: page.html\n---\n# Title\n\nSee [guide](guide.md).\n",
            tmp_path / "index.md",
            tmp_path,
        )

        assert "Title</h1>" in result.html
        assert '<a href="guide.html">guide</a>' in result.html
        assert result.layout == "page.html"
        assert result.metadata == {"layout": "page.html"}

    def test_minimal_processor(self, tmp_path) -> None:
        result = MinimalMarkdownProcessor().transform(
            '# Title\n\nA < B\n\n<!--#include file="x.html"-->\n',
            tmp_path / "index.md",
            tmp_path,
        )

        assert result.html == '<h1>Title</h1>\n<p>A &lt; B</p>\n<!--#include file="x.html"-->\n'
        assert result.layout is None

    def test_factory_follows_settings(self) -> None:
        assert isinstance(create_markdown_processor(MarkdownSettings(processor="minimal")), MinimalMarkdownProcessor)
        assert isinstance(create_markdown_processor(MarkdownSettings()), PythonMarkdownProcessor)
        with pytest.raises(ValueError):
            create_markdown_processor(MarkdownSettings(processor="pandoc"))  # type: ignore[arg-type]


class TestMarkdownPages:
    def test_front_matter_layout_wraps_markdown(self, site) -> None:
        site.write_files({
            "layouts/page.html": "<article><slot></slot></article>",
            "notes.md": "---\nlayout: page.html\n---\nHello *world*\n",
        })

        result = site.render("notes.md")

        assert result.html.startswith("<article>")
        assert "<em>world</em>" in result.html
        assert result.html.endswith("</article>")
        assert result.dependencies == [str(site.path("layouts/page.html"))]

    def test_default_layout_from_config(self, site) -> None:
        site.write_files({
            "layouts/page.html": "<main><slot></slot></main>",
            "notes.md": "# Notes\n",
        })

        result = site.render(
            "notes.md",
            markdown=MarkdownSettings(processor="minimal", default_layout="page.html"),
        )

        assert result.html == "<main><h1>Notes</h1></main>"

    def test_includes_inside_markdown(self, site) -> None:
        site.write_files({
            "includes/note.html": "<aside>note</aside>",
            "notes.md": '# Notes\n\n<!--#include virtual="includes/note.html"-->\n',
        })

        result = site.render("notes.md", markdown=MarkdownSettings(processor="minimal"))

        assert result.html == "<h1>Notes</h1>\n<aside>note</aside>\n"

    def test_html_pages_skip_markdown(self, site) -> None:
        site.write("index.html", "# not a heading")

        assert site.render("index.html").html == "# not a heading"

    def test_front_matter_is_exposed_on_the_result(self, site) -> None:
        site.write("notes.md", "---\ntitle: Notes\ntags: [a, b]\n---\n# Notes\n")

        result = site.render("notes.md")

        assert result.metadata == {"title": "Notes", "tags": ["a", "b"]}
        assert result.to_dict()["metadata"] == {"title": "Notes", "tags": ["a", "b"]}


class TestMarkdownDiagnosticPositions:
    @pytest.mark.parametrize("processor", ["markdown", "minimal"])
    def test_include_line_refers_to_markdown_source(self, site, processor: str) -> None:
        directive = '<!--#include virtual="includes/missing.html"-->'
        site.write("page.md", (
            "---\n"
            "title: Notes\n"
            "---\n"
            "# Title\n"
            "\n"
            "First paragraph.\n"
            "\n"
            "Second paragraph.\n"
            "\n"
            f"{directive}\n"
        ))

        result = site.render("page.md", markdown=MarkdownSettings(processor=processor))

        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.INCLUDE_NOT_FOUND]
        diagnostic = result.diagnostics[0]
        assert diagnostic.path == str(site.path("page.md"))
        assert (diagnostic.range.start.line, diagnostic.range.start.character) == (9, 0)
        assert (diagnostic.range.end.line, diagnostic.range.end.character) == (9, len(directive))

    def test_directives_are_matched_in_order(self, site) -> None:
        site.write_files({
            "includes/note.html": "<aside>note</aside>",
            "page.md": (
                '<!--#include virtual="includes/note.html"-->\n'
                "\n"
                "Some text.\n"
                "\n"
                '<!--#include virtual="includes/gone.html"-->\n'
            ),
        })

        result = site.render("page.md")

        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.INCLUDE_NOT_FOUND]
        assert result.diagnostics[0].range.start.line == 4

    def test_missing_front_matter_layout_points_at_layout_key(self, site) -> None:
        site.write("page.md", "---\ntitle: x\nlayout: nope.html\n---\nbody\n")

        result = site.render("page.md")

        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.LAYOUT_NOT_FOUND]
        diagnostic = result.diagnostics[0]
        assert (diagnostic.range.start.line, diagnostic.range.start.character) == (2, 0)
        assert diagnostic.range.end.character == len("layout: nope.html")
