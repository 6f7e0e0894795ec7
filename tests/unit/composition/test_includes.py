"""Include expansion: resolution, cycles, depth bound, diagnostics."""
from __future__ import annotations

from pathlib import Path

from dompile.core.composition import (
    DiagnosticKind,
    IncludeKind,
    OverlayStore,
    RenderPipeline,
    Severity,
    SourceDocument,
    find_directives,
)
from dompile.core.exceptions import BackingStoreError


def _expand(site, relative: str, pipeline: RenderPipeline | None = None, **changes):
    pipeline = pipeline or site.pipeline(**changes)
    document = SourceDocument.load(site.path(relative), pipeline.config.source_root, pipeline.store)
    context = pipeline.new_context(document)
    result = pipeline.expander.expand(document, context)
    return result, context


class UnreadableStore(OverlayStore):
    """Reports ``broken`` as existing but fails to read it."""

    def __init__(self, broken: Path) -> None:
        super().__init__()
        self.broken = broken

    def read_text(self, path: Path) -> str:
        if Path(path) == self.broken:
            raise BackingStoreError(f"Cannot read {path}: permission denied", path=str(path))
        return super().read_text(path)


def test_find_directives_reports_kind_path_and_span() -> None:
    text = 'a<!--#include virtual="/nav.html"-->b<!--#INCLUDE FILE="x.html" -->'

    directives = find_directives(text)

    assert [(d.kind, d.raw_path) for d in directives] == [
        (IncludeKind.VIRTUAL, "/nav.html"),
        (IncludeKind.FILE, "x.html"),
    ]
    assert text[directives[0].start:directives[0].end] == '<!--#include virtual="/nav.html"-->'


class TestExpansion:
    def test_include_is_replaced_and_surroundings_kept_byte_for_byte(self, site) -> None:
        site.write("nav.html", "<nav>\n  menu\n</nav>")
        site.write("index.html", 'A  \r\n<!--#include file="nav.html" -->\t B')

        result, _ = _expand(site, "index.html")

        assert result.content == "A  \r\n<nav>\n  menu\n</nav>\t B"
        assert result.diagnostics == []

    def test_directive_keywords_are_case_insensitive(self, site) -> None:
        site.write("nav.html", "NAV")
        site.write("index.html", '<!--#INCLUDE Virtual="nav.html"-->')

        result, _ = _expand(site, "index.html")

        assert result.content == "NAV"

    def test_malformed_directives_are_left_alone(self, site) -> None:
        text = "<!--#include virtual='nav.html'--> <!--#include bogus=\"nav.html\"-->"
        site.write("nav.html", "NAV")
        site.write("index.html", text)

        result, _ = _expand(site, "index.html")

        assert result.content == text

    def test_nested_includes_expand_depth_first(self, site) -> None:
        site.write("shared/nav.html", '<nav><!--#include file="links.html"--></nav>')
        site.write("shared/links.html", "<a>home</a>")
        site.write("pages/deep/x.html", '<!--#include virtual="shared/nav.html"-->')

        result, context = _expand(site, "pages/deep/x.html")

        assert result.content == "<nav><a>home</a></nav>"
        assert context.tracker.get_dependencies(site.path("pages/deep/x.html")) == [
            str(site.path("shared/nav.html")),
            str(site.path("shared/links.html")),
        ]

    def test_same_file_twice_is_not_a_cycle(self, site) -> None:
        site.write("hr.html", "<hr>")
        site.write("index.html", '<!--#include file="hr.html"--><!--#include file="hr.html"-->')

        result, context = _expand(site, "index.html")

        assert result.content == "<hr><hr>"
        assert result.diagnostics == []
        assert context.tracker.get_dependencies(site.path("index.html")) == [str(site.path("hr.html"))]


class TestIncludeErrors:
    def test_missing_include_reports_one_diagnostic_at_directive(self, site) -> None:
        directive = '<!--#include file="missing.html"-->'
        site.write("index.html", f"line one\n  {directive} tail")

        result, _ = _expand(site, "index.html")

        assert len(result.diagnostics) == 1
        diagnostic = result.diagnostics[0]
        assert diagnostic.kind is DiagnosticKind.INCLUDE_NOT_FOUND
        assert diagnostic.severity is Severity.ERROR
        assert diagnostic.path == str(site.path("index.html"))
        assert "missing.html" in diagnostic.message
        assert (diagnostic.range.start.line, diagnostic.range.start.character) == (1, 2)
        assert (diagnostic.range.end.line, diagnostic.range.end.character) == (1, 2 + len(directive))
        assert result.content.startswith("line one\n  <mark")
        assert result.content.endswith("</mark> tail")

    def test_self_include_reports_single_cycle(self, site) -> None:
        site.write("loop.html", 'before <!--#include file="loop.html"--> after')

        result, _ = _expand(site, "loop.html")

        kinds = [d.kind for d in result.diagnostics]
        assert kinds == [DiagnosticKind.INCLUDE_CYCLE]
        assert result.content.startswith("before <mark")
        assert "Circular include" in result.content
        assert result.content.endswith(" after")

    def test_mutual_cycle_is_reported_where_it_closes(self, site) -> None:
        site.write("a.html", 'A<!--#include file="b.html"-->')
        site.write("b.html", 'B<!--#include file="a.html"-->')

        result, context = _expand(site, "a.html")

        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.INCLUDE_CYCLE]
        assert result.diagnostics[0].path == str(site.path("b.html"))
        assert result.content.startswith("AB<mark")
        assert context.tracker.has_cycle(site.path("a.html")) is False

    def test_depth_bound_reports_once_where_crossed(self, site) -> None:
        for level in range(1, 6):
            site.write(f"l{level}.html", f'L{level}<!--#include file="l{level + 1}.html"-->')
        site.write("l6.html", "L6")
        site.write("index.html", '<!--#include file="l1.html"-->')

        result, _ = _expand(site, "index.html", max_include_depth=3)

        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.MAX_DEPTH_EXCEEDED]
        assert result.diagnostics[0].path == str(site.path("l3.html"))
        assert result.content.startswith("L1L2L3<mark")
        assert "L4" not in result.content

    def test_diagnostics_follow_depth_first_directive_order(self, site) -> None:
        site.write("a.html", '<!--#include file="first-missing.html"-->')
        site.write(
            "index.html",
            '<!--#include file="a.html"--><!--#include file="second-missing.html"-->',
        )

        result, _ = _expand(site, "index.html")

        assert [d.message for d in result.diagnostics] == [
            "Include file not found: first-missing.html",
            "Include file not found: second-missing.html",
        ]
        assert [d.path for d in result.diagnostics] == [
            str(site.path("a.html")),
            str(site.path("index.html")),
        ]

    def test_directory_target_is_not_found(self, site) -> None:
        (site.src / "shared").mkdir()
        site.write("index.html", '<!--#include virtual="shared"-->')

        result, _ = _expand(site, "index.html")

        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.INCLUDE_NOT_FOUND]

    def test_path_outside_project_is_not_found(self, site) -> None:
        site.write("index.html", '<!--#include file="../../../../etc/hosts"-->')

        result, _ = _expand(site, "index.html")

        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.INCLUDE_NOT_FOUND]

    def test_unreadable_include_is_local_failure(self, site) -> None:
        broken = site.write("broken.html", "never read")
        site.write("ok.html", "OK")
        site.write("index.html", '<!--#include file="broken.html"-->|<!--#include file="ok.html"-->')
        pipeline = RenderPipeline(site.config(), store=UnreadableStore(broken))

        result, context = _expand(site, "index.html", pipeline=pipeline)

        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.BACKING_STORE_FAILURE]
        assert result.content.endswith("</mark>|OK")
        assert context.tracker.get_dependencies(site.path("index.html")) == [str(site.path("ok.html"))]
