"""Whole-document error page shown when a render cannot complete."""
from __future__ import annotations

from typing import Optional

from jinja2 import Environment

from dompile.data import read_text

ERROR_PAGE_TITLE = "dompile Preview Error"


def render_error_page(message: str, path: Optional[str] = None) -> str:
    env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)
    template = env.from_string(read_text("templates", "error.html"))
    return template.render(title=ERROR_PAGE_TITLE, message=message, path=path)


__all__ = ["ERROR_PAGE_TITLE", "render_error_page"]
