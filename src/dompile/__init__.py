"""
dompile - static-site template preprocessor

Resolves server-side include directives, layout/slot templates, markdown
pages and head snippets, and tracks the files every rendered document
depends on so previews and incremental builds know what to refresh.
"""

__version__ = "0.4.0"
__all__ = ["__version__"]
