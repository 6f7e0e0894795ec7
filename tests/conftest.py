from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Dict

import pytest

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'dompile'
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from dompile.core.composition import RenderPipeline  # noqa: E402
from dompile.core.composition.models import normalize_path  # noqa: E402
from dompile.core.config import RenderConfig  # noqa: E402
from dompile.core.utils.logging_setup import reset_stdlib_logging_for_tests  # noqa: E402


class Site:
    """A throwaway project tree: ``<root>/src/...`` plus helpers to render it."""

    def __init__(self, root: Path) -> None:
        self.root = root.resolve()
        self.src = root / "src"
        self.src.mkdir(parents=True, exist_ok=True)

    def write(self, relative: str, text: str) -> Path:
        """Write ``text`` to ``src/<relative>`` and return the absolute path."""
        path = self.src / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    def write_files(self, files: Dict[str, str]) -> None:
        for relative, text in files.items():
            self.write(relative, text)

    def path(self, relative: str) -> Path:
        return normalize_path(self.src / relative)

    def config(self, **changes) -> RenderConfig:
        return RenderConfig(project_root=self.root, **changes)

    def pipeline(self, **changes) -> RenderPipeline:
        return RenderPipeline(self.config(**changes))

    def render(self, relative: str, **changes):
        return self.pipeline(**changes).render(self.path(relative))


@pytest.fixture
def site(tmp_path: Path) -> Site:
    """Empty project rooted at ``tmp_path`` with a ``src/`` source root."""
    return Site(tmp_path / "project")


@pytest.fixture
def make_site(tmp_path: Path) -> Callable[[str], Site]:
    """Factory for additional projects under ``tmp_path``."""

    def _make(name: str) -> Site:
        return Site(tmp_path / name)

    return _make


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    reset_stdlib_logging_for_tests()
