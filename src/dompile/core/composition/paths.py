"""Include target resolution.

``virtual`` targets resolve against the source root no matter how deep the
including file lives; ``file`` targets resolve against the including file's
directory. Resolution never raises: anything that cannot be used comes back
with ``exists=False`` so the caller can report it and carry on.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from dompile.core.config.render import PathConfinement

from .models import IncludeDirective, IncludeKind, ResolvedInclude, normalize_path
from .storage import BackingStore

logger = logging.getLogger(__name__)


class PathResolver:
    """Resolve include and layout references to absolute paths."""

    def __init__(
        self,
        project_root: Path,
        source_root: Path,
        store: BackingStore,
        confinement: PathConfinement = "confined",
    ) -> None:
        if confinement not in ("confined", "unconfined"):
            raise ValueError(f"Unknown path confinement policy: {confinement!r}")
        self.project_root = normalize_path(project_root)
        self.source_root = normalize_path(source_root)
        self.store = store
        self.confinement = confinement

    def resolve(self, directive: IncludeDirective, including_file: Path) -> ResolvedInclude:
        resolved = self.resolve_path(directive.raw_path, directive.kind, including_file)
        exists = resolved is not None and self.store.exists(resolved)
        if not exists:
            logger.debug("Include %s=%r from %s did not resolve", directive.kind.value, directive.raw_path, including_file)
        return ResolvedInclude(directive=directive, resolved_path=resolved, exists=exists)

    def resolve_path(self, raw_path: str, kind: IncludeKind, including_file: Path) -> Optional[Path]:
        """Absolute path for ``raw_path``, or None when the policy rejects it."""
        target = raw_path.strip().replace("\\", "/")
        if not target:
            return None

        if kind is IncludeKind.VIRTUAL:
            candidate = self.source_root / target.lstrip("/")
        elif target.startswith("/"):
            candidate = Path(target)
        else:
            candidate = normalize_path(including_file).parent / target

        resolved = normalize_path(candidate)
        if not self.is_allowed(resolved):
            logger.warning("Rejected %s: outside project root %s", resolved, self.project_root)
            return None
        return resolved

    def is_allowed(self, path: Path) -> bool:
        if self.confinement == "unconfined":
            return True
        return path == self.project_root or self.project_root in path.parents


__all__ = ["PathResolver"]
