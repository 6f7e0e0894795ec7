"""Per-render dependency graph.

Edges are recorded as ``from_file -> to_file`` when a file successfully
includes (or extends) another. The graph is an insertion-ordered adjacency
mapping, so traversals come back in the order directives were encountered.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterator, List, Set

from .models import DependencyEdge, normalize_path


def _key(path: Path | str) -> str:
    return str(normalize_path(path))


class DependencyTracker:
    """Adjacency mapping of recorded include/extends edges."""

    def __init__(self) -> None:
        # dict-as-ordered-set keeps first-recorded order and makes record() idempotent
        self._edges: Dict[str, Dict[str, None]] = {}

    def record(self, from_file: Path | str, to_file: Path | str) -> None:
        self._edges.setdefault(_key(from_file), {})[_key(to_file)] = None

    def get_dependencies(self, root_file: Path | str) -> List[str]:
        """Files reachable from ``root_file``, depth-first preorder, each once.

        The root itself is not part of its own dependency list.
        """
        root = _key(root_file)
        seen: Set[str] = {root}
        ordered: List[str] = []
        stack: List[str] = list(reversed(self._edges.get(root, {})))
        while stack:
            node = stack.pop()
            if node in seen:
                continue
            seen.add(node)
            ordered.append(node)
            stack.extend(reversed(self._edges.get(node, {})))
        return ordered

    def has_cycle(self, path: Path | str) -> bool:
        """True when ``path`` can reach itself over recorded edges."""
        start = _key(path)
        seen: Set[str] = set()
        stack: List[str] = list(self._edges.get(start, {}))
        while stack:
            node = stack.pop()
            if node == start:
                return True
            if node in seen:
                continue
            seen.add(node)
            stack.extend(self._edges.get(node, {}))
        return False

    def get_dependents(self, path: Path | str) -> List[str]:
        """Files that directly or transitively depend on ``path``.

        This is the reverse lookup an incremental build needs: when ``path``
        changes, every returned file must be re-rendered.
        """
        target = _key(path)
        reverse: Dict[str, List[str]] = {}
        for src, targets in self._edges.items():
            for dst in targets:
                reverse.setdefault(dst, []).append(src)

        ordered: List[str] = []
        seen: Set[str] = {target}
        queue: List[str] = list(reverse.get(target, []))
        while queue:
            node = queue.pop(0)
            if node in seen:
                continue
            seen.add(node)
            ordered.append(node)
            queue.extend(reverse.get(node, []))
        return ordered

    def edges(self) -> Iterator[DependencyEdge]:
        for src, targets in self._edges.items():
            for dst in targets:
                yield DependencyEdge(src, dst)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        key = _key(path)
        return key in self._edges or any(key in targets for targets in self._edges.values())

    def __len__(self) -> int:
        return sum(len(targets) for targets in self._edges.values())


__all__ = ["DependencyTracker"]
