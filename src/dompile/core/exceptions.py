from __future__ import annotations

from typing import Any, Dict, Mapping


class DompileError(Exception):
    """Base exception for dompile."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class BackingStoreError(DompileError, OSError):
    """Raised when a backing file cannot be read."""

    def __init__(self, message: str = "", *, path: str | None = None, context: Mapping[str, Any] | None = None) -> None:
        ctx = dict(context or {})
        if path is not None:
            ctx.setdefault("path", path)
        DompileError.__init__(self, message, context=ctx)
        OSError.__init__(self, message)
        self.path = path


class ConfigError(DompileError, ValueError):
    """Raised when project configuration is missing or invalid."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        DompileError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class RenderError(DompileError, RuntimeError):
    """Raised when a render cannot continue at all."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        DompileError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


__all__ = [
    "DompileError",
    "BackingStoreError",
    "ConfigError",
    "RenderError",
]
