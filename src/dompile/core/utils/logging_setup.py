from __future__ import annotations

import logging
import sys
from pathlib import Path

_CONFIGURED_TARGET: str | None = None
_DOMPILE_HANDLER: logging.Handler | None = None
_JSON_MODE_NULL_HANDLER_INSTALLED: bool = False

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_stdlib_logging(*, level: str = "WARNING", log_path: Path | None = None) -> None:
    """Install a single dompile handler on the root logger.

    Logs go to ``log_path`` when given, otherwise to stderr (stdout is kept for
    rendered output). Idempotent per-process: reconfiguring for the same target
    only updates the level.
    """
    global _CONFIGURED_TARGET, _DOMPILE_HANDLER

    target = str(Path(log_path).resolve()) if log_path is not None else "<stderr>"
    root = logging.getLogger()
    root.setLevel(_level_from_name(level))

    if _CONFIGURED_TARGET == target and _DOMPILE_HANDLER is not None:
        _DOMPILE_HANDLER.setLevel(_level_from_name(level))
        return

    if _DOMPILE_HANDLER is not None:
        root.removeHandler(_DOMPILE_HANDLER)
        _DOMPILE_HANDLER.close()
        _DOMPILE_HANDLER = None

    handler: logging.Handler
    if log_path is not None:
        Path(target).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(target, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(_level_from_name(level))
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    _DOMPILE_HANDLER = handler
    _CONFIGURED_TARGET = target


def reset_stdlib_logging_for_tests() -> None:
    """Test-only: drop the dompile handler."""
    global _CONFIGURED_TARGET, _DOMPILE_HANDLER
    if _DOMPILE_HANDLER is not None:
        logging.getLogger().removeHandler(_DOMPILE_HANDLER)
        _DOMPILE_HANDLER.close()
    _CONFIGURED_TARGET = None
    _DOMPILE_HANDLER = None
    logging.getLogger().setLevel(logging.WARNING)


def suppress_lastresort_in_json_mode() -> None:
    """Keep logging's implicit ``lastResort`` handler off stderr in ``--json`` mode.

    Python emits WARNING+ records to stderr when no handler is configured; for
    machine-readable output we install a NullHandler instead.
    """
    global _JSON_MODE_NULL_HANDLER_INSTALLED

    root = logging.getLogger()
    if root.handlers or _JSON_MODE_NULL_HANDLER_INSTALLED:
        return
    root.addHandler(logging.NullHandler())
    _JSON_MODE_NULL_HANDLER_INSTALLED = True


__all__ = [
    "configure_stdlib_logging",
    "reset_stdlib_logging_for_tests",
    "suppress_lastresort_in_json_mode",
]
