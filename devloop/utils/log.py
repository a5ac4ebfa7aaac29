"""Tagged console logging with an optional run log file.

Lines are printed as ``[tag] message``. Debug lines only show up when
``ORCH_DEBUG=1`` or :func:`configure` was called with ``debug=True``.
"""
from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from devloop.utils.time import utc_isoformat

_log_path: Optional[Path] = None
_debug: Optional[bool] = None


def configure(log_path: Optional[Path] = None, debug: Optional[bool] = None) -> None:
    global _log_path, _debug
    _log_path = log_path
    _debug = debug
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)


def debug_enabled() -> bool:
    if _debug is not None:
        return _debug
    return os.getenv("ORCH_DEBUG", "") == "1"


def debug(tag: str, message: str) -> None:
    if debug_enabled():
        _emit("DEBUG", tag, message)


def info(tag: str, message: str) -> None:
    _emit("INFO", tag, message)


def warning(tag: str, message: str) -> None:
    _emit("WARN", tag, message)


def error(tag: str, message: str) -> None:
    _emit("ERROR", tag, message)


def _emit(level: str, tag: str, message: str) -> None:
    if level in ("WARN", "ERROR"):
        print(f"[{tag}] {level}: {message}", file=sys.stderr)
    else:
        print(f"[{tag}] {message}")
    if _log_path is None:
        return
    try:
        with _log_path.open("a", encoding="utf-8") as handle:
            handle.write(f"[{utc_isoformat()}] [{level}] [{tag}] {message}\n")
    except OSError as exc:
        print(f"[log] ERROR: failed to write log file {_log_path}: {exc}", file=sys.stderr)
