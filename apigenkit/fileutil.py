"""Small helpers for logging failures and writing files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _describe(exc: BaseException) -> str:
    lines = [str(exc) or type(exc).__name__]
    seen = {id(exc)}
    cause = exc.__cause__ or exc.__context__
    while cause is not None and id(cause) not in seen:
        seen.add(id(cause))
        lines.append(f"Caused by: {cause or type(cause).__name__}")
        cause = cause.__cause__ or cause.__context__
    return "\n".join(lines)


def log_error_and_continue(func: Callable[..., T], *args: Any) -> T | None:
    """Call ``func(*args)``; on failure log the error with its causes and return None."""
    try:
        return func(*args)
    except Exception as exc:
        logger.error("%s", _describe(exc))
        return None


def logged_write(path: str | Path, contents: str | bytes, kind: str) -> None:
    """Write ``contents`` to ``path`` and log it; raise OSError naming the file on failure."""
    path = Path(path)
    data = contents.encode("utf-8") if isinstance(contents, str) else contents
    try:
        path.write_bytes(data)
    except OSError as exc:
        raise OSError(f"Could not write {kind} file at '{path}'") from exc
    logger.info("Wrote file %s at '%s'", kind, path)