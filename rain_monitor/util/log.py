from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import datetime
from typing import Any

from rain_monitor.util.time import utcnow


def get_logger(component: str) -> logging.Logger:
    logger = logging.getLogger(f"rain_monitor.{component}")

    # JSONL (message-only) output, without duplicate propagation.
    if not logger.handlers:
        _h = logging.StreamHandler(sys.stdout)
        _h.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(_h)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


def _truncate_str(s: str, max_len: int = 800) -> str:
    return s if len(s) <= max_len else s[:max_len] + "...<truncated>"


def _sanitize_value(v: Any, depth: int = 0, max_depth: int = 3) -> Any:
    """
    Best-effort sanitizer to keep log lines small and JSON-serializable.
    """
    if depth > max_depth:
        return "<max_depth>"

    if v is None or isinstance(v, (int, float, bool)):
        return v

    if isinstance(v, str):
        return _truncate_str(v)

    if isinstance(v, datetime):
        return v.isoformat()

    if isinstance(v, (list, tuple, set)):
        return [_sanitize_value(x, depth + 1, max_depth) for x in list(v)[:50]]

    if isinstance(v, dict):
        return {str(k): _sanitize_value(vv, depth + 1, max_depth) for k, vv in v.items()}

    return _truncate_str(str(v))


def _utc_iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def error_fields(e: BaseException) -> dict[str, Any]:
    return {
        "type": type(e).__name__,
        "message": str(e),
        "stacktrace": "".join(traceback.format_exception(type(e), e, e.__traceback__)),
    }


def log_event(
    logger: logging.Logger,
    *,
    level: str,
    event: str,
    msg: str,
    **fields: Any,
) -> None:
    payload: dict[str, Any] = {
        "ts": _utc_iso(utcnow()),
        "level": level,
        "component": logger.name.rsplit(".", 1)[-1],
        "event": event,
        "msg": msg,
    }
    payload.update({k: _sanitize_value(v) for k, v in fields.items()})

    line = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))

    lvl = (level or "").upper()
    if lvl == "ERROR":
        logger.error(line)
    elif lvl == "WARN" or lvl == "WARNING":
        logger.warning(line)
    elif lvl == "DEBUG":
        logger.debug(line)
    else:
        logger.info(line)
