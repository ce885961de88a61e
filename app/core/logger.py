# app/core/logger.py
from __future__ import annotations

"""
ReelShare — Logging (Loguru)
----------------------------
- Pretty console logs by default; JSON logs via `LOG_JSON=1`
- Request correlation: every record carries `request_id` (see RequestIDMiddleware)
- Intercepts stdlib/uvicorn/fastapi/starlette logs into Loguru, so modules can
  keep using `logging.getLogger(__name__)`
- Optional rotating file sink

Env
---
LOG_LEVEL=INFO|DEBUG|WARNING|ERROR (default: INFO)
LOG_JSON=1
LOG_TO_FILE=1 (default: 0)
LOG_DIR=logs
LOG_FILE=reelshare.log
LOG_ROTATION=10 MB
APP_DEBUG=1 (backtrace/diagnose on the console sink)
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_JSON = os.getenv("LOG_JSON", "0").lower() in {"1", "true", "yes"}
APP_DEBUG = os.getenv("APP_DEBUG", "0").lower() in {"1", "true", "yes"}
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "0").lower() in {"1", "true", "yes"}
LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
LOG_FILE = os.getenv("LOG_FILE", "reelshare.log")
LOG_ROTATION = os.getenv("LOG_ROTATION", "10 MB")

_configured = False


# ─────────────────────────────────────────────────────────────
# 🧾 Formatters
# ─────────────────────────────────────────────────────────────
def _fmt_pretty(record) -> str:
    record["extra"].setdefault("request_id", "N/A")
    safe_name = record["name"].replace("<", "[").replace(">", "]")
    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        f"<cyan>{safe_name}</cyan>:<cyan>{{line}}</cyan> - "
        "<level>{message}</level> | request_id={extra[request_id]}\n{exception}"
    )


def _json_sink(message) -> None:
    record = message.record
    payload: Dict[str, Any] = {
        "time": record["time"].strftime("%Y-%m-%dT%H:%M:%S.%f%z"),
        "level": record["level"].name,
        "logger": record["name"],
        "line": record["line"],
        "message": record["message"],
        "request_id": record["extra"].get("request_id", "N/A"),
    }
    for k, v in record["extra"].items():
        payload.setdefault(k, v)
    if record["exception"] is not None:
        payload["exception"] = str(record["exception"].value)
    sys.stdout.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")


# ─────────────────────────────────────────────────────────────
# 🔁 Intercept stdlib logging → Loguru
# ─────────────────────────────────────────────────────────────
class InterceptHandler(logging.Handler):
    """Route standard logging records into Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: Optional[str] = None) -> None:
    """Install sinks once per process; safe to call repeatedly."""
    global _configured
    if _configured:
        return
    lvl = (level or LOG_LEVEL).upper()

    logger.remove()
    logger.configure(extra={"request_id": "N/A"})
    if LOG_JSON:
        logger.add(_json_sink, level=lvl, enqueue=True)
    else:
        logger.add(
            sys.stdout,
            level=lvl,
            format=_fmt_pretty,
            enqueue=True,
            backtrace=APP_DEBUG,
            diagnose=APP_DEBUG,
        )

    if LOG_TO_FILE:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(LOG_DIR / LOG_FILE),
            rotation=LOG_ROTATION,
            level=lvl,
            format=_fmt_pretty,
            enqueue=True,
            backtrace=False,
            diagnose=False,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "starlette"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False

    _configured = True


def mask_token(token: Optional[str]) -> str:
    """Loggable form of a bearer credential: first 6 chars only."""
    t = (token or "").strip()
    if not t:
        return "<empty>"
    return f"{t[:6]}…"


setup_logging()

__all__ = ["logger", "setup_logging", "mask_token", "InterceptHandler"]
