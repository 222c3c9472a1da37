# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Structured logging with token redaction.

Log calls about a single repository or alert may pass
``extra={"repository": ..., "alert": ...}``; both formatters render that
context.
"""

import json
import logging
import re
import sys
from typing import Any

REDACT_PATTERNS = [
    re.compile(r"(github_pat_[A-Za-z0-9]{4})[A-Za-z0-9_]*"),
    re.compile(r"(gh[pousr]_[A-Za-z0-9]{4})[A-Za-z0-9_]*"),
    re.compile(r"(Bearer\s+[a-zA-Z0-9\-._~+/]{4})[a-zA-Z0-9\-._~+/]*"),
]

CONTEXT_FIELDS = ("repository", "alert")


def redact_sensitive(text: str) -> str:
    for pattern in REDACT_PATTERNS:
        text = pattern.sub(r"\1[REDACTED]", text)
    return text


def _context(record: logging.LogRecord) -> dict[str, Any]:
    return {
        name: getattr(record, name)
        for name in CONTEXT_FIELDS
        if getattr(record, name, None) is not None
    }


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": redact_sensitive(record.getMessage()),
            **_context(record),
        }
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = redact_sensitive(str(record.exc_info[1]))
        return json.dumps(log_entry)


class TextFormatter(logging.Formatter):
    """Plain text lines with ``[repository#alert]`` context appended."""

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        context = _context(record)
        if context:
            label = context.get("repository", "")
            if "alert" in context:
                label = f"{label}#{context['alert']}"
            msg = f"{msg} [{label}]"
        return redact_sensitive(msg)


def setup_logging(level: str = "WARNING", fmt: str = "text") -> None:
    """Route ``ghasfix.*`` loggers to stderr, replacing earlier handlers."""
    package_logger = logging.getLogger("ghasfix")
    package_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    package_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            TextFormatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
    package_logger.addHandler(handler)
