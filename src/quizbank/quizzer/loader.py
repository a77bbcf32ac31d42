"""Acquire a question bank from a file or URL and normalize it.

Loading is one awaited step: either the whole bank comes back as
``QuestionRecord`` objects or an exception is raised, so callers never
observe a half-loaded bank. Failures are reported once with no retry.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import requests

from .errors import EmptyBankError, FetchError, MalformedBankError, QuizError
from .models import QuestionRecord
from .normalize import normalize

__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "fetch_bank",
    "is_remote",
    "load_bank",
]

DEFAULT_TIMEOUT_SECONDS = 30.0

_log = logging.getLogger("quizbank.quizzer.loader")


def is_remote(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


async def fetch_bank(
    source: str,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    http: requests.Session | None = None,
) -> Any:
    """Fetch ``source`` and return its parsed JSON payload."""

    if is_remote(source):
        text = await asyncio.to_thread(_read_remote, source, timeout, http)
    else:
        text = await asyncio.to_thread(_read_local, source)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedBankError(
            f"Question bank '{source}' is not valid JSON: {exc}"
        ) from exc


async def load_bank(
    source: str,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    http: requests.Session | None = None,
    logger: logging.Logger | None = None,
) -> list[QuestionRecord]:
    """Fetch, parse and normalize a bank; empty banks are an error."""

    log = logger or _log
    log.info("Loading question bank", extra={"source": source})
    try:
        raw = await fetch_bank(source, timeout=timeout, http=http)
        questions = normalize(raw)
        if not questions:
            raise EmptyBankError(f"Question bank '{source}' has no questions.")
    except QuizError as exc:
        log.error(
            "Failed to load question bank",
            extra={
                "source": source,
                "error": type(exc).__name__,
                "detail": str(exc),
            },
        )
        raise
    log.info(
        "Loaded %d questions.",
        len(questions),
        extra={"source": source, "count": len(questions)},
    )
    return questions


def _read_remote(
    url: str, timeout: float, http: requests.Session | None
) -> str:
    client = http or requests
    try:
        response = client.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise FetchError(url, str(exc) or type(exc).__name__) from exc
    if not response.ok:
        raise FetchError(
            url, f"HTTP {response.status_code} {response.reason or ''}".strip()
        )
    # Banks are UTF-8 whatever the Content-Type says; text/* without a
    # charset would otherwise decode as ISO-8859-1.
    try:
        return response.content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FetchError(url, f"response is not UTF-8: {exc}") from exc


def _read_local(source: str) -> str:
    raw_path = source
    if raw_path.startswith("file://"):
        raw_path = raw_path[len("file://"):]
    path = Path(raw_path).expanduser()
    try:
        return path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as exc:
        raise FetchError(source, "file not found") from exc
    except IsADirectoryError as exc:
        raise FetchError(source, "path is a directory") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise FetchError(source, str(exc)) from exc
