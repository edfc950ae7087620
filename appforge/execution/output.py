"""Cleaning sandbox output before it is handed to the model."""

from __future__ import annotations

import re

DEFAULT_MAX_CHARS = 100_000

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")
_BINARY_SNIFF_BYTES = 8192


def clean_output(raw: str, max_chars: int | None = None) -> tuple[str, bool]:
    """Drop terminal colour codes and clip ``raw`` to ``max_chars``.

    Dev servers and package managers print their useful lines at the end, so
    clipping keeps one fifth of the budget from the start and the rest from
    the end.

    Returns:
        ``(text, clipped)``
    """
    text = _ANSI_ESCAPE.sub("", raw)
    budget = DEFAULT_MAX_CHARS if max_chars is None else max_chars
    if len(text) <= budget:
        return text, False

    head = budget // 5
    tail = budget - head
    dropped = len(text) - budget
    return f"{text[:head]}\n[... {dropped} characters omitted ...]\n{text[len(text) - tail:]}", True


def decode_text(data: bytes, path: str) -> str:
    """Decode file contents read from a sandbox.

    Raises:
        ValueError: If the file looks binary
    """
    if b"\x00" in data[:_BINARY_SNIFF_BYTES]:
        raise ValueError(f"Cannot read binary file: {path}")
    return data.decode("utf-8")
