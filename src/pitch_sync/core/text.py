from __future__ import annotations

import re

_whitespace_re = re.compile(r"\s+")


def clean_name(value: str) -> str:
    """Trim and collapse inner whitespace; the stored form of every name."""

    return _whitespace_re.sub(" ", value).strip()


def normalize_name(value: str) -> str:
    """Comparison form used for natural-key matching (case-insensitive, exact)."""

    return clean_name(value).casefold()
