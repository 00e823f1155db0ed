"""Query-string helpers."""

from __future__ import annotations

from typing import Mapping, Optional
from urllib.parse import quote_plus


def encoded_pairs(params: Mapping[str, str]) -> str:
    """Render ``params`` as ``k=v&k=v`` with form-encoded values."""
    return "&".join(f"{key}={quote_plus(str(value))}" for key, value in params.items())


def construct_path(base: str, query: Optional[str]) -> str:
    """Append ``query`` to ``base``, leaving out the ``?`` when there is none."""
    if query is None:
        return base
    return f"{base}?{query}"
