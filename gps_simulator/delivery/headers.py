"""Parsing and merging of ``Name:Value;Name:Value`` header strings."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from requests.structures import CaseInsensitiveDict

LOGGER = logging.getLogger(__name__)

HeaderSet = CaseInsensitiveDict

__all__ = ["HeaderSet", "parse_headers", "merge_headers"]


def parse_headers(text: Optional[str]) -> HeaderSet:
    """Parse ``"Name1:Value1;Name2:Value2"`` into a case-insensitive mapping.

    Only the first colon separates name from value, so values such as
    ``Bearer abc:def`` survive intact. Entries without a colon, with an empty
    name or with an empty value are skipped.
    """

    headers: HeaderSet = CaseInsensitiveDict()
    if not text or not text.strip():
        return headers
    for raw in text.split(";"):
        entry = raw.strip()
        if not entry:
            continue
        name, sep, value = entry.partition(":")
        name = name.strip()
        value = value.strip()
        if not sep or not name or not value:
            LOGGER.debug("Skipping malformed header entry %r", entry)
            continue
        headers[name] = value
    return headers


def merge_headers(
    defaults: Mapping[str, str], overrides: Mapping[str, str]
) -> HeaderSet:
    """Return ``defaults`` updated with ``overrides`` (names compared case-insensitively)."""

    merged: HeaderSet = CaseInsensitiveDict(defaults)
    for name, value in overrides.items():
        merged[name] = value
    return merged
