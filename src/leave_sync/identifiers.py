"""Canonical comparison keys for identity numbers."""

from __future__ import annotations

import re
from typing import Any, Optional

_WESTERN_DIGITS = "0123456789"

# Each script maps positionally onto 0-9.
_DIGIT_SCRIPTS = (
    "٠١٢٣٤٥٦٧٨٩",  # Arabic-Indic
    "۰۱۲۳۴۵۶۷۸۹",  # Extended Arabic-Indic (Persian/Urdu)
    "०१२३४५६७८९",  # Devanagari
)

_TRANSLATION = str.maketrans(
    {script[index]: _WESTERN_DIGITS[index] for script in _DIGIT_SCRIPTS for index in range(10)}
)

_NON_DIGITS = re.compile(r"[^0-9]")


def normalize_identifier(raw: Any) -> Optional[str]:
    """Return the digit-only canonical key for ``raw``, or ``None`` when absent.

    Numbers are rendered without a fractional part when they are integral, so
    ``123456789.0`` and ``"١٢٣٤٥٦٧٨٩"`` produce the same key. Leading zeros are
    kept; keys are only ever compared as strings.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, float):
        if raw != raw or raw in (float("inf"), float("-inf")):
            return None
        if raw.is_integer():
            raw = int(raw)

    text = str(raw).translate(_TRANSLATION)
    key = _NON_DIGITS.sub("", text)
    return key or None
