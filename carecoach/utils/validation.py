"""
Input validation and normalization for API payloads.

Bounds field lengths, strips control characters, normalizes select values
and builds a clean payload for the services. Validators return
(payload, error_message) so routes can respond with a 400 directly.
"""

from __future__ import annotations
import math
import re
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from ..constants import CARE_TYPES, SUGGESTION_SURFACES

MAX_NOTE_LEN = 500
MAX_UNIT_LEN = 16
MAX_AMOUNT = 100_000

CARE_TYPE_CHOICES = {c[0] for c in CARE_TYPES}
SURFACE_CHOICES = {s[0] for s in SUGGESTION_SURFACES}


def _soft_sanitize_note(text: str, max_len: int) -> str:
    """
    Free-text notes:
    - strip & bound length
    - remove control chars only; keep reasonable punctuation
    - normalize repeated tabs/spaces
    """
    t = (text or "").strip()
    if not t:
        return ""
    t = t[:max_len]
    t = re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]", "", t)
    t = re.sub(r"[ \t]{2,}", " ", t)
    return t


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp (``Z`` accepted). Returns None if blank.

    Raises:
        ValueError: value is present but not a valid timestamp
    """
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError("timestamp must be a string")
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def normalize_surface(value: str | None) -> str | None:
    """Lower-cased surface tag, or None when it is not a known surface."""
    v = (value or "today").strip().lower()
    return v if v in SURFACE_CHOICES else None


def validate_care_payload(data: Any) -> Tuple[Dict[str, Any], str | None]:
    """
    Validates a "log care" payload and returns (payload, error_message).

    On success, payload has:
      - care_type (one of CARE_TYPES)
      - amount (positive float or None)
      - unit (short string or None)
      - note (sanitized string or None)
      - timestamp (aware datetime or None)
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return {}, "Request body must be a JSON object."

    care_type = data.get("care_type")
    if not isinstance(care_type, str) or care_type.strip().lower() not in CARE_TYPE_CHOICES:
        return {}, "care_type must be one of: watering, fertilizing, other."
    care_type = care_type.strip().lower()

    amount = data.get("amount")
    if amount is not None:
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            return {}, "amount must be a number."
        if not math.isfinite(amount) or amount <= 0 or amount > MAX_AMOUNT:
            return {}, "amount must be positive."
        amount = float(amount)

    unit = data.get("unit")
    note = data.get("note")
    if unit is not None and not isinstance(unit, str):
        return {}, "unit must be a string."
    if note is not None and not isinstance(note, str):
        return {}, "note must be a string."
    unit = (unit or "").strip()[:MAX_UNIT_LEN] or None
    note = _soft_sanitize_note(note or "", MAX_NOTE_LEN) or None

    try:
        timestamp = parse_timestamp(data.get("timestamp"))
    except ValueError:
        return {}, "timestamp must be an ISO-8601 date-time."
    if timestamp is not None and timestamp.tzinfo is None:
        return {}, "timestamp must include a time zone offset."

    return {
        "care_type": care_type,
        "amount": amount,
        "unit": unit,
        "note": note,
        "timestamp": timestamp,
    }, None
