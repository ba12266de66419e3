"""
Shared utility functions.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone


_DIGITS = re.compile(r"[0-9]+")


def generate_id(prefix: str = "") -> str:
    """
    Generate a unique ID with optional prefix.
    
    Args:
        prefix: Optional prefix (e.g., "team", "cast")
        
    Returns:
        A unique ID like "team_a1b2c3d4e5f6"
    """
    uid = str(uuid.uuid4())[:12]
    return f"{prefix}_{uid}" if prefix else uid


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def normalize_fid(value: object) -> str:
    """
    Canonical decimal form of a Farcaster account id.
    
    Accepts ints and numeric strings ("123", " 123 ", "0123") and returns
    "123". Raises ValueError for anything else, including bools.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Not an account id: {value!r}")
    text = str(value).strip()
    if not _DIGITS.fullmatch(text):
        raise ValueError(f"Not an account id: {value!r}")
    return str(int(text))
