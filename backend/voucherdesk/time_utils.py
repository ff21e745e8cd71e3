# Overview: UTC clock and ISO-8601 helpers; the database stores naive UTC datetimes.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as naive UTC, the form every DateTime column holds."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(text: Optional[str]) -> Optional[datetime]:
    """
    Read an ISO-8601 timestamp or date from a request body.

    Blank input gives None. A bare date means midnight, offsets are folded
    into UTC, and naive values are taken to already be UTC. Raises
    ValueError on anything fromisoformat() rejects.
    """
    if text is None or not text.strip():
        return None
    text = text.strip()
    if text[-1] in "zZ":
        text = f"{text[:-1]}+00:00"
    return _as_naive_utc(datetime.fromisoformat(text))


def to_utc_z(moment: Optional[datetime]) -> Optional[str]:
    """Render as second-precision ISO-8601 with a trailing Z, e.g. 2030-06-30T00:00:00Z."""
    if moment is None:
        return None
    moment = _as_naive_utc(moment).replace(microsecond=0)
    return f"{moment.isoformat()}Z"
