"""
Tamper evidence for time entries.

Each entry carries an HMAC-SHA256 over a canonical JSON rendering of the
fields that define it: employee, date, clock times, category, outside flag,
gratuity and creation timestamp. Description and derived minutes are not
covered. The secret is passed in explicitly; see ``app_settings.get_or_create_secret``.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from datetime import date, datetime, time, timezone
from typing import Any, Protocol

from worklog.db.models import Category


class Stampable(Protocol):
    employee_id: int
    date: date
    start_time: time | None
    end_time: time | None
    category: Category
    is_outside: bool
    gratuity: float
    created_at: datetime


def _canonical_timestamp(value: datetime) -> str:
    # Some backends hand timestamps back without tzinfo; they are stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _canonical_clock(value: time | None) -> str | None:
    return value.strftime("%H:%M") if value is not None else None


def canonical_payload(
    employee_id: int,
    entry_date: date,
    start_time: time | None,
    end_time: time | None,
    category: Category | str,
    is_outside: bool,
    gratuity: float,
    created_at: datetime,
) -> str:
    fields: dict[str, Any] = {
        "employee_id": int(employee_id),
        "date": entry_date.isoformat(),
        "start_time": _canonical_clock(start_time),
        "end_time": _canonical_clock(end_time),
        "category": Category(category).value,
        "is_outside": 1 if is_outside else 0,
        "gratuity": float(gratuity or 0),
        "created_at": _canonical_timestamp(created_at),
    }
    return json.dumps(fields, separators=(",", ":"), ensure_ascii=False)


def compute_integrity_hash(entry: Stampable, secret: str) -> str:
    payload = canonical_payload(
        entry.employee_id,
        entry.date,
        entry.start_time,
        entry.end_time,
        entry.category,
        entry.is_outside,
        entry.gratuity,
        entry.created_at,
    )
    return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()


def verify_integrity(entry: Stampable, stored_hash: str | None, secret: str) -> bool:
    """True when ``stored_hash`` matches a fresh stamp of the entry's fields."""
    if not stored_hash:
        return False
    return hmac.compare_digest(compute_integrity_hash(entry, secret), stored_hash)
