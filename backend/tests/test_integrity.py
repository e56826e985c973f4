"""
Integrity stamp tests.

Tests:
  - test_hash_is_deterministic        : same fields + secret → same digest
  - test_hashed_field_changes_digest  : every covered field participates
  - test_uncovered_fields_ignored     : description / minutes do not
  - test_secret_matters
  - test_naive_timestamp_is_utc       : SQLite round-trip keeps the stamp valid
  - test_verify_integrity
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time, timezone

import pytest

from worklog.db.models import Category
from worklog.services.integrity import canonical_payload, compute_integrity_hash, verify_integrity

SECRET = "a" * 64


@dataclass(frozen=True)
class _Entry:
    employee_id: int = 7
    date: date = date(2025, 3, 3)
    start_time: time | None = time(8, 0)
    end_time: time | None = time(16, 0)
    category: Category = Category.OUTDOOR_ROUND
    is_outside: bool = True
    gratuity: float = 5.0
    created_at: datetime = datetime(2025, 3, 3, 16, 5, 12, 123456, tzinfo=timezone.utc)
    description: str = "round A"
    net_minutes: int = 450


def test_hash_is_deterministic():
    entry = _Entry()
    first = compute_integrity_hash(entry, SECRET)
    assert first == compute_integrity_hash(_Entry(), SECRET)
    assert len(first) == 64
    int(first, 16)


@pytest.mark.parametrize(
    "changes",
    [
        {"employee_id": 8},
        {"date": date(2025, 3, 4)},
        {"start_time": time(8, 1)},
        {"end_time": None},
        {"category": Category.OFFICE},
        {"is_outside": False},
        {"gratuity": 5.5},
        {"created_at": datetime(2025, 3, 3, 16, 5, 12, 123457, tzinfo=timezone.utc)},
    ],
)
def test_hashed_field_changes_digest(changes):
    assert compute_integrity_hash(replace(_Entry(), **changes), SECRET) != compute_integrity_hash(
        _Entry(), SECRET
    )


def test_uncovered_fields_ignored():
    changed = replace(_Entry(), description="edited", net_minutes=1)
    assert compute_integrity_hash(changed, SECRET) == compute_integrity_hash(_Entry(), SECRET)


def test_secret_matters():
    assert compute_integrity_hash(_Entry(), SECRET) != compute_integrity_hash(_Entry(), "b" * 64)


def test_naive_timestamp_is_utc():
    aware = _Entry()
    naive = replace(aware, created_at=aware.created_at.replace(tzinfo=None))
    assert compute_integrity_hash(naive, SECRET) == compute_integrity_hash(aware, SECRET)


def test_canonical_payload_shape():
    payload = canonical_payload(
        7, date(2025, 3, 3), time(8, 0), None, "vacation", False, 0,
        datetime(2025, 3, 3, 12, 0, tzinfo=timezone.utc),
    )
    assert payload == (
        '{"employee_id":7,"date":"2025-03-03","start_time":"08:00","end_time":null,'
        '"category":"vacation","is_outside":0,"gratuity":0.0,'
        '"created_at":"2025-03-03T12:00:00.000000Z"}'
    )


def test_verify_integrity():
    entry = _Entry()
    stamp = compute_integrity_hash(entry, SECRET)
    assert verify_integrity(entry, stamp, SECRET)
    assert not verify_integrity(replace(entry, gratuity=99.0), stamp, SECRET)
    assert not verify_integrity(entry, None, SECRET)
    assert not verify_integrity(entry, stamp, "b" * 64)
