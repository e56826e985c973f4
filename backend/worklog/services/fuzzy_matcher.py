"""
Fuzzy employee name matching.

Maps a free-text employee name from an import batch to an existing
Employee using thefuzz.token_sort_ratio. Unlike manual administration,
imports never create employees: an unmatched name is reported back.
"""

import logging
import re

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from thefuzz import fuzz

from worklog.core.config import settings
from worklog.db.models import Employee

logger = logging.getLogger(__name__)

_ws_re = re.compile(r"\s+")


def _clean_name(raw: str) -> str:
    """Strip and collapse whitespace."""
    return _ws_re.sub(" ", raw.strip())


def _candidate_names(employee: Employee) -> list[str]:
    names = [employee.name]
    full = " ".join(part for part in (employee.first_name, employee.last_name) if part)
    if full:
        names.append(full)
    return names


async def find_employee(raw_name: str, db: AsyncSession) -> int | None:
    """
    Return the id of the best-matching employee, or None.

    Both the display name and "first last" are scored; the best score
    must reach ``settings.FUZZY_MATCH_THRESHOLD``.
    """
    cleaned = _clean_name(raw_name)
    if not cleaned:
        return None

    result = await db.execute(select(Employee).order_by(Employee.id))
    employees = result.scalars().all()

    best_score = 0
    best_id: int | None = None

    for employee in employees:
        for candidate in _candidate_names(employee):
            score = fuzz.token_sort_ratio(cleaned, candidate)
            if score > best_score:
                best_score = score
                best_id = employee.id

    if best_score >= settings.FUZZY_MATCH_THRESHOLD and best_id is not None:
        logger.debug(
            "Match found: '%s' -> id=%s (score=%d, threshold=%d)",
            cleaned, best_id, best_score, settings.FUZZY_MATCH_THRESHOLD,
        )
        return best_id

    logger.info(
        "No employee matches '%s': best score=%d < threshold=%d",
        cleaned, best_score, settings.FUZZY_MATCH_THRESHOLD,
    )
    return None
