"""Coerce loosely-typed store rows into SalaryRecord.

Numeric fields may arrive as strings, floats or garbage. Coercion never
raises: a bad salary becomes 0, a bad years-since-graduation becomes None.
Rows without an id or with invalid closed-set fields are dropped with a
warning. Timestamps without an offset are read as UTC.
"""

import logging
import math
from datetime import UTC
from typing import Any

from pydantic import ValidationError

from salary_stats.core.schemas import SalaryRecord

logger = logging.getLogger(__name__)

_TEXT_FIELDS = ("job_title", "job_description")


def to_salary(value: Any) -> int:
    """Coerce a salary value to a non-negative int, 0 when not numeric."""
    number = _to_number(value)
    if number is None or number < 0:
        return 0
    return int(number)


def to_years(value: Any) -> int | None:
    """Coerce years-since-graduation to a non-negative int or None."""
    number = _to_number(value)
    if number is None or number < 0:
        return None
    return int(number)


def normalize_row(row: dict[str, Any]) -> SalaryRecord | None:
    """Build a SalaryRecord from a raw row, or None if the row is unusable."""
    raw_id = row.get("id")
    record_id = str(raw_id).strip() if raw_id is not None else ""
    if not record_id:
        logger.warning("Dropping row without id")
        return None

    data = {
        "id": record_id,
        "created_at": row.get("created_at"),
        "formation": row.get("formation"),
        "speciality": row.get("speciality"),
        "contract_type": row.get("contract_type"),
        "participant_type": row.get("participant_type"),
        "salary": to_salary(row.get("salary")),
        "years_since_graduation": to_years(row.get("years_since_graduation")),
    }
    for field in _TEXT_FIELDS:
        value = row.get(field)
        data[field] = value if isinstance(value, str) and value.strip() else None

    try:
        record = SalaryRecord.model_validate(data)
    except ValidationError as e:
        logger.warning("Dropping malformed row %r: %d error(s)", record_id, e.error_count())
        return None
    if record.created_at.tzinfo is None:
        record = record.model_copy(update={"created_at": record.created_at.replace(tzinfo=UTC)})
    return record


def normalize_rows(rows: list[dict[str, Any]]) -> list[SalaryRecord]:
    """Normalize a batch of rows, skipping unusable ones."""
    records = [r for r in (normalize_row(row) for row in rows) if r is not None]
    dropped = len(rows) - len(records)
    if dropped:
        logger.warning("Normalization dropped %d of %d rows", dropped, len(rows))
    return records


def _to_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number
