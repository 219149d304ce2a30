"""Tests for row normalization: numeric coercion and malformed rows."""

from datetime import UTC, datetime
from typing import Any

import pytest

from salary_stats.pipeline.metrics import compute_metrics
from salary_stats.pipeline.normalizer import normalize_row, normalize_rows, to_salary, to_years


def _row(**overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": "0f8c",
        "created_at": "2025-10-06T19:00:00+00:00",
        "formation": "TELECOM",
        "speciality": "INFO",
        "contract_type": "CDI",
        "salary": 400_000,
        "participant_type": "Alumni",
        "job_title": "Backend developer",
        "job_description": None,
        "years_since_graduation": 2,
    }
    row.update(overrides)
    return row


class TestToSalary:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (350_000, 350_000),
            ("350000", 350_000),
            (" 350000 ", 350_000),
            (350_000.7, 350_000),
            ("abc", 0),
            (None, 0),
            ("", 0),
            (-10, 0),
            (True, 0),
            (float("nan"), 0),
        ],
    )
    def test_coercion(self, value: Any, expected: int) -> None:
        assert to_salary(value) == expected


class TestToYears:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (3, 3),
            ("3", 3),
            (0, 0),
            (None, None),
            ("three", None),
            (-1, None),
            ([1], None),
        ],
    )
    def test_coercion(self, value: Any, expected: int | None) -> None:
        assert to_years(value) == expected


class TestNormalizeRow:
    def test_well_formed(self) -> None:
        record = normalize_row(_row())
        assert record is not None
        assert record.salary == 400_000
        assert record.years_since_graduation == 2
        assert record.job_title == "Backend developer"
        assert record.is_flagged_outlier is False

    def test_string_salary(self) -> None:
        record = normalize_row(_row(salary="275000"))
        assert record is not None
        assert record.salary == 275_000

    def test_bad_years_become_none(self) -> None:
        record = normalize_row(_row(years_since_graduation="n/a"))
        assert record is not None
        assert record.years_since_graduation is None

    def test_bad_salary_becomes_zero(self) -> None:
        record = normalize_row(_row(salary="n/a"))
        assert record is not None
        assert record.salary == 0

    def test_missing_optional_columns(self) -> None:
        row = _row()
        del row["job_title"]
        del row["job_description"]
        del row["years_since_graduation"]
        record = normalize_row(row)
        assert record is not None
        assert record.job_title is None
        assert record.job_description is None
        assert record.years_since_graduation is None

    def test_blank_text_becomes_none(self) -> None:
        record = normalize_row(_row(job_title="   "))
        assert record is not None
        assert record.job_title is None

    def test_unknown_formation_dropped(self) -> None:
        assert normalize_row(_row(formation="PhD")) is None

    def test_missing_created_at_dropped(self) -> None:
        assert normalize_row(_row(created_at=None)) is None

    def test_naive_timestamp_read_as_utc(self) -> None:
        record = normalize_row(_row(created_at="2025-10-07T10:00:00"))
        assert record is not None
        assert record.created_at == datetime(2025, 10, 7, 10, 0, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_id_dropped(self, value: Any) -> None:
        assert normalize_row(_row(id=value)) is None

    def test_absent_id_dropped(self) -> None:
        row = _row()
        del row["id"]
        assert normalize_row(row) is None

    def test_numeric_id_kept_as_text(self) -> None:
        record = normalize_row(_row(id=42))
        assert record is not None
        assert record.id == "42"


class TestNormalizeRows:
    def test_skips_unusable_rows(self) -> None:
        rows = [_row(id="a"), _row(id="b", contract_type="Freelance"), _row(id="c")]
        assert [r.id for r in normalize_rows(rows)] == ["a", "c"]

    def test_empty(self) -> None:
        assert normalize_rows([]) == []

    def test_rows_without_id_do_not_share_identifier(self) -> None:
        rows = [_row(id=None), _row(id=None), _row(id="a"), _row(id="b")]
        records = normalize_rows(rows)
        ids = [r.id for r in records]
        assert ids == ["a", "b"]
        assert len(set(ids)) == len(ids)

    def test_mixed_timestamps_can_be_aggregated(self) -> None:
        rows = [
            _row(id="aware", created_at="2025-10-06T19:00:00+00:00"),
            _row(id="naive", created_at="2025-10-07T10:00:00"),
            _row(id="offset", created_at="2025-10-07T13:00:00+02:00"),
        ]
        metrics = compute_metrics(normalize_rows(rows))
        assert metrics.total_participants == 3
        assert [e.id for e in metrics.latest_entries] == ["offset", "naive", "aware"]
