# tests/test_attendance_ledger.py

from datetime import date, timedelta

import pytest
from sqlalchemy import select

from app.core.config import settings
from app.core.exceptions import Forbidden, InvalidValue, NotEnrolled, TransactionAborted
from app.models import AttendanceRecord
from app.schemas.attendance import AttendanceMarkIn
from app.services.attendance_ledger import date_window

from tests.conftest import CLASS_DATE, MATH, NOT_ENROLLED, PHYSICS, PROFESSOR_ID, SUSPENDED


async def _records(session_factory, **filters):
    q = select(AttendanceRecord).order_by(AttendanceRecord.student_id)
    for column, value in filters.items():
        q = q.where(getattr(AttendanceRecord, column) == value)
    async with session_factory() as session:
        return (await session.execute(q)).scalars().all()


# === record_batch ===


async def test_batch_is_recorded_with_summary(attendance_ledger, professor, attendance_rows, session_factory):
    summary = await attendance_ledger.record_batch(MATH, CLASS_DATE, attendance_rows, professor)

    assert summary.total == 5
    assert (summary.present, summary.absent, summary.excused, summary.late) == (2, 1, 1, 1)
    assert summary.presence_ratio == 60.0

    rows = await _records(session_factory)
    assert [r.student_id for r in rows] == [101, 102, 103, 104, 105]
    assert all(r.recorder_id == PROFESSOR_ID for r in rows)
    assert rows[3].justification == "Atestado médico"


async def test_resubmitting_a_session_updates_in_place(
    attendance_ledger, professor, attendance_rows, session_factory, count_rows
):
    await attendance_ledger.record_batch(MATH, CLASS_DATE, attendance_rows, professor)
    corrected = [{"student_id": 103, "status": "late"}]
    summary = await attendance_ledger.record_batch(MATH, CLASS_DATE, corrected, professor)

    assert summary.total == 1
    assert summary.presence_ratio == 100.0
    assert await count_rows(AttendanceRecord) == 5
    [row] = await _records(session_factory, student_id=103)
    assert row.status == "late"


async def test_excused_without_justification_aborts_whole_batch(
    attendance_ledger, professor, attendance_rows, count_rows
):
    attendance_rows[2] = {"student_id": 103, "status": "excused", "justification": ""}

    with pytest.raises(TransactionAborted) as exc:
        await attendance_ledger.record_batch(MATH, CLASS_DATE, attendance_rows, professor)

    assert isinstance(exc.value.cause, InvalidValue)
    assert exc.value.key["row"] == 2
    assert exc.value.key["student_id"] == 103
    assert await count_rows(AttendanceRecord) == 0


async def test_invalid_status_aborts_whole_batch(attendance_ledger, professor, attendance_rows, count_rows):
    attendance_rows[4] = {"student_id": 105, "status": "sick"}

    with pytest.raises(TransactionAborted) as exc:
        await attendance_ledger.record_batch(MATH, CLASS_DATE, attendance_rows, professor)

    assert isinstance(exc.value.cause, InvalidValue)
    assert exc.value.key["student_id"] == 105
    assert await count_rows(AttendanceRecord) == 0


@pytest.mark.parametrize("student_id", [NOT_ENROLLED, SUSPENDED])
async def test_unenrolled_student_aborts_whole_batch(
    attendance_ledger, professor, attendance_rows, count_rows, student_id
):
    attendance_rows.insert(3, {"student_id": student_id, "status": "present"})

    with pytest.raises(TransactionAborted) as exc:
        await attendance_ledger.record_batch(MATH, CLASS_DATE, attendance_rows, professor)

    assert isinstance(exc.value.cause, NotEnrolled)
    assert exc.value.key["student_id"] == student_id
    assert str(student_id) in exc.value.reason
    assert await count_rows(AttendanceRecord) == 0


async def test_first_offending_row_is_reported(attendance_ledger, professor, attendance_rows):
    attendance_rows[1] = {"student_id": NOT_ENROLLED, "status": "present"}
    attendance_rows[3] = {"student_id": 104, "status": "excused"}

    with pytest.raises(TransactionAborted) as exc:
        await attendance_ledger.record_batch(MATH, CLASS_DATE, attendance_rows, professor)

    assert isinstance(exc.value.cause, NotEnrolled)
    assert exc.value.key["student_id"] == NOT_ENROLLED


async def test_student_id_given_as_text_is_matched_against_enrollment(
    attendance_ledger, professor, session_factory
):
    rows = [{"student_id": "101", "status": "present"}, {"student_id": 102, "status": "late"}]

    summary = await attendance_ledger.record_batch(MATH, CLASS_DATE, rows, professor)

    assert summary.total == 2
    assert [r.student_id for r in await _records(session_factory)] == [101, 102]


async def test_schema_error_after_enrollment_error_reports_the_earlier_row(
    attendance_ledger, professor, attendance_rows
):
    attendance_rows[1] = {"student_id": NOT_ENROLLED, "status": "present"}
    attendance_rows[3] = {"student_id": "abc", "status": "present"}

    with pytest.raises(TransactionAborted) as exc:
        await attendance_ledger.record_batch(MATH, CLASS_DATE, attendance_rows, professor)

    assert isinstance(exc.value.cause, NotEnrolled)
    assert exc.value.key["student_id"] == NOT_ENROLLED


async def test_schema_error_before_enrollment_error_is_reported_first(
    attendance_ledger, professor, attendance_rows
):
    attendance_rows[1] = {"student_id": 102, "status": "sick"}
    attendance_rows[3] = {"student_id": NOT_ENROLLED, "status": "present"}

    with pytest.raises(TransactionAborted) as exc:
        await attendance_ledger.record_batch(MATH, CLASS_DATE, attendance_rows, professor)

    assert isinstance(exc.value.cause, InvalidValue)
    assert exc.value.key["row"] == 1


async def test_failed_batch_keeps_previous_session_untouched(
    attendance_ledger, professor, attendance_rows, session_factory
):
    await attendance_ledger.record_batch(MATH, CLASS_DATE, attendance_rows, professor)
    retry = [
        {"student_id": 101, "status": "absent"},
        {"student_id": NOT_ENROLLED, "status": "present"},
    ]

    with pytest.raises(TransactionAborted):
        await attendance_ledger.record_batch(MATH, CLASS_DATE, retry, professor)

    [row] = await _records(session_factory, student_id=101)
    assert row.status == "present"


async def test_duplicate_student_in_batch_is_rejected(attendance_ledger, professor, count_rows):
    rows = [
        {"student_id": 101, "status": "present"},
        {"student_id": 101, "status": "absent"},
    ]
    with pytest.raises(TransactionAborted) as exc:
        await attendance_ledger.record_batch(MATH, CLASS_DATE, rows, professor)

    assert isinstance(exc.value.cause, InvalidValue)
    assert exc.value.key["row"] == 1
    assert await count_rows(AttendanceRecord) == 0


async def test_unassigned_recorder_is_forbidden(attendance_ledger, other_professor, attendance_rows, count_rows):
    with pytest.raises(Forbidden):
        await attendance_ledger.record_batch(MATH, CLASS_DATE, attendance_rows, other_professor)
    assert await count_rows(AttendanceRecord) == 0


async def test_coordinator_records_any_subject(attendance_ledger, coordinator_identity):
    summary = await attendance_ledger.record_batch(
        PHYSICS, CLASS_DATE, [AttendanceMarkIn(student_id=101, status="present")], coordinator_identity
    )
    assert summary.total == 1


async def test_empty_batch_yields_zero_summary(attendance_ledger, professor, count_rows):
    summary = await attendance_ledger.record_batch(MATH, CLASS_DATE, [], professor)
    assert summary.total == 0
    assert summary.presence_ratio == 0.0
    assert await count_rows(AttendanceRecord) == 0


async def test_oversized_batch_is_rejected(attendance_ledger, professor, attendance_rows, monkeypatch):
    monkeypatch.setattr(settings, "max_batch_rows", 3)
    with pytest.raises(InvalidValue):
        await attendance_ledger.record_batch(MATH, CLASS_DATE, attendance_rows, professor)


# === presence_ratio / history ===


async def _record_sessions(ledger, actor, statuses, start=date(2026, 3, 2)):
    for offset, status in enumerate(statuses):
        await ledger.record_batch(
            MATH, start + timedelta(days=offset), [{"student_id": 101, "status": status}], actor
        )


async def test_presence_ratio(attendance_ledger, professor):
    await _record_sessions(
        attendance_ledger, professor, ["present"] * 6 + ["late"] * 2 + ["absent"] * 2
    )

    ratio = await attendance_ledger.presence_ratio(101, MATH)

    assert ratio.total == 10
    assert ratio.present_equivalent == 8
    assert ratio.ratio == 80.0


async def test_presence_ratio_without_records(attendance_ledger):
    ratio = await attendance_ledger.presence_ratio(101, MATH)
    assert ratio.total == 0
    assert ratio.ratio == 0.0


async def test_presence_ratio_month_window(attendance_ledger, professor):
    await _record_sessions(attendance_ledger, professor, ["present", "absent"], start=date(2026, 3, 30))
    await _record_sessions(attendance_ledger, professor, ["absent", "absent"], start=date(2026, 4, 1))

    march = await attendance_ledger.presence_ratio(101, MATH, month=3, year=2026)
    april = await attendance_ledger.presence_ratio(101, MATH, month=4, year=2026)
    year = await attendance_ledger.presence_ratio(101, MATH, year=2026)

    assert (march.total, march.ratio) == (2, 50.0)
    assert (april.total, april.ratio) == (2, 0.0)
    assert (year.total, year.present_equivalent) == (4, 1)


def test_date_window():
    assert date_window(None, None) is None
    assert date_window(12, 2026) == (date(2026, 12, 1), date(2026, 12, 31))
    assert date_window(2, 2028) == (date(2028, 2, 1), date(2028, 2, 29))
    assert date_window(None, 2026) == (date(2026, 1, 1), date(2026, 12, 31))
    with pytest.raises(InvalidValue):
        date_window(3, None)
    with pytest.raises(InvalidValue):
        date_window(13, 2026)


def test_date_window_at_calendar_limits():
    assert date_window(12, 9999) == (date(9999, 12, 1), date(9999, 12, 31))
    assert date_window(None, 9999) == (date(9999, 1, 1), date(9999, 12, 31))
    assert date_window(1, 1) == (date(1, 1, 1), date(1, 1, 31))


@pytest.mark.parametrize("year", [0, -1, 10000])
def test_date_window_rejects_years_outside_calendar(year):
    with pytest.raises(InvalidValue):
        date_window(1, year)
    with pytest.raises(InvalidValue):
        date_window(None, year)


async def test_presence_ratio_in_last_representable_month(attendance_ledger, professor):
    await _record_sessions(attendance_ledger, professor, ["present"])
    ratio = await attendance_ledger.presence_ratio(101, MATH, month=12, year=9999)
    assert (ratio.total, ratio.ratio) == (0, 0.0)


async def test_history_with_year_outside_calendar_is_invalid(attendance_ledger):
    with pytest.raises(InvalidValue):
        await attendance_ledger.history(101, year=0)


async def test_history_lists_newest_first(attendance_ledger, professor):
    await _record_sessions(attendance_ledger, professor, ["present", "late", "absent"])

    history = await attendance_ledger.history(101, subject_id=MATH)

    assert [r.class_date for r in history.records] == [date(2026, 3, 4), date(2026, 3, 3), date(2026, 3, 2)]
    assert (history.present, history.late, history.absent) == (1, 1, 1)
    assert history.presence_ratio == pytest.approx(66.67)


async def test_history_for_other_month_is_empty(attendance_ledger, professor):
    await _record_sessions(attendance_ledger, professor, ["present"])
    history = await attendance_ledger.history(101, month=5, year=2026)
    assert history.total == 0
    assert history.records == []
