"""
Tests for clock-out reconciliation (settling work_hours on clock-out)
"""
from datetime import date, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from timeclock.core.errors import InvalidPunch, NoOpenShift, PersistenceFailure
from timeclock.models import AuditLog, PunchEvent, PunchType, WorkHours
from timeclock.models.punch_event import LaborCategory
from timeclock.services.clock_out_service import (
    build_work_hours_records,
    find_open_clock_in,
    reconcile_clock_out,
)
from timeclock.services.shift_reconstructor import reconstruct
from timeclock.tests.conftest import local, punch
from timeclock.utils.datetime_utils import ensure_utc


IN, BS, BE, OUT = PunchType.CLOCK_IN, PunchType.BREAK_START, PunchType.BREAK_END, PunchType.CLOCK_OUT


def _clock_outs(db, employee_id=1):
    return db.query(PunchEvent).filter(
        PunchEvent.employee_id == employee_id,
        PunchEvent.event_type == PunchType.CLOCK_OUT,
    ).all()


def test_same_day_clock_out_creates_one_record(db, store_punch):
    store_punch(IN, local(2024, 3, 4, 9), labor_category=LaborCategory.SHIFT, work_center="Centro")
    store_punch(BS, local(2024, 3, 4, 12))
    store_punch(BE, local(2024, 3, 4, 12, 30))

    result = reconcile_clock_out(db, 1, now=local(2024, 3, 4, 17))

    records = db.query(WorkHours).all()
    assert len(records) == 1
    record = records[0]
    assert record.hours == pytest.approx(7.5, abs=1e-9)
    assert record.is_split is False
    assert record.date == date(2024, 3, 4)
    assert ensure_utc(record.clock_in) == ensure_utc(local(2024, 3, 4, 9))
    assert ensure_utc(record.clock_out) == ensure_utc(local(2024, 3, 4, 17))
    assert record.labor_category == LaborCategory.SHIFT
    assert record.work_center == "Centro"

    clock_outs = _clock_outs(db)
    assert len(clock_outs) == 1
    assert ensure_utc(clock_outs[0].timestamp) == ensure_utc(local(2024, 3, 4, 17))
    assert result.event.id == clock_outs[0].id


def test_midnight_crossing_clock_out_creates_two_split_records(db, store_punch):
    store_punch(IN, local(2024, 3, 4, 22), labor_category=LaborCategory.SHIFT)

    reconcile_clock_out(db, 1, now=local(2024, 3, 5, 6))

    records = db.query(WorkHours).order_by(WorkHours.date).all()
    assert len(records) == 2
    day1, day2 = records
    assert (day1.date, day2.date) == (date(2024, 3, 4), date(2024, 3, 5))
    assert day1.hours == pytest.approx(2.0, abs=1e-9)
    assert day2.hours == pytest.approx(6.0, abs=1e-9)
    assert day1.is_split and day2.is_split
    assert ensure_utc(day1.clock_in) == ensure_utc(local(2024, 3, 4, 22))
    assert ensure_utc(day1.clock_out) == ensure_utc(local(2024, 3, 4, 23, 59, 59, 999000))
    assert ensure_utc(day2.clock_in) == ensure_utc(local(2024, 3, 5, 0, 0, 0, 0))
    assert ensure_utc(day2.clock_out) == ensure_utc(local(2024, 3, 5, 6))


def test_split_hours_sum_to_gross_duration(db, store_punch):
    clock_in = local(2024, 3, 4, 21, 17, 33, 250000)
    clock_out = local(2024, 3, 5, 5, 42, 11, 500000)
    store_punch(IN, clock_in, labor_category=LaborCategory.OTHER)

    result = reconcile_clock_out(db, 1, now=clock_out)

    gross_hours = (clock_out - clock_in).total_seconds() / 3600
    assert len(result.records) == 2
    assert abs(sum(r.hours for r in result.records) - gross_hours) < 1e-9


def test_multi_day_shift_creates_one_record_per_day(db, store_punch):
    store_punch(IN, local(2024, 3, 4, 20), labor_category=LaborCategory.SHIFT)

    result = reconcile_clock_out(db, 1, now=local(2024, 3, 6, 4))

    assert [r.date for r in result.records] == [date(2024, 3, 4), date(2024, 3, 5), date(2024, 3, 6)]
    assert [r.hours for r in result.records] == pytest.approx([4.0, 24.0, 4.0])
    assert all(r.is_split for r in result.records)


def test_clock_out_without_clock_in_raises_no_open_shift(db):
    with pytest.raises(NoOpenShift):
        reconcile_clock_out(db, 1, now=local(2024, 3, 4, 17))

    assert db.query(WorkHours).count() == 0
    assert _clock_outs(db) == []


def test_clock_out_after_completed_shift_raises_no_open_shift(db, store_punch):
    store_punch(IN, local(2024, 3, 4, 9), labor_category=LaborCategory.SHIFT)
    store_punch(OUT, local(2024, 3, 4, 17))

    with pytest.raises(NoOpenShift):
        reconcile_clock_out(db, 1, now=local(2024, 3, 4, 18))

    assert db.query(WorkHours).count() == 0
    assert len(_clock_outs(db)) == 1


def test_eliminated_clock_in_does_not_count(db, store_punch):
    store_punch(IN, local(2024, 3, 4, 9), active=False, labor_category=LaborCategory.SHIFT)

    with pytest.raises(NoOpenShift):
        reconcile_clock_out(db, 1, now=local(2024, 3, 4, 17))


def test_clock_out_before_clock_in_is_rejected(db, store_punch):
    store_punch(IN, local(2024, 3, 4, 9), labor_category=LaborCategory.SHIFT)

    with pytest.raises(InvalidPunch):
        reconcile_clock_out(db, 1, now=local(2024, 3, 4, 8))

    assert db.query(WorkHours).count() == 0


def test_breaks_can_be_left_in_settled_hours(db, store_punch):
    store_punch(IN, local(2024, 3, 4, 9), labor_category=LaborCategory.SHIFT)
    store_punch(BS, local(2024, 3, 4, 12))
    store_punch(BE, local(2024, 3, 4, 12, 30))

    result = reconcile_clock_out(db, 1, now=local(2024, 3, 4, 17), subtract_breaks=False)

    assert result.records[0].hours == pytest.approx(8.0)


def test_storage_failure_writes_nothing(db, store_punch, monkeypatch):
    store_punch(IN, local(2024, 3, 4, 22), labor_category=LaborCategory.SHIFT)

    def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "commit", failing_commit)
    with pytest.raises(PersistenceFailure) as exc_info:
        reconcile_clock_out(db, 1, now=local(2024, 3, 5, 6))
    monkeypatch.undo()

    assert isinstance(exc_info.value.__cause__, OperationalError)
    assert db.query(WorkHours).count() == 0
    assert _clock_outs(db) == []


def test_clock_out_is_audited(db, store_punch):
    store_punch(IN, local(2024, 3, 4, 9), labor_category=LaborCategory.SHIFT)

    result = reconcile_clock_out(db, 1, now=local(2024, 3, 4, 17), actor_id=99)

    audit = db.query(AuditLog).filter(AuditLog.action == "PUNCH_CLOCK_OUT").one()
    assert audit.actor_id == 99
    assert audit.entity_id == result.event.id
    assert audit.meta_json["hours"] == [8.0]


def test_find_open_clock_in_uses_latest_clock_in():
    first = punch(IN, local(2024, 3, 4, 9))
    out = punch(OUT, local(2024, 3, 4, 17))
    latest = punch(IN, local(2024, 3, 5, 9))

    assert find_open_clock_in([latest, out, first]) is latest
    assert find_open_clock_in([first, out]) is None
    assert find_open_clock_in([]) is None


def test_build_records_matches_aggregator_portions():
    shift = reconstruct([
        punch(IN, local(2024, 3, 4, 22)),
        punch(BS, local(2024, 3, 4, 23, 30)),
        punch(BE, local(2024, 3, 5, 0, 30)),
        punch(OUT, local(2024, 3, 5, 6)),
    ])[0]

    records = build_work_hours_records(shift)

    assert [r.hours for r in records] == pytest.approx([1.5, 5.5])
    assert sum(r.hours for r in records) == pytest.approx(7.0, abs=1e-9)
    assert records[1].clock_in - records[0].clock_out == timedelta(milliseconds=1)


def test_clock_out_during_unfinished_break_pays_until_clock_out(db, store_punch):
    store_punch(IN, local(2024, 3, 4, 9), labor_category=LaborCategory.SHIFT)
    store_punch(BS, local(2024, 3, 4, 12))

    result = reconcile_clock_out(db, 1, now=local(2024, 3, 4, 17))

    assert [r.hours for r in result.records] == pytest.approx([8.0])
    assert result.shift.open_break is not None
