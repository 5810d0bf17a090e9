"""
Tests for worked-time reports (live overview and settled hours)
"""
from datetime import date

import pytest
from fastapi import status

from timeclock.core.errors import InvalidRange
from timeclock.models import PunchType
from timeclock.models.punch_event import LaborCategory
from timeclock.services.clock_out_service import reconcile_clock_out
from timeclock.services.punch_service import PunchStatus
from timeclock.services.report_service import (
    daily_summary,
    employee_overview,
    hours_by_date,
    hours_by_employee,
    timesheet,
)
from timeclock.tests.conftest import local
from timeclock.utils.datetime_utils import ensure_utc


IN, BS, BE, OUT = PunchType.CLOCK_IN, PunchType.BREAK_START, PunchType.BREAK_END, PunchType.CLOCK_OUT


@pytest.fixture
def worked_week(store_punch):
    """Employee 1: a closed 7.5 h day and an open shift the next morning."""
    store_punch(IN, local(2024, 3, 4, 9), labor_category=LaborCategory.SHIFT, work_center="Centro")
    store_punch(BS, local(2024, 3, 4, 12))
    store_punch(BE, local(2024, 3, 4, 12, 30))
    store_punch(OUT, local(2024, 3, 4, 17))
    store_punch(IN, local(2024, 3, 5, 8), labor_category=LaborCategory.TRAINING)


@pytest.fixture
def night_shift(db, store_punch):
    """Employee 1 works 22:00 to 06:00; the clock-out settles two work_hours rows."""
    store_punch(IN, local(2024, 3, 4, 22), labor_category=LaborCategory.SHIFT)
    return reconcile_clock_out(db, 1, now=local(2024, 3, 5, 6))


def test_overview_totals_and_state(db, worked_week):
    rows = employee_overview(db, [2, 1, 2], now=local(2024, 3, 5, 10))

    assert [r.employee_id for r in rows] == [2, 1]
    idle, busy = rows
    assert idle.total.total_seconds() == 0
    assert idle.state.status == PunchStatus.INITIAL
    assert busy.total.total_seconds() == pytest.approx(9.5 * 3600)
    assert busy.today.total_seconds() == pytest.approx(2 * 3600)
    assert busy.state.status == PunchStatus.WORKING
    assert busy.state.labor_category == LaborCategory.TRAINING
    assert list(busy.daily_totals) == [date(2024, 3, 4), date(2024, 3, 5)]
    assert len(busy.entries) == 5


def test_overview_window_limits_events(db, worked_week):
    rows = employee_overview(db, [1], local(2024, 3, 4), local(2024, 3, 4, 23), now=local(2024, 3, 5, 10))
    assert rows[0].total.total_seconds() == pytest.approx(7.5 * 3600)
    # the state comes from the whole history, not the window
    assert rows[0].state.status == PunchStatus.WORKING
    assert len(rows[0].entries) == 4


def test_reversed_window_is_rejected(db):
    with pytest.raises(InvalidRange):
        timesheet(db, 1, local(2024, 3, 5), local(2024, 3, 4))
    with pytest.raises(InvalidRange):
        hours_by_employee(db, [1], date(2024, 3, 5), date(2024, 3, 4))


def test_timesheet_shifts(db, worked_week):
    summary = timesheet(db, 1, now=local(2024, 3, 5, 9))
    assert len(summary.shifts) == 2
    assert summary.total.total_seconds() == pytest.approx(8.5 * 3600)


def test_settled_hours_per_day(db, night_shift):
    assert daily_summary(db, 1, date(2024, 3, 1), date(2024, 3, 31)) == [
        (date(2024, 3, 4), pytest.approx(2.0)),
        (date(2024, 3, 5), pytest.approx(6.0)),
    ]
    rows = hours_by_date(db, 1, date(2024, 3, 5))
    assert len(rows) == 1
    assert rows[0].is_split is True


def test_settled_hours_per_employee(db, night_shift):
    assert hours_by_employee(db, [1, 3], date(2024, 3, 5), date(2024, 3, 5)) == {1: 6.0, 3: 0.0}
    assert hours_by_employee(db, [1], date(2024, 3, 4), date(2024, 3, 5)) == {1: 8.0}
    assert hours_by_employee(db, [], date(2024, 3, 4), date(2024, 3, 5)) == {}


def test_overview_endpoint(client, worked_week):
    response = client.get(
        "/api/v1/reports/overview",
        params={"employee_id": [1, 2], "include_entries": "true"},
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert [row["employee_id"] for row in data] == [1, 2]
    assert data[0]["status"] == "working"
    assert len(data[0]["entries"]) == 5
    assert data[1]["status"] == "initial"
    assert data[1]["total_hours"] == 0


def test_hours_endpoint(client, night_shift):
    response = client.get(
        "/api/v1/reports/hours",
        params={"employee_id": [1], "from": "2024-03-04", "to": "2024-03-05"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == [{"employee_id": 1, "total_hours": 8.0}]


def test_reversed_range_returns_400(client):
    response = client.get(
        "/api/v1/reports/hours",
        params={"employee_id": [1], "from": "2024-03-05", "to": "2024-03-04"},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "INVALID_RANGE"


def test_window_end_cuts_a_night_shift(db, store_punch):
    store_punch(IN, local(2024, 3, 4, 22), labor_category=LaborCategory.SHIFT)
    store_punch(OUT, local(2024, 3, 5, 6))
    window = (local(2024, 3, 4), local(2024, 3, 5))

    summary = timesheet(db, 1, *window, now=local(2024, 3, 10, 12))

    assert list(summary.daily_totals) == [date(2024, 3, 4)]
    assert summary.total.total_seconds() == pytest.approx(2 * 3600)
    assert summary.shifts[0].end_at == ensure_utc(local(2024, 3, 5, 6))

    row = employee_overview(db, [1], *window, now=local(2024, 3, 10, 12))[0]
    assert row.total.total_seconds() == pytest.approx(2 * 3600)
    assert row.state.status == PunchStatus.INITIAL


def test_window_start_cuts_a_night_shift(db, store_punch):
    store_punch(IN, local(2024, 3, 4, 22), labor_category=LaborCategory.SHIFT)
    store_punch(BS, local(2024, 3, 5, 2))
    store_punch(BE, local(2024, 3, 5, 2, 30))
    store_punch(OUT, local(2024, 3, 5, 6))

    summary = timesheet(db, 1, local(2024, 3, 5), local(2024, 3, 5, 23, 59), now=local(2024, 3, 10, 12))

    assert list(summary.daily_totals) == [date(2024, 3, 5)]
    assert summary.total.total_seconds() == pytest.approx(5.5 * 3600)


def test_open_shift_is_cut_at_window_end(db, store_punch):
    store_punch(IN, local(2024, 3, 4, 9), labor_category=LaborCategory.SHIFT)

    row = employee_overview(db, [1], local(2024, 3, 4), local(2024, 3, 4, 18), now=local(2024, 3, 6, 12))[0]

    assert row.total.total_seconds() == pytest.approx(9 * 3600)
    assert list(row.daily_totals) == [date(2024, 3, 4)]
    assert row.state.status == PunchStatus.WORKING


def test_shift_outside_window_is_left_out(db, worked_week):
    summary = timesheet(db, 1, local(2024, 3, 6), local(2024, 3, 7), now=local(2024, 3, 5, 9))

    assert summary.shifts == []
    assert summary.total.total_seconds() == 0
