from datetime import datetime

import pytest

from plenpilot_api.app.schemas.location import LocationRead
from plenpilot_api.app.schemas.time_entry import TimeEntryRead
from plenpilot_api.app.schemas.user import UserRead
from plenpilot_api.app.services.status_resolver import (
    UNKNOWN_EMPLOYEE_NAME,
    is_due,
    resolve_weekly_status,
)


def location(id=1, start_week=18, maintenance_frequency=2, edge_cutting_frequency=4):
    return LocationRead(
        id=id,
        name=f"Sted {id}",
        address="",
        maintenance_frequency=maintenance_frequency,
        edge_cutting_frequency=edge_cutting_frequency,
        start_week=start_week,
    )


def entry(id, employee_id, location_id=1, day=20, tagged=(), hours=1.0, edge=False):
    return TimeEntryRead(
        id=id,
        location_id=location_id,
        employee_id=employee_id,
        date=datetime(2024, 5, day, 10, 0),
        hours=hours,
        edge_cutting_done=edge,
        tagged_employee_ids=list(tagged),
    )


USERS = {
    1: UserRead(id=1, email="a@plenpilot.no", name="Anne", role="employee"),
    2: UserRead(id=2, email="b@plenpilot.no", name="Bjørn", role="employee"),
}


@pytest.mark.parametrize("start", [1, 18, 30])
@pytest.mark.parametrize("frequency", [1, 2, 3, 4])
def test_is_due_matches_cadence_for_all_weeks(start, frequency):
    for week in range(1, 54):
        expected = week >= start and (week - start) % frequency == 0
        assert is_due(week, start, frequency) is expected


def test_biweekly_cadence_from_week_18():
    assert [w for w in range(17, 24) if is_due(w, 18, 2)] == [18, 20, 22]


def test_not_due_location_without_activity_is_planned_and_empty():
    [result] = resolve_weekly_status(19, [location()], [], USERS)
    assert result.status == "planlagt"
    assert result.time_entries == []
    assert result.tagged_employees == []
    assert not result.is_due_for_maintenance_in_selected_week


def test_due_location_without_activity_is_planned_with_flags():
    [result] = resolve_weekly_status(20, [location()], [], USERS)
    assert result.status == "planlagt"
    assert result.is_due_for_maintenance_in_selected_week
    assert not result.is_due_for_edge_cutting_in_selected_week


def test_all_tagged_employees_must_log_hours():
    entries = [entry(1, employee_id=1, tagged=[1, 2])]
    [result] = resolve_weekly_status(20, [location()], entries, USERS)
    assert result.status == "ikke_utfort"

    entries.append(entry(2, employee_id=2, day=21))
    [result] = resolve_weekly_status(20, [location()], entries, USERS)
    assert result.status == "fullfort"


def test_entries_without_tags_complete_regardless_of_due_flags():
    entries = [entry(1, employee_id=1)]
    for week in (19, 20, 21):
        [result] = resolve_weekly_status(week, [location()], entries, USERS)
        assert result.status == "fullfort"


def test_stray_entry_in_off_week_still_gets_full_status():
    entries = [entry(1, employee_id=1, tagged=[2])]
    [result] = resolve_weekly_status(19, [location()], entries, USERS)
    assert result.status == "ikke_utfort"
    assert not result.is_due_for_maintenance_in_selected_week
    assert [e.id for e in result.time_entries] == [1]


def test_entries_sorted_newest_first_with_names_resolved():
    entries = [entry(1, 1, day=20), entry(2, 2, day=22), entry(3, 99, day=21)]
    [result] = resolve_weekly_status(20, [location()], entries, USERS)
    assert [e.id for e in result.time_entries] == [2, 3, 1]
    assert [e.employee_name for e in result.time_entries] == ["Bjørn", UNKNOWN_EMPLOYEE_NAME, "Anne"]


def test_unknown_tagged_employee_renders_placeholder():
    entries = [entry(1, 1, tagged=[2, 42])]
    [result] = resolve_weekly_status(20, [location()], entries, USERS)
    assert [(t.id, t.name) for t in result.tagged_employees] == [(2, "Bjørn"), (42, UNKNOWN_EMPLOYEE_NAME)]


def test_entries_partitioned_by_location_and_order_kept():
    locations = [location(id=2), location(id=1)]
    entries = [entry(1, 1, location_id=1, hours=1.5, edge=True), entry(2, 2, location_id=1, hours=2.0)]
    results = resolve_weekly_status(19, locations, entries, USERS)
    assert [r.id for r in results] == [2, 1]
    assert results[0].status == "planlagt"
    assert results[1].status == "fullfort"
    assert results[1].total_hours == pytest.approx(3.5)
    assert results[1].edge_cutting_done_in_selected_week
