"""
Weekly status resolution for locations.

Given the active locations, every time entry dated within one ISO week
and the users referenced by those entries, ``resolve_weekly_status``
decides for each location whether mowing and/or edge cutting is due
that week and whether the work has been completed.

The function performs no I/O.  Callers fetch the inputs (chunking any
"id is one of N" lookups) and pass them in; the result is a pure
projection of ``(week, locations, entries, users)``.

Status rules per location:

* not due for either task, no entries and no tagged employees:
  ``planlagt`` with empty lists;
* entries with tagged employees: ``fullfort`` once every tagged
  employee has logged at least one entry of their own, otherwise
  ``ikke_utfort``;
* entries without tagged employees: ``fullfort``;
* tagged employees without entries: ``ikke_utfort``;
* otherwise ``planlagt``.

A location that is not due but still has entries (for example work
logged off‑cadence) gets a full status computation; it is not skipped.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Mapping

from ..schemas.location import LocationRead, LocationWithStatus, TaggedEmployee
from ..schemas.time_entry import TimeEntryRead, TimeEntryWithEmployee
from ..schemas.user import UserRead

UNKNOWN_EMPLOYEE_NAME = "Ukjent ansatt"

STATUS_PLANNED = "planlagt"
STATUS_NOT_DONE = "ikke_utfort"
STATUS_COMPLETED = "fullfort"


def is_due(week_number: int, start_week: int, frequency: int) -> bool:
    """Return True when a cadence starting at ``start_week`` lands on ``week_number``."""
    if week_number < start_week:
        return False
    return (week_number - start_week) % frequency == 0


def _employee_name(users_by_id: Mapping[int, UserRead], user_id: int) -> str:
    user = users_by_id.get(user_id)
    return user.name if user else UNKNOWN_EMPLOYEE_NAME


def _tagged_employee(users_by_id: Mapping[int, UserRead], user_id: int) -> TaggedEmployee:
    user = users_by_id.get(user_id)
    if user is None:
        return TaggedEmployee(id=user_id, name=UNKNOWN_EMPLOYEE_NAME)
    return TaggedEmployee(id=user.id, name=user.name, email=user.email)


def _status_for(entries: List[TimeEntryRead], tagged_ids: List[int]) -> str:
    if entries:
        if tagged_ids:
            authors = {entry.employee_id for entry in entries}
            if all(tagged_id in authors for tagged_id in tagged_ids):
                return STATUS_COMPLETED
            return STATUS_NOT_DONE
        return STATUS_COMPLETED
    if tagged_ids:
        return STATUS_NOT_DONE
    return STATUS_PLANNED


def resolve_weekly_status(
    week_number: int,
    locations: Iterable[LocationRead],
    time_entries_in_week: Iterable[TimeEntryRead],
    users_by_id: Mapping[int, UserRead],
) -> List[LocationWithStatus]:
    """Compute ``LocationWithStatus`` for every location in ``locations``.

    Output order follows ``locations``.  Time entries are attached
    sorted by date, newest first, with the author's name resolved;
    unknown user ids are rendered as ``"Ukjent ansatt"``.
    """
    entries_by_location: Dict[int, List[TimeEntryRead]] = defaultdict(list)
    for entry in time_entries_in_week:
        entries_by_location[entry.location_id].append(entry)

    results: List[LocationWithStatus] = []
    for location in locations:
        due_maintenance = is_due(week_number, location.start_week, location.maintenance_frequency)
        due_edge_cutting = is_due(week_number, location.start_week, location.edge_cutting_frequency)

        entries = entries_by_location.get(location.id, [])
        tagged_ids: List[int] = []
        for entry in entries:
            for tagged_id in entry.tagged_employee_ids:
                if tagged_id not in tagged_ids:
                    tagged_ids.append(tagged_id)

        base = location.model_dump()
        if not due_maintenance and not due_edge_cutting and not entries and not tagged_ids:
            results.append(LocationWithStatus(**base, status=STATUS_PLANNED))
            continue

        enriched = [
            TimeEntryWithEmployee(
                **entry.model_dump(),
                employee_name=_employee_name(users_by_id, entry.employee_id),
            )
            for entry in sorted(entries, key=lambda e: e.date, reverse=True)
        ]
        results.append(
            LocationWithStatus(
                **base,
                status=_status_for(entries, tagged_ids),
                is_due_for_maintenance_in_selected_week=due_maintenance,
                is_due_for_edge_cutting_in_selected_week=due_edge_cutting,
                edge_cutting_done_in_selected_week=any(e.edge_cutting_done for e in entries),
                total_hours=sum(e.hours for e in entries),
                time_entries=enriched,
                tagged_employees=[_tagged_employee(users_by_id, uid) for uid in tagged_ids],
            )
        )
    return results
