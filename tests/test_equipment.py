import pytest
from pydantic import ValidationError

from plenpilot_api.app.schemas.equipment import MowerCreate, MowerUpdate, ServiceIntervalCreate
from plenpilot_api.app.schemas.season_settings import SeasonSettingsUpdate
from plenpilot_api.app.services.equipment_service import EquipmentService
from plenpilot_api.app.services.season_settings_service import SeasonSettingsService


def add_mower(run, name="Klipper", intervals=(("Oljeskift", 50),)):
    return run(EquipmentService.add_mower(MowerCreate(
        name=name,
        model="R 316",
        service_intervals=[ServiceIntervalCreate(description=d, hour_interval=h) for d, h in intervals],
    )))


def test_new_mower_starts_at_zero_hours_with_intervals(run):
    mower = add_mower(run)
    assert mower.total_hours == 0
    [interval] = mower.service_intervals
    assert interval.description == "Oljeskift"
    assert interval.last_reset_hours == 0
    assert interval.last_reset_by is None


def test_all_mowers_sorted_with_intervals(run):
    add_mower(run, "B-klipper", intervals=[("Kniver", 25), ("Olje", 50)])
    add_mower(run, "A-klipper", intervals=[])
    mowers = run(EquipmentService.get_all_mowers())
    assert [m.name for m in mowers] == ["A-klipper", "B-klipper"]
    assert [len(m.service_intervals) for m in mowers] == [0, 2]


def test_usage_and_service_reset(run, make_user):
    admin = make_user("Verksted Sjef", role="admin")
    mower = add_mower(run, intervals=[("Oljeskift", 10)])
    run(EquipmentService.log_mower_usage(mower.id, 6))
    assert run(EquipmentService.get_mowers_needing_service()) == []
    run(EquipmentService.log_mower_usage(mower.id, 5))
    assert [m.id for m in run(EquipmentService.get_mowers_needing_service())] == [mower.id]

    interval_id = mower.service_intervals[0].id
    log = run(EquipmentService.reset_service_interval(mower.id, interval_id, admin.id))
    assert log.performed_by == "Verksted Sjef"
    assert log.hours_at_service == pytest.approx(11)
    assert run(EquipmentService.get_mowers_needing_service()) == []

    refreshed = run(EquipmentService.get_mower_by_id(mower.id))
    assert refreshed.service_intervals[0].last_reset_hours == pytest.approx(11)
    assert refreshed.service_intervals[0].last_reset_by == "Verksted Sjef"
    assert [entry.id for entry in run(EquipmentService.get_service_logs(mower.id))] == [log.id]


def test_reset_unknown_interval(run, make_user):
    admin = make_user(role="admin")
    mower = add_mower(run)
    with pytest.raises(ValueError):
        run(EquipmentService.reset_service_interval(mower.id, 999, admin.id))
    with pytest.raises(ValueError):
        run(EquipmentService.reset_service_interval(999, 1, admin.id))


def test_update_add_and_delete(run):
    mower = add_mower(run, intervals=[])
    updated = run(EquipmentService.update_mower_details(mower.id, MowerUpdate(serial_number="SN-1")))
    assert updated.serial_number == "SN-1"
    assert updated.name == mower.name

    interval = run(EquipmentService.add_service_interval(mower.id, ServiceIntervalCreate(description="Luftfilter", hour_interval=25)))
    run(EquipmentService.delete_service_interval(mower.id, interval.id))
    assert run(EquipmentService.get_mower_by_id(mower.id)).service_intervals == []

    run(EquipmentService.delete_mower(mower.id))
    assert run(EquipmentService.get_mower_by_id(mower.id)) is None
    with pytest.raises(ValueError):
        run(EquipmentService.log_mower_usage(mower.id, 1))


def test_season_defaults_then_upsert(run):
    defaults = run(SeasonSettingsService.get_season_settings(2024))
    assert (defaults.start_week, defaults.end_week, defaults.default_frequency) == (18, 42, 2)
    assert defaults.id is None

    saved = run(SeasonSettingsService.update_season_settings(
        SeasonSettingsUpdate(start_week=16, end_week=40, default_frequency=1), 2024
    ))
    again = run(SeasonSettingsService.update_season_settings(
        SeasonSettingsUpdate(start_week=17, end_week=41, default_frequency=3), 2024
    ))
    assert again.id == saved.id
    assert (again.start_week, again.end_week, again.default_frequency) == (17, 41, 3)
    assert run(SeasonSettingsService.get_season_settings(2025)).start_week == 18


def test_season_weeks_must_be_ordered():
    with pytest.raises(ValidationError):
        SeasonSettingsUpdate(start_week=30, end_week=20, default_frequency=2)
