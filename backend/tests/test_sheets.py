"""Tests for reading the schedule workbook."""
from datetime import date, datetime, time

import pytest
import requests

import sheets
from conftest import make_workbook
from schemas import Location, NoteType, ShiftType, TimeNote
from sheets import (
    SheetNotFoundError,
    SheetsClient,
    SheetsConfigError,
    SheetsError,
    build_employee_schedule,
    cell_to_str,
)


def test_cell_to_str_renders_sheet_values():
    assert cell_to_str(None) == ""
    assert cell_to_str("  Jane ") == "Jane"
    assert cell_to_str(datetime(2025, 1, 5)) == "2025-01-05"
    assert cell_to_str(date(2025, 1, 5)) == "2025-01-05"
    assert cell_to_str(time(11, 0)) == "11:00"
    assert cell_to_str(time(15, 30)) == "15:30"
    assert cell_to_str(3.0) == "3"
    assert cell_to_str(2.5) == "2.5"


def test_get_grid_matches_title_case_insensitively(sheets_client):
    grid = sheets_client.get_grid("no3_schedule")
    assert grid[0][1] == "Sunday"
    assert grid[1][1] == "2025-01-05"


def test_get_grid_missing_sheet(sheets_client):
    with pytest.raises(SheetNotFoundError):
        sheets_client.get_grid("schedule_archive")


def test_get_employees(sheets_client):
    assert sheets_client.get_employees() == ["John", "Jane", "Ryan"]


def test_get_week_schedule_parses_and_consolidates(sheets_client):
    schedule = sheets_client.get_week_schedule(Location.NO3)

    assert schedule.week_start == "2025-01-05"
    assert schedule.week_end == "2025-01-11"
    assert schedule.location == Location.NO3
    assert [(e.name, e.shift) for e in schedule.entries] == [
        ("John", ShiftType.ALL_DAY),
        ("Jane", ShiftType.ALL_DAY),
        ("Ryan", ShiftType.MORNING),
        ("Alice", ShiftType.ALL_DAY),
        ("Bob", ShiftType.ALL_DAY),
        ("Minji", ShiftType.AFTERNOON),
    ]
    assert schedule.entries[2].note == TimeNote(type=NoteType.UNTIL, time="16:00")


def test_get_week_schedule_reads_date_and_time_cells():
    """Dates and times typed into the sheet come back as datetime/time values."""
    workbook = make_workbook(
        {
            "no3_schedule": [
                ["", "Sunday", "Monday"],
                ["", datetime(2025, 1, 5), datetime(2025, 1, 6)],
                [time(11, 0), "Jane", ""],
                [time(15, 30), "", "Kim"],
            ]
        }
    )

    schedule = SheetsClient(workbook=workbook).get_week_schedule(Location.NO3)

    assert schedule.week_start == "2025-01-05"
    assert [(e.name, e.date, e.shift) for e in schedule.entries] == [
        ("Jane", "2025-01-05", ShiftType.MORNING),
        ("Kim", "2025-01-06", ShiftType.AFTERNOON),
    ]


def test_get_week_schedule_without_dates():
    workbook = make_workbook({"westminster_schedule": [["", "Sunday"], ["", "TBD"], ["*", "Jane"]]})

    schedule = SheetsClient(workbook=workbook).get_week_schedule(Location.WESTMINSTER)

    assert schedule.week_start == ""
    assert schedule.week_end == ""
    assert len(schedule.entries) == 1


def test_get_week_schedule_missing_location_sheet():
    client = SheetsClient(workbook=make_workbook({"employees": [["Name"]]}))

    with pytest.raises(SheetNotFoundError, match="Westminster"):
        client.get_week_schedule(Location.WESTMINSTER)


def test_get_employee_schedule_across_locations(sheets_client):
    schedule = sheets_client.get_employee_schedule("john")

    assert schedule.employee_name == "John"
    assert schedule.week_start == "2025-01-05"
    assert schedule.week_end == "2025-01-11"
    assert [s.location for s in schedule.schedules] == [Location.NO3, Location.WESTMINSTER]
    assert schedule.schedules[0].entries[0].shift == ShiftType.ALL_DAY
    assert schedule.schedules[1].entries[0].shift == ShiftType.AFTERNOON


def test_build_employee_schedule_omits_empty_locations(sheets_client):
    schedule = build_employee_schedule("Kim", sheets_client.get_week_schedules())

    assert [s.location for s in schedule.schedules] == [Location.WESTMINSTER]


def test_build_employee_schedule_unknown_employee(sheets_client):
    schedule = build_employee_schedule("Nobody", sheets_client.get_week_schedules())

    assert schedule.schedules == []
    assert schedule.week_start == "2025-01-05"


def test_from_env_requires_configuration(monkeypatch):
    monkeypatch.delenv("SCHEDULE_WORKBOOK_PATH", raising=False)
    monkeypatch.delenv("GOOGLE_SHEET_ID", raising=False)

    client = SheetsClient.from_env()

    with pytest.raises(SheetsConfigError, match="GOOGLE_SHEET_ID"):
        client.get_employees()


def test_from_env_missing_workbook_file(monkeypatch, tmp_path):
    monkeypatch.setenv("SCHEDULE_WORKBOOK_PATH", str(tmp_path / "missing.xlsx"))

    with pytest.raises(SheetsConfigError):
        SheetsClient.from_env().get_employees()


def test_from_env_loads_workbook_file(monkeypatch, tmp_path, sample_workbook):
    path = tmp_path / "schedule.xlsx"
    sample_workbook.save(path)
    monkeypatch.setenv("SCHEDULE_WORKBOOK_PATH", str(path))

    client = SheetsClient.from_env()

    assert client.get_employees() == ["John", "Jane", "Ryan"]
    assert len(client.get_week_schedule(Location.WESTMINSTER).entries) == 2


def test_download_failure_raises_sheets_error(monkeypatch):
    def fail(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.delenv("SCHEDULE_WORKBOOK_PATH", raising=False)
    monkeypatch.setenv("GOOGLE_SHEET_ID", "sheet-123")
    monkeypatch.setattr(sheets.requests, "get", fail)

    with pytest.raises(SheetsError, match="sheet-123"):
        SheetsClient.from_env().get_employees()


def test_client_needs_workbook_or_loader():
    with pytest.raises(ValueError):
        SheetsClient()
