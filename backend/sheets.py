"""Read the schedule workbook and turn its sheets into schedules.

The workbook comes from SCHEDULE_WORKBOOK_PATH (a local .xlsx file) or is
exported from Google Sheets by GOOGLE_SHEET_ID.
"""
import logging
import os
from datetime import date, datetime, time
from io import BytesIO
from typing import Callable

import openpyxl
import requests
from openpyxl import Workbook

from date_utils import add_days, format_date, is_valid_date_string
from schedule_parser import (
    consolidate_to_all_day,
    normalize_name,
    parse_employees,
    parse_schedule_sheet,
)
from schemas import EmployeeWeekSchedule, Location, LocationSchedule, WeekSchedule

logger = logging.getLogger(__name__)

EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export"
EMPLOYEES_SHEET = "employees"
LOCATION_SHEETS = {
    Location.NO3: "no3_schedule",
    Location.WESTMINSTER: "westminster_schedule",
}


class SheetsError(Exception):
    """The spreadsheet could not be read."""


class SheetsConfigError(SheetsError):
    pass


class SheetNotFoundError(SheetsError):
    pass


def cell_to_str(value) -> str:
    """Render a cell value the way it reads in the sheet."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return format_date(value.date())
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return format_date(value)
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def download_workbook(sheet_id: str, access_token: str | None = None, timeout: int = 30) -> Workbook:
    """Export a Google spreadsheet as .xlsx and load it."""
    headers = {"Authorization": f"Bearer {access_token}"} if access_token else {}
    url = EXPORT_URL.format(sheet_id=sheet_id)
    logger.info(f"Downloading spreadsheet {sheet_id}")
    try:
        response = requests.get(url, params={"format": "xlsx"}, headers=headers, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise SheetsError(f"Failed to download spreadsheet {sheet_id}: {e}") from e
    return openpyxl.load_workbook(BytesIO(response.content), data_only=True)


def build_employee_schedule(name: str, schedules: list[WeekSchedule]) -> EmployeeWeekSchedule:
    """Collect one employee's entries from each location's week."""
    employee_name = normalize_name(name)
    week_start = next((s.week_start for s in schedules if s.week_start), "")
    week_end = next((s.week_end for s in schedules if s.week_end), "")

    location_schedules = []
    for schedule in schedules:
        entries = [e for e in schedule.entries if e.name == employee_name]
        if entries:
            location_schedules.append(LocationSchedule(location=schedule.location, entries=entries))

    return EmployeeWeekSchedule(
        employee_name=employee_name,
        week_start=week_start,
        week_end=week_end,
        schedules=location_schedules,
    )


def load_workbook_from_env() -> Workbook:
    workbook_path = os.getenv("SCHEDULE_WORKBOOK_PATH")
    if workbook_path:
        if not os.path.exists(workbook_path):
            raise SheetsConfigError(f"SCHEDULE_WORKBOOK_PATH does not exist: {workbook_path}")
        logger.info(f"Loading schedule workbook from {workbook_path}")
        return openpyxl.load_workbook(workbook_path, data_only=True)

    sheet_id = os.getenv("GOOGLE_SHEET_ID")
    if not sheet_id:
        raise SheetsConfigError(
            "Missing required environment variables: SCHEDULE_WORKBOOK_PATH or GOOGLE_SHEET_ID"
        )
    return download_workbook(sheet_id, os.getenv("GOOGLE_ACCESS_TOKEN"))


class SheetsClient:
    """Schedule sheets of one workbook, loaded on first use."""

    def __init__(self, workbook: Workbook | None = None, loader: Callable[[], Workbook] | None = None):
        if workbook is None and loader is None:
            raise ValueError("SheetsClient needs a workbook or a loader")
        self._workbook = workbook
        self._loader = loader

    @classmethod
    def from_env(cls) -> "SheetsClient":
        return cls(loader=load_workbook_from_env)

    @property
    def workbook(self) -> Workbook:
        if self._workbook is None:
            self._workbook = self._loader()
        return self._workbook

    def get_grid(self, title: str) -> list[list[str]]:
        """Return every row of a sheet (title matched case-insensitively) as strings."""
        for sheet_name in self.workbook.sheetnames:
            if sheet_name.lower() == title.lower():
                sheet = self.workbook[sheet_name]
                return [[cell_to_str(v) for v in row] for row in sheet.iter_rows(values_only=True)]
        raise SheetNotFoundError(f"Sheet not found: {title}")

    def get_employees(self) -> list[str]:
        return parse_employees(self.get_grid(EMPLOYEES_SHEET))

    def get_week_schedule(self, location: Location) -> WeekSchedule:
        try:
            rows = self.get_grid(LOCATION_SHEETS[location])
        except SheetNotFoundError as e:
            raise SheetNotFoundError(f"Sheet not found for location: {location.value}") from e

        entries = consolidate_to_all_day(parse_schedule_sheet(rows, location))

        date_row = rows[1] if len(rows) > 1 else []
        week_start = next((d for d in date_row if is_valid_date_string(d)), "")
        week_end = add_days(week_start, 6) if week_start else ""

        logger.info(f"Parsed {len(entries)} entries for {location.value} week {week_start or '(none)'}")
        return WeekSchedule(week_start=week_start, week_end=week_end, location=location, entries=entries)

    def get_week_schedules(self) -> list[WeekSchedule]:
        return [self.get_week_schedule(location) for location in Location]

    def get_employee_schedule(self, name: str) -> EmployeeWeekSchedule:
        return build_employee_schedule(name, self.get_week_schedules())


def get_sheets_client() -> SheetsClient:
    """Get a client for the configured workbook."""
    return SheetsClient.from_env()
