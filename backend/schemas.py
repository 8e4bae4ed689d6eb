from enum import Enum

from pydantic import BaseModel, ConfigDict


class ShiftType(str, Enum):
    ALL_DAY = "*"
    MORNING = "11:00"
    AFTERNOON = "15:30"


class Location(str, Enum):
    NO3 = "No.3"
    WESTMINSTER = "Westminster"


class NoteType(str, Enum):
    UNTIL = "until"
    FROM = "from"


class TimeNote(BaseModel):
    """Narrows a half-day shift: works until `time` or starts from `time`."""

    model_config = ConfigDict(frozen=True)

    type: NoteType
    time: str  # HH:MM, 24-hour


class ScheduleEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    date: str  # YYYY-MM-DD format
    day_of_week: str  # Taken from the sheet header, not recomputed
    shift: ShiftType
    location: Location
    note: TimeNote | None = None


class WeekSchedule(BaseModel):
    week_start: str
    week_end: str
    location: Location
    entries: list[ScheduleEntry]


class LocationSchedule(BaseModel):
    location: Location
    entries: list[ScheduleEntry]


class EmployeeWeekSchedule(BaseModel):
    employee_name: str
    week_start: str
    week_end: str
    schedules: list[LocationSchedule]


class WeekScheduleResponse(BaseModel):
    source: str  # "database" or "sheets"
    week_start: str
    week_end: str
    no3_schedule: WeekSchedule
    westminster_schedule: WeekSchedule
    synced_at: str | None = None


class WeekRange(BaseModel):
    previous: str
    current: str
    next: str


class AvailableWeeksResponse(BaseModel):
    weeks: list[str]
    current_week: str
    week_range: WeekRange


class EmployeesResponse(BaseModel):
    employees: list[str]


class SyncResult(BaseModel):
    success: bool
    message: str
    weeks_processed: int = 0
    entries_synced: int = 0
    weeks_deleted: int = 0
    duration_ms: int = 0


class SyncLogResponse(BaseModel):
    id: int
    sync_type: str
    status: str
    message: str
    records_synced: int
    duration_ms: int
    created_at: str
