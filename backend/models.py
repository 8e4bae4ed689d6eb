from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class Week(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    week_start: str = Field(index=True, unique=True)  # YYYY-MM-DD, Sunday
    week_end: str  # YYYY-MM-DD, Saturday
    is_current: bool = Field(default=False)
    synced_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ScheduleEntryRecord(SQLModel, table=True):
    __tablename__ = "schedule_entry"

    id: int | None = Field(default=None, primary_key=True)
    week_id: int = Field(foreign_key="week.id", index=True)
    employee_name: str = Field(index=True)
    date: str = Field(index=True)  # YYYY-MM-DD format
    day_of_week: str
    shift: str  # '*', '11:00' or '15:30'
    location: str = Field(index=True)
    note_type: str | None = Field(default=None)  # 'until', 'from', or None
    note_time: str | None = Field(default=None)  # HH:MM


class SyncLog(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    sync_type: str  # 'full' or 'incremental'
    status: str  # 'success' or 'error'
    message: str
    records_synced: int = Field(default=0)
    duration_ms: int = Field(default=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
