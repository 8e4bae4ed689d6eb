"""Database cache of parsed weeks, keyed by week start."""
import logging
from datetime import UTC, date, datetime, timedelta
from typing import NamedTuple

from sqlmodel import Session, col, delete, select

from date_utils import add_days, format_date
from models import ScheduleEntryRecord, SyncLog, Week
from schemas import Location, NoteType, ScheduleEntry, ShiftType, TimeNote, WeekSchedule

logger = logging.getLogger(__name__)


class StoredWeek(NamedTuple):
    week: Week
    schedules: dict[Location, WeekSchedule]


def entry_from_record(record: ScheduleEntryRecord) -> ScheduleEntry:
    note = None
    if record.note_type and record.note_time:
        note = TimeNote(type=NoteType(record.note_type), time=record.note_time)
    return ScheduleEntry(
        name=record.employee_name,
        date=record.date,
        day_of_week=record.day_of_week,
        shift=ShiftType(record.shift),
        location=Location(record.location),
        note=note,
    )


def record_from_entry(week_id: int, entry: ScheduleEntry) -> ScheduleEntryRecord:
    return ScheduleEntryRecord(
        week_id=week_id,
        employee_name=entry.name,
        date=entry.date,
        day_of_week=entry.day_of_week,
        shift=entry.shift.value,
        location=entry.location.value,
        note_type=entry.note.type.value if entry.note else None,
        note_time=entry.note.time if entry.note else None,
    )


def get_week(session: Session, week_start: str) -> Week | None:
    return session.exec(select(Week).where(Week.week_start == week_start)).first()


def _week_entries(session: Session, week: Week, location: Location | None = None) -> list[ScheduleEntry]:
    stmt = select(ScheduleEntryRecord).where(ScheduleEntryRecord.week_id == week.id)
    if location is not None:
        stmt = stmt.where(ScheduleEntryRecord.location == location.value)
    stmt = stmt.order_by(ScheduleEntryRecord.date, ScheduleEntryRecord.shift, ScheduleEntryRecord.id)
    return [entry_from_record(r) for r in session.exec(stmt).all()]


def get_schedule_by_week(session: Session, week_start: str) -> StoredWeek | None:
    """Get both locations' schedules for a stored week, or None if not stored."""
    week = get_week(session, week_start)
    if week is None:
        return None

    entries = _week_entries(session, week)
    schedules = {
        location: WeekSchedule(
            week_start=week.week_start,
            week_end=week.week_end,
            location=location,
            entries=[e for e in entries if e.location == location],
        )
        for location in Location
    }
    return StoredWeek(week, schedules)


def get_week_schedule_by_location(session: Session, week_start: str, location: Location) -> WeekSchedule | None:
    week = get_week(session, week_start)
    if week is None:
        return None
    return WeekSchedule(
        week_start=week.week_start,
        week_end=week.week_end,
        location=location,
        entries=_week_entries(session, week, location),
    )


def get_available_weeks(session: Session) -> list[str]:
    """Stored week starts, newest first."""
    return list(session.exec(select(Week.week_start).order_by(col(Week.week_start).desc())).all())


def week_exists(session: Session, week_start: str) -> bool:
    return get_week(session, week_start) is not None


def upsert_week_schedule(session: Session, week_start: str, entries: list[ScheduleEntry]) -> tuple[int, int]:
    """Replace everything stored for the week with `entries`.

    Returns (week_id, entries_count). All changes are committed together.
    """
    try:
        week = get_week(session, week_start)
        if week is None:
            week = Week(week_start=week_start, week_end=add_days(week_start, 6))
        else:
            week.synced_at = datetime.now(UTC)
        session.add(week)
        session.flush()

        session.exec(delete(ScheduleEntryRecord).where(ScheduleEntryRecord.week_id == week.id))
        for entry in entries:
            session.add(record_from_entry(week.id, entry))

        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Failed to store week {week_start}: {str(e)}")
        raise

    logger.info(f"Stored {len(entries)} entries for week {week_start}")
    return week.id, len(entries)


def cleanup_old_weeks(session: Session, keep_weeks: int = 3, today: date | None = None) -> int:
    """Delete weeks starting more than `keep_weeks` weeks ago. Returns how many."""
    today = today or datetime.now().date()
    cutoff = format_date(today - timedelta(weeks=keep_weeks))

    old_ids = list(session.exec(select(Week.id).where(Week.week_start < cutoff)).all())
    if not old_ids:
        return 0

    session.exec(delete(ScheduleEntryRecord).where(col(ScheduleEntryRecord.week_id).in_(old_ids)))
    session.exec(delete(Week).where(col(Week.id).in_(old_ids)))
    session.commit()

    logger.info(f"Deleted {len(old_ids)} weeks older than {cutoff}")
    return len(old_ids)


def update_current_week_flag(session: Session, current_week_start: str):
    for week in session.exec(select(Week)).all():
        week.is_current = week.week_start == current_week_start
        session.add(week)
    session.commit()


def add_sync_log(
    session: Session,
    sync_type: str,
    status: str,
    message: str,
    records_synced: int,
    duration_ms: int,
):
    session.add(
        SyncLog(
            sync_type=sync_type,
            status=status,
            message=message,
            records_synced=records_synced,
            duration_ms=duration_ms,
        )
    )
    session.commit()


def get_recent_sync_logs(session: Session, limit: int = 10) -> list[SyncLog]:
    stmt = select(SyncLog).order_by(col(SyncLog.created_at).desc(), col(SyncLog.id).desc()).limit(limit)
    return list(session.exec(stmt).all())
