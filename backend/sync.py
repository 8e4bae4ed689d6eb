"""Copy the week currently in the spreadsheet into the database."""
import logging
import os
import time
from datetime import date

from sqlmodel import Session

from date_utils import get_week_start
from schedule_store import add_sync_log, cleanup_old_weeks, update_current_week_flag, upsert_week_schedule
from schemas import ScheduleEntry, SyncResult
from sheets import SheetsClient

logger = logging.getLogger(__name__)

DEFAULT_KEEP_WEEKS = 3


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def log_sync(session: Session, sync_type: str, status: str, message: str, records_synced: int, duration_ms: int):
    """Record a sync run. A failure here never fails the sync itself."""
    try:
        add_sync_log(session, sync_type, status, message, records_synced, duration_ms)
    except Exception as e:
        session.rollback()
        logger.error(f"Failed to log sync: {str(e)}")


def fetch_sheet_week(sheets: SheetsClient) -> tuple[str, list[ScheduleEntry]]:
    """Get the sheet's week start and the entries of both locations."""
    schedules = sheets.get_week_schedules()
    week_start = next((s.week_start for s in schedules if s.week_start), "")
    entries = [entry for schedule in schedules for entry in schedule.entries]
    return week_start, entries


def sync_current_week_from_sheets(session: Session, sheets: SheetsClient, today: date | None = None) -> SyncResult:
    """Store whatever week the spreadsheet holds right now."""
    start = time.monotonic()
    try:
        week_start, entries = fetch_sheet_week(sheets)
        if not week_start:
            logger.warning("No week start date found in the spreadsheet")
            return SyncResult(
                success=False,
                message="No week start date found in the spreadsheet",
                duration_ms=_elapsed_ms(start),
            )

        _, count = upsert_week_schedule(session, week_start, entries)
        update_current_week_flag(session, get_week_start(today))

        message = f"Successfully synced week {week_start}"
        log_sync(session, "full", "success", message, count, _elapsed_ms(start))
        logger.info(message)
        return SyncResult(
            success=True,
            message=message,
            weeks_processed=1,
            entries_synced=count,
            duration_ms=_elapsed_ms(start),
        )
    except Exception as e:
        logger.error(f"Sync failed: {str(e)}")
        log_sync(session, "full", "error", str(e), 0, _elapsed_ms(start))
        return SyncResult(success=False, message=str(e), duration_ms=_elapsed_ms(start))


def weekly_sync(
    session: Session,
    sheets: SheetsClient,
    keep_weeks: int | None = None,
    today: date | None = None,
) -> SyncResult:
    """Scheduled job: sync the sheet week, then drop weeks past retention."""
    start = time.monotonic()
    if keep_weeks is None:
        keep_weeks = int(os.getenv("KEEP_WEEKS", str(DEFAULT_KEEP_WEEKS)))

    sync_result = sync_current_week_from_sheets(session, sheets, today=today)
    try:
        deleted = cleanup_old_weeks(session, keep_weeks, today=today)
        update_current_week_flag(session, get_week_start(today))
    except Exception as e:
        session.rollback()
        logger.error(f"Weekly cleanup failed: {str(e)}")
        log_sync(session, "full", "error", str(e), sync_result.entries_synced, _elapsed_ms(start))
        return SyncResult(
            success=False,
            message=str(e),
            weeks_processed=sync_result.weeks_processed,
            entries_synced=sync_result.entries_synced,
            duration_ms=_elapsed_ms(start),
        )

    if sync_result.success:
        message = f"Weekly sync completed. Synced: {sync_result.weeks_processed} weeks, Deleted: {deleted} old weeks"
    else:
        message = f"Weekly sync failed: {sync_result.message}. Deleted: {deleted} old weeks"
    log_sync(
        session,
        "full",
        "success" if sync_result.success else "error",
        message,
        sync_result.entries_synced,
        _elapsed_ms(start),
    )
    return SyncResult(
        success=sync_result.success,
        message=message,
        weeks_processed=sync_result.weeks_processed,
        entries_synced=sync_result.entries_synced,
        weeks_deleted=deleted,
        duration_ms=_elapsed_ms(start),
    )


def sync_specific_week(session: Session, sheets: SheetsClient, week_start: str) -> SyncResult:
    """Store the sheet week, but only if it is the requested week."""
    start = time.monotonic()
    try:
        sheet_week_start, entries = fetch_sheet_week(sheets)
        if sheet_week_start != week_start:
            message = f"Sheet week ({sheet_week_start}) does not match requested week ({week_start})"
            logger.warning(message)
            return SyncResult(success=False, message=message, duration_ms=_elapsed_ms(start))

        _, count = upsert_week_schedule(session, week_start, entries)

        message = f"Successfully synced week {week_start}"
        log_sync(session, "incremental", "success", f"Synced specific week {week_start}", count, _elapsed_ms(start))
        return SyncResult(
            success=True,
            message=message,
            weeks_processed=1,
            entries_synced=count,
            duration_ms=_elapsed_ms(start),
        )
    except Exception as e:
        logger.error(f"Sync of week {week_start} failed: {str(e)}")
        log_sync(session, "incremental", "error", str(e), 0, _elapsed_ms(start))
        return SyncResult(success=False, message=str(e), duration_ms=_elapsed_ms(start))
