import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import Session

from date_utils import get_adjacent_weeks, get_week_start, is_sunday, is_valid_date_string
from db import create_db_and_tables, get_session, is_production
from schedule_store import get_available_weeks, get_recent_sync_logs, get_schedule_by_week
from schemas import (
    AvailableWeeksResponse,
    EmployeesResponse,
    EmployeeWeekSchedule,
    Location,
    SyncLogResponse,
    SyncResult,
    WeekRange,
    WeekScheduleResponse,
)
from sheets import SheetsClient, SheetsConfigError, SheetsError, build_employee_schedule, get_sheets_client
from sync import sync_current_week_from_sheets, sync_specific_week, weekly_sync

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    create_db_and_tables()
    logger.info("Database initialized")
    yield


# Create FastAPI app
app = FastAPI(title="Schedule Viewer API", version="1.0.0", lifespan=lifespan)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins in development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SheetsError)
async def sheets_error_handler(request: Request, exc: SheetsError):
    """Spreadsheet problems: misconfiguration is ours (500), the rest upstream (502)."""
    logger.error(f"Spreadsheet error on {request.url.path}: {str(exc)}")
    status_code = 500 if isinstance(exc, SheetsConfigError) else 502
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def validate_week_start(week_start: str):
    if not is_valid_date_string(week_start):
        raise HTTPException(status_code=400, detail="Invalid date format. Use YYYY-MM-DD")
    if not is_sunday(week_start):
        raise HTTPException(status_code=400, detail="Week start must be a Sunday")


def verify_cron_secret(authorization: str | None = Header(default=None)):
    """Require `Authorization: Bearer $CRON_SECRET` when a secret is configured."""
    cron_secret = os.getenv("CRON_SECRET")
    if not cron_secret:
        if is_production():
            logger.error("CRON_SECRET not configured")
            raise HTTPException(status_code=500, detail="Server configuration error")
        return
    if authorization != f"Bearer {cron_secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")


@app.get("/schedule/available-weeks", response_model=AvailableWeeksResponse)
def available_weeks(session: Session = Depends(get_session)):
    """List stored weeks plus the previous/current/next week around today."""
    logger.info("Available weeks request")
    try:
        weeks = get_available_weeks(session)
        current = get_week_start()
        previous, following = get_adjacent_weeks(current)
        return AvailableWeeksResponse(
            weeks=weeks,
            current_week=current,
            week_range=WeekRange(previous=previous, current=current, next=following),
        )
    except Exception as e:
        logger.error(f"Error getting available weeks: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error") from e


@app.get("/schedule/{week_start}", response_model=WeekScheduleResponse)
def get_week_schedule(
    week_start: str,
    session: Session = Depends(get_session),
    sheets: SheetsClient = Depends(get_sheets_client),
):
    """Get both locations' schedules for a week, from the database or else the sheet."""
    logger.info(f"Schedule request for week starting: {week_start}")
    validate_week_start(week_start)

    stored = get_schedule_by_week(session, week_start)
    if stored:
        no3, westminster = stored.schedules[Location.NO3], stored.schedules[Location.WESTMINSTER]
        logger.info(f"Serving week {week_start} from database")
        return WeekScheduleResponse(
            source="database",
            week_start=week_start,
            week_end=no3.week_end,
            no3_schedule=no3,
            westminster_schedule=westminster,
            synced_at=stored.week.synced_at.isoformat(),
        )

    # Not synced yet, fall back to the live sheet if it holds this week
    try:
        no3 = sheets.get_week_schedule(Location.NO3)
        westminster = sheets.get_week_schedule(Location.WESTMINSTER)
    except SheetsError as e:
        logger.warning(f"Sheet fallback failed for week {week_start}: {str(e)}")
        raise HTTPException(status_code=404, detail=f"Schedule not found for week {week_start}") from e

    sheet_week_start = no3.week_start or westminster.week_start
    if sheet_week_start != week_start:
        raise HTTPException(status_code=404, detail=f"Schedule not found for week {week_start}")

    logger.info(f"Serving week {week_start} from sheets")
    return WeekScheduleResponse(
        source="sheets",
        week_start=week_start,
        week_end=no3.week_end or westminster.week_end,
        no3_schedule=no3,
        westminster_schedule=westminster,
    )


@app.get("/employees", response_model=EmployeesResponse)
def list_employees(sheets: SheetsClient = Depends(get_sheets_client)):
    """Get employee names from the employees sheet."""
    logger.info("Employees request")
    employees = sheets.get_employees()
    logger.info(f"Found {len(employees)} employees")
    return EmployeesResponse(employees=employees)


@app.get("/employees/{name}/schedule", response_model=EmployeeWeekSchedule)
def get_employee_schedule(
    name: str,
    week_start: str | None = Query(None, description="Week start date in YYYY-MM-DD format"),
    session: Session = Depends(get_session),
    sheets: SheetsClient = Depends(get_sheets_client),
):
    """Get one employee's shifts at both locations for a week."""
    logger.info(f"Employee schedule request for: {name}, week: {week_start}")

    if week_start is None:
        return sheets.get_employee_schedule(name)

    validate_week_start(week_start)
    stored = get_schedule_by_week(session, week_start)
    if stored:
        return build_employee_schedule(name, list(stored.schedules.values()))

    schedules = sheets.get_week_schedules()
    if not any(s.week_start == week_start for s in schedules):
        raise HTTPException(status_code=404, detail=f"Schedule not found for week {week_start}")
    return build_employee_schedule(name, schedules)


@app.get("/cron/weekly-sync", response_model=SyncResult, dependencies=[Depends(verify_cron_secret)])
def run_weekly_sync(
    session: Session = Depends(get_session),
    sheets: SheetsClient = Depends(get_sheets_client),
):
    """Scheduled weekly sync: store the sheet week and drop old weeks."""
    logger.info("Weekly sync triggered")
    result = weekly_sync(session, sheets)
    if not result.success:
        logger.error(f"Weekly sync failed: {result.message}")
        return JSONResponse(status_code=500, content=result.model_dump())
    return result


@app.post("/cron/weekly-sync", response_model=SyncResult, dependencies=[Depends(verify_cron_secret)])
def run_manual_sync(
    session: Session = Depends(get_session),
    sheets: SheetsClient = Depends(get_sheets_client),
):
    """Manually store the week currently in the sheet."""
    logger.info("Manual sync triggered")
    return sync_current_week_from_sheets(session, sheets)


@app.post("/cron/sync/{week_start}", response_model=SyncResult, dependencies=[Depends(verify_cron_secret)])
def run_week_sync(
    week_start: str,
    session: Session = Depends(get_session),
    sheets: SheetsClient = Depends(get_sheets_client),
):
    """Store the sheet week only if it is `week_start`."""
    logger.info(f"Sync requested for week {week_start}")
    validate_week_start(week_start)
    return sync_specific_week(session, sheets, week_start)


@app.get("/admin/sync-logs", response_model=list[SyncLogResponse], dependencies=[Depends(verify_cron_secret)])
def sync_logs(
    limit: int = Query(10, ge=1, le=100),
    session: Session = Depends(get_session),
):
    """Most recent sync runs, newest first."""
    logs = get_recent_sync_logs(session, limit)
    return [
        SyncLogResponse(
            id=log.id,
            sync_type=log.sync_type,
            status=log.status,
            message=log.message,
            records_synced=log.records_synced,
            duration_ms=log.duration_ms,
            created_at=log.created_at.isoformat(),
        )
        for log in logs
    ]


@app.get("/")
def root():
    """Root endpoint."""
    return {"message": "Schedule Viewer API", "docs": "/docs"}
