"""
Shared test fixtures: a clean database session, sample schedule sheets and an API client.
"""
import os

os.environ.setdefault("DATABASE_PATH", "./test_schedule.db")

import openpyxl
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, delete

from app import app
from db import create_db_and_tables, engine, get_session
from models import ScheduleEntryRecord, SyncLog, Week
from sheets import SheetsClient, get_sheets_client

DAYS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
DATES = ["2025-01-05", "2025-01-06", "2025-01-07", "2025-01-08", "2025-01-09", "2025-01-10", "2025-01-11"]

NO3_GRID = [
    ["No.3", *DAYS],
    ["", *DATES],
    ["*", "", "John", "Jane", "", "", "", ""],
    ["11:00", "Ryan(~4:00)", "alice", "", "", "", "", ""],
    ["", "", "bob", "", "", "", "", ""],
    ["15:30", "Minji(5:30~)", "ALICE", "", "", "", "", ""],
    ["", "", "Bob", "", "", "", "", ""],
]

WESTMINSTER_GRID = [
    ["Westminster", *DAYS],
    ["", *DATES],
    ["11:00", "", "", "Kim", "", "", "", ""],
    ["15:30", "", "John", "", "", "", "", ""],
]

EMPLOYEES_GRID = [["Name"], ["John"], ["  Jane "], [""], ["Ryan"]]


def make_workbook(sheets: dict[str, list[list]]) -> openpyxl.Workbook:
    """Build an in-memory workbook with one sheet per title."""
    workbook = openpyxl.Workbook()
    workbook.remove(workbook.active)
    for title, rows in sheets.items():
        sheet = workbook.create_sheet(title)
        for row in rows:
            sheet.append(row)
    return workbook


@pytest.fixture
def sample_workbook():
    return make_workbook(
        {
            "Employees": EMPLOYEES_GRID,
            "No3_Schedule": NO3_GRID,
            "Westminster_Schedule": WESTMINSTER_GRID,
        }
    )


@pytest.fixture
def sheets_client(sample_workbook):
    return SheetsClient(workbook=sample_workbook)


@pytest.fixture(scope="function")
def test_session():
    """Create a test database session."""
    create_db_and_tables()
    with Session(engine) as session:
        yield session
        # Clean up all test data after test
        session.rollback()
        session.exec(delete(ScheduleEntryRecord))
        session.exec(delete(Week))
        session.exec(delete(SyncLog))
        session.commit()


@pytest.fixture(scope="function")
def client(test_session, sheets_client, monkeypatch):
    """Create a test client with the database session and sheets overridden."""
    monkeypatch.delenv("CRON_SECRET", raising=False)

    def get_test_session():
        yield test_session

    app.dependency_overrides[get_session] = get_test_session
    app.dependency_overrides[get_sheets_client] = lambda: sheets_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
