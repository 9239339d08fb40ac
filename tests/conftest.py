"""
Pytest configuration and fixtures
"""
import asyncio
import os
import sys
import tempfile
from pathlib import Path

import pytest
import pytest_asyncio

# Keep test runs from writing log files into the working tree
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="tracker-test-logs-"))

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from tracker.data_models.roster import StudentRecord
from tracker.data_models.stats import StatSnapshot
from tracker.database.database import Database
from tracker.utils.exceptions import StatsFetchError, StorageError


class FakeFetcher:
    """Stand-in for StatsFetcher with scripted results per handle."""

    def __init__(self, results=None, delay: float = 0.0):
        self.results = dict(results or {})
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._holds = {}

    def hold(self, handle: str) -> asyncio.Event:
        """Block fetches for `handle` until the returned event is set."""
        event = asyncio.Event()
        self._holds[handle] = event
        return event

    async def fetch(self, handle: str) -> StatSnapshot:
        self.calls.append(handle)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if handle in self._holds:
                await self._holds[handle].wait()
            elif self.delay:
                await asyncio.sleep(self.delay)
            result = self.results.get(handle)
            if isinstance(result, Exception):
                raise result
            if result is None:
                raise StatsFetchError(handle, "User not found or invalid username")
            return result
        finally:
            self.in_flight -= 1


class FakeRoster:
    """Roster source returning a mutable list, or raising StorageError."""

    def __init__(self, students=None):
        self.students = list(students or [])
        self.fail = False

    async def list_students(self):
        if self.fail:
            raise StorageError("list_students", "connection refused")
        return list(self.students)


def _snapshot(easy=0, medium=0, hard=0, recent_7=0, recent_30=0, solved=None):
    total = easy + medium + hard if solved is None else solved
    return StatSnapshot(
        total_solved=total,
        total_questions=3000,
        easy_solved=easy,
        total_easy=800,
        medium_solved=medium,
        total_medium=1600,
        hard_solved=hard,
        total_hard=600,
        acceptance_rate=55.5,
        ranking=123456,
        submission_calendar={},
        recent_submissions_7=recent_7,
        recent_submissions_30=recent_30,
    )


def _student(student_id, name, roll_number, handle="", section="A", branch="CSE"):
    return StudentRecord(
        id=student_id,
        name=name,
        roll_number=roll_number,
        branch=branch,
        section=section,
        leetcode_username=handle,
    )


@pytest.fixture
def make_snapshot():
    return _snapshot


@pytest.fixture
def make_student():
    return _student


@pytest.fixture
def fake_fetcher():
    return FakeFetcher


@pytest.fixture
def fake_roster():
    return FakeRoster


@pytest_asyncio.fixture
async def memory_db():
    """Fresh in-memory database with tables created."""
    db = Database("sqlite+aiosqlite://")
    await db.initialize()
    yield db
    await db.close()
