"""
Roster data models for the faculty dashboard.

Provides immutable data transfer objects for students, the dashboard's
filter/sort state, and the rows a dashboard page renders.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import List, Optional

from tracker.data_models.stats import FetchOutcome, StatEntry

ALL = "ALL"


class SortDirective(Enum):
    NONE = "none"
    ASCENDING = "asc"
    DESCENDING = "desc"


class RollType(Enum):
    ALL = "ALL"
    REGULAR = "REGULAR"
    LATERAL_ENTRY = "LE"


@dataclass(frozen=True)
class StudentRecord:
    """Registered student, read-only to the dashboard."""
    id: int
    name: str
    roll_number: str
    branch: str
    section: str
    leetcode_username: str
    discord_id: Optional[int] = None
    registered_at: Optional[datetime] = None


@dataclass(frozen=True)
class ViewState:
    """Search, filter and sort selections of one dashboard."""
    search_text: str = ""
    section: str = ALL
    branch: str = ALL
    roll_type: RollType = RollType.ALL
    sort: SortDirective = SortDirective.NONE

    def with_changes(self, **changes) -> "ViewState":
        return replace(self, **changes)


@dataclass(frozen=True)
class ProjectedRow:
    """Single dashboard row."""
    student: StudentRecord
    outcome: FetchOutcome
    entry: Optional[StatEntry]


@dataclass(frozen=True)
class DashboardPage:
    """Paginated dashboard data."""
    rows: List[ProjectedRow]
    current_page: int
    total_pages: int
    total_students: int
    roster_size: int
    pending: int
    failed: int
    view_state: ViewState


@dataclass(frozen=True)
class ExportArtifact:
    """CSV export ready to upload."""
    filename: str
    data: bytes
    row_count: int
