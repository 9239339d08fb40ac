"""
Dashboard session service.

One DashboardSession backs one faculty viewer's dashboard. It loads the
roster, mounts a PerStudentStatsBinding per student behind a shared
concurrency gate, mirrors every resolution into its AggregationStore, and
recomputes the projection whenever the roster, the view state or the store
changes. Closing the session tears down every binding and drops every entry.
"""

import asyncio
from datetime import datetime
from typing import Callable, Dict, List, Optional

from tracker.constants import FetchConstants, PaginationConstants, ScoringConstants
from tracker.data_models.roster import (
    DashboardPage, ExportArtifact, ProjectedRow, RollType, SortDirective,
    StudentRecord, ViewState
)
from tracker.data_models.stats import FetchOutcome, FetchState, ScoreWeights, StatEntry
from tracker.services.aggregation import AggregationStore
from tracker.services.export import build_artifact
from tracker.services.projection import RollClassifier, distinct_values, project
from tracker.services.stats_binding import PerStudentStatsBinding
from tracker.utils.exceptions import StorageError
from tracker.utils.logger import setup_logger

logger = setup_logger(__name__)

SessionListener = Callable[[], None]


class DashboardSettings:
    """Tunables a session is created with, usually read from ConfigurationService."""

    def __init__(
        self,
        score_weights: Optional[ScoreWeights] = None,
        unresolved_sort_key: int = ScoringConstants.UNRESOLVED_SORT_KEY,
        max_concurrency: int = FetchConstants.DEFAULT_MAX_CONCURRENCY,
        page_size: int = PaginationConstants.DEFAULT_PAGE_SIZE,
        classifier: Optional[RollClassifier] = None
    ):
        self.score_weights = score_weights or ScoreWeights()
        self.unresolved_sort_key = unresolved_sort_key
        self.max_concurrency = max_concurrency
        self.page_size = page_size
        self.classifier = classifier if classifier is not None else RollClassifier()

    @classmethod
    def from_config(cls, config_service) -> "DashboardSettings":
        return cls(
            score_weights=config_service.score_weights(),
            unresolved_sort_key=config_service.unresolved_sort_key(),
            max_concurrency=config_service.max_concurrency(),
            page_size=config_service.page_size(),
            classifier=RollClassifier(config_service.roll_ranges())
        )


class DashboardSession:
    """Roster + live statistics + filter/sort state for one viewer."""

    def __init__(self, roster_source, fetcher, settings: Optional[DashboardSettings] = None):
        """
        Args:
            roster_source: Object with an async list_students() -> list[StudentRecord]
            fetcher: StatsFetcher (or anything with async fetch(handle))
            settings: Score weights, sort sentinel, concurrency cap, page size
        """
        self.roster_source = roster_source
        self.fetcher = fetcher
        self.settings = settings or DashboardSettings()

        self.store = AggregationStore()
        self.store.add_listener(self._on_store_change)

        self._gate = (
            asyncio.Semaphore(self.settings.max_concurrency)
            if self.settings.max_concurrency > 0 else None
        )
        self._roster: List[StudentRecord] = []
        self._bindings: Dict[int, PerStudentStatsBinding] = {}
        self._view_state = ViewState()
        self._projection: List[StudentRecord] = []
        self._listeners: List[SessionListener] = []
        self._settled = asyncio.Event()
        self._closed = False
        self.last_notice: Optional[str] = None

    # Listeners

    def add_listener(self, listener: SessionListener):
        """Called after the projection or any row's outcome changes."""
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self):
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as e:
                logger.error(f"Dashboard listener failed: {e}", exc_info=True)

    # Roster

    @property
    def roster(self) -> List[StudentRecord]:
        return list(self._roster)

    async def load(self) -> Optional[str]:
        """
        Fetch the roster and (re)mount bindings.

        New students get a binding, students that left the roster lose
        theirs (and their store entry), and handle changes restart the
        affected binding. A storage failure keeps the session usable with an
        empty roster and returns a notice for the viewer.
        """
        if self._closed:
            raise RuntimeError("Dashboard session is closed")

        try:
            roster = await self.roster_source.list_students()
            self.last_notice = None
        except StorageError as e:
            logger.error(f"Roster load failed: {e}")
            roster = []
            self.last_notice = e.user_message

        self._apply_roster(roster)
        return self.last_notice

    def _apply_roster(self, roster: List[StudentRecord]):
        incoming = {student.id: student for student in roster}

        for student_id in list(self._bindings):
            if student_id not in incoming:
                self._bindings.pop(student_id).close()
                self.store.discard(student_id)

        self._roster = list(roster)

        for student in roster:
            binding = self._bindings.get(student.id)
            if binding is None:
                binding = PerStudentStatsBinding(
                    student_id=student.id,
                    handle=student.leetcode_username,
                    fetcher=self.fetcher,
                    on_resolved=self._on_resolved,
                    score_weights=self.settings.score_weights,
                    gate=self._gate
                )
                self._bindings[student.id] = binding
                binding.mount()
            else:
                binding.set_handle(student.leetcode_username)

        logger.info(f"Dashboard roster loaded: {len(self._roster)} students, {self.pending_count} fetches pending")
        self._update_settled()
        self._recompute()

    def refresh_stats(self):
        """Re-fetch every student's statistics."""
        for binding in self._bindings.values():
            binding.refresh()
        self._update_settled()
        self._notify()

    # Resolution plumbing

    def _on_resolved(self, student_id: int, entry: Optional[StatEntry]):
        if self._closed or student_id not in self._bindings:
            return
        changed = self.store.update(student_id, entry)
        self._update_settled()
        if not changed:
            # Order is unaffected, but the row badge still changed
            self._notify()

    def _on_store_change(self, student_id: int):
        self._recompute()

    def _update_settled(self):
        if all(binding.is_settled for binding in self._bindings.values()):
            self._settled.set()
        else:
            self._settled.clear()

    async def wait_until_settled(self, timeout: Optional[float] = None) -> bool:
        """True once no fetch is pending; False if the timeout expired first."""
        try:
            await asyncio.wait_for(self._settled.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    @property
    def is_settled(self) -> bool:
        return self._settled.is_set()

    @property
    def pending_count(self) -> int:
        return sum(1 for b in self._bindings.values() if b.state is FetchState.PENDING)

    @property
    def failed_count(self) -> int:
        return sum(1 for b in self._bindings.values() if b.state is FetchState.FAILED)

    def outcome_for(self, student_id: int) -> FetchOutcome:
        binding = self._bindings.get(student_id)
        return binding.outcome if binding else FetchOutcome.idle()

    # View state

    @property
    def view_state(self) -> ViewState:
        return self._view_state

    def set_search(self, text: str):
        self._set_view_state(self._view_state.with_changes(search_text=text or ""))

    def set_section(self, section: str):
        self._set_view_state(self._view_state.with_changes(section=section))

    def set_branch(self, branch: str):
        self._set_view_state(self._view_state.with_changes(branch=branch))

    def set_roll_type(self, roll_type: RollType):
        self._set_view_state(self._view_state.with_changes(roll_type=roll_type))

    def set_sort(self, sort: SortDirective):
        self._set_view_state(self._view_state.with_changes(sort=sort))

    def _set_view_state(self, view_state: ViewState):
        if view_state == self._view_state:
            return
        self._view_state = view_state
        self._recompute()

    def sections(self) -> List[str]:
        return distinct_values(self._roster, "section")

    def branches(self) -> List[str]:
        return distinct_values(self._roster, "branch")

    # Projection

    def _recompute(self):
        self._projection = project(
            self._roster,
            self._view_state,
            self.store.snapshot(),
            unresolved_sort_key=self.settings.unresolved_sort_key,
            classifier=self.settings.classifier
        )
        self._notify()

    @property
    def projection(self) -> List[StudentRecord]:
        return list(self._projection)

    def rows(self) -> List[ProjectedRow]:
        return [
            ProjectedRow(student, self.outcome_for(student.id), self.store.get(student.id))
            for student in self._projection
        ]

    def page(self, page: int = 1) -> DashboardPage:
        page_size = self.settings.page_size
        rows = self.rows()
        total_pages = max((len(rows) + page_size - 1) // page_size, 1)
        page = min(max(page, 1), total_pages)
        start = (page - 1) * page_size
        return DashboardPage(
            rows=rows[start:start + page_size],
            current_page=page,
            total_pages=total_pages,
            total_students=len(rows),
            roster_size=len(self._roster),
            pending=self.pending_count,
            failed=self.failed_count,
            view_state=self._view_state
        )

    # Export

    def export(self, now: Optional[datetime] = None) -> ExportArtifact:
        """CSV of exactly what the viewer currently sees (all pages)."""
        artifact = build_artifact(self.projection, self.store.snapshot(), now)
        logger.info(f"Exported {artifact.row_count} rows to {artifact.filename}")
        return artifact

    # Teardown

    def close(self):
        if self._closed:
            return
        self._closed = True
        for binding in self._bindings.values():
            binding.close()
        self._bindings.clear()
        self.store.remove_listener(self._on_store_change)
        self.store.clear()
        self._listeners.clear()
        self._settled.set()
        logger.info("Dashboard session closed")

    @property
    def is_closed(self) -> bool:
        return self._closed
