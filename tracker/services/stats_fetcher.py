"""
LeetCode statistics fetcher.

One outbound GET per handle against the public stats API, normalized into a
StatSnapshot. Transport errors, non-success responses, unreadable bodies and
provider "error" statuses all surface as StatsFetchError; nothing is retried
here. A malformed submission calendar only blanks the recent-activity
counters, it never fails the fetch.
"""

import json
import logging
import math
import time
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import quote

import httpx

from tracker.constants import WindowConstants
from tracker.data_models.stats import StatSnapshot
from tracker.utils.exceptions import StatsFetchError

logger = logging.getLogger(__name__)


class CalendarParseError(ValueError):
    """Submission calendar could not be decoded."""


def parse_calendar(raw: Any) -> Optional[Dict[int, float]]:
    """
    Decode the provider's submission calendar.

    The API sends either a JSON-encoded string or an already decoded mapping
    of epoch-seconds strings to submission counts. Entries whose key or value
    is not numeric are dropped.

    Returns:
        Mapping of epoch seconds to counts, or None when no calendar was sent

    Raises:
        CalendarParseError: the calendar is present but not a JSON object
    """
    if raw is None or raw == "":
        return None

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CalendarParseError(f"invalid calendar JSON: {e}") from e

    if not isinstance(raw, Mapping):
        raise CalendarParseError(f"calendar must be an object, got {type(raw).__name__}")

    calendar: Dict[int, float] = {}
    for key, value in raw.items():
        try:
            timestamp = int(float(key))
            count = float(value)
        except (TypeError, ValueError, OverflowError):
            continue
        if not math.isfinite(count):
            continue
        calendar[timestamp] = int(count) if count.is_integer() else count
    return calendar


def recent_window_counts(calendar: Mapping[int, float], now: Optional[float] = None) -> Tuple[float, float]:
    """
    Sum submissions inside the trailing 7-day and 30-day windows.

    Both windows are inclusive at their start.
    """
    now = time.time() if now is None else now
    short_start = now - WindowConstants.SHORT_WINDOW_DAYS * WindowConstants.SECONDS_PER_DAY
    long_start = now - WindowConstants.LONG_WINDOW_DAYS * WindowConstants.SECONDS_PER_DAY

    recent_7 = 0
    recent_30 = 0
    for timestamp, count in calendar.items():
        if timestamp >= short_start:
            recent_7 += count
        if timestamp >= long_start:
            recent_30 += count
    return recent_7, recent_30


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def normalize_payload(data: Mapping[str, Any], now: Optional[float] = None) -> StatSnapshot:
    """Turn a successful provider body into a StatSnapshot."""
    recent_7: Optional[int] = 0
    recent_30: Optional[int] = 0
    calendar = None
    try:
        calendar = parse_calendar(data.get("submissionCalendar"))
    except CalendarParseError as e:
        logger.warning(f"Ignoring submission calendar: {e}")
        recent_7 = recent_30 = None
    else:
        if calendar:
            recent_7, recent_30 = recent_window_counts(calendar, now)

    return StatSnapshot(
        total_solved=_as_int(data.get("totalSolved")),
        total_questions=_as_int(data.get("totalQuestions")),
        easy_solved=_as_int(data.get("easySolved")),
        total_easy=_as_int(data.get("totalEasy")),
        medium_solved=_as_int(data.get("mediumSolved")),
        total_medium=_as_int(data.get("totalMedium")),
        hard_solved=_as_int(data.get("hardSolved")),
        total_hard=_as_int(data.get("totalHard")),
        acceptance_rate=_as_float(data.get("acceptanceRate")),
        ranking=_as_int(data.get("ranking")),
        submission_calendar=calendar,
        recent_submissions_7=recent_7,
        recent_submissions_30=recent_30,
    )


class StatsFetcher:
    """Fetches and normalizes statistics for one handle per call."""

    def __init__(self, client: httpx.AsyncClient, base_url: str):
        self.client = client
        self.base_url = base_url.rstrip("/")

    def url_for(self, handle: str) -> str:
        return f"{self.base_url}/{quote(handle, safe='')}"

    async def fetch(self, handle: str, now: Optional[float] = None) -> StatSnapshot:
        """
        Fetch statistics for a handle.

        Args:
            handle: LeetCode username, must be non-empty
            now: Epoch seconds used for the recent-activity windows

        Raises:
            StatsFetchError: on any transport, HTTP or provider failure
        """
        handle = handle.strip()
        if not handle:
            raise StatsFetchError(handle, "empty handle")

        try:
            response = await self.client.get(self.url_for(handle))
        except httpx.HTTPError as e:
            logger.warning(f"Transport error fetching stats for {handle}: {e!r}")
            raise StatsFetchError(handle, "Failed to fetch LeetCode stats") from e

        if not response.is_success:
            logger.warning(f"Stats API returned HTTP {response.status_code} for {handle}")
            raise StatsFetchError(handle, f"Failed to fetch LeetCode stats (HTTP {response.status_code})")

        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"Stats API returned a non-JSON body for {handle}")
            raise StatsFetchError(handle, "Malformed response from stats API") from e

        if not isinstance(data, dict):
            raise StatsFetchError(handle, "Malformed response from stats API")

        if data.get("status") == "error":
            logger.info(f"Stats API reported an error status for {handle}: {data.get('message')}")
            raise StatsFetchError(handle, "User not found or invalid username")

        snapshot = normalize_payload(data, now)
        logger.debug(f"Fetched stats for {handle}: solved={snapshot.total_solved}")
        return snapshot
