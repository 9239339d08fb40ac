"""
Runtime configuration for the LeetCode Progress Tracker.

Keeps JSON-encoded key/value pairs in the `configurations` table, caches them
in memory, and writes an audit log entry for every change. Score weights, the
unresolved sort key, the fetch concurrency cap and the roll-range
classification table are read from here so they can be tuned without a
redeploy.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy import select

from tracker.constants import (
    FetchConstants, PaginationConstants, ScoringConstants
)
from tracker.data_models.stats import ScoreWeights
from tracker.database.models import Configuration, AuditLog

logger = logging.getLogger(__name__)

INITIAL_CONFIGS = {
    'scoring.easy_weight': ScoringConstants.EASY_WEIGHT,
    'scoring.medium_weight': ScoringConstants.MEDIUM_WEIGHT,
    'scoring.hard_weight': ScoringConstants.HARD_WEIGHT,
    'ranking.unresolved_sort_key': ScoringConstants.UNRESOLVED_SORT_KEY,
    'stats.max_concurrency': FetchConstants.DEFAULT_MAX_CONCURRENCY,
    'dashboard.page_size': PaginationConstants.DEFAULT_PAGE_SIZE,
    'dashboard.refresh_interval': PaginationConstants.DEFAULT_REFRESH_INTERVAL,
    'roster.roll_ranges': {},
}


def load_roll_ranges_file(path: str) -> Dict[str, Any]:
    """Read a section -> roll type -> [[start, end], ...] table from JSON."""
    try:
        with open(Path(path), 'r', encoding='utf-8') as file:
            data = json.load(file)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Could not read roll ranges file '{path}': {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Roll ranges file '{path}' must contain a JSON object, ignoring")
        return {}
    return data


class ConfigurationService:
    """Manages tracker configuration with simple caching and audit trail."""

    def __init__(self, database):
        self.db = database
        self._cache: Dict[str, Any] = {}

    async def seed_defaults(self, roll_ranges_file: Optional[str] = None) -> int:
        """Insert any missing default keys. Existing values are left alone."""
        defaults = dict(INITIAL_CONFIGS)
        if roll_ranges_file:
            defaults['roster.roll_ranges'] = load_roll_ranges_file(roll_ranges_file)

        added = 0
        async with self.db.transaction() as session:
            result = await session.execute(select(Configuration.key))
            existing = set(result.scalars().all())

            for key, value in defaults.items():
                if key in existing:
                    continue
                session.add(Configuration(key=key, value=json.dumps(value)))
                added += 1

        if added:
            logger.info(f"Seeded {added} configuration parameters")
        return added

    async def load_all(self):
        """Load all configurations from database into memory."""
        new_cache = {}
        async with self.db.get_session() as session:
            result = await session.execute(select(Configuration))
            configs = result.scalars().all()

            for config in configs:
                try:
                    new_cache[config.key] = json.loads(config.value)
                except json.JSONDecodeError:
                    logger.warning(f"Invalid JSON for config key '{config.key}', skipping")
                    continue

        self._cache = new_cache
        logger.info(f"Loaded {len(self._cache)} configuration parameters")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Args:
            key: Configuration key (e.g., 'scoring.easy_weight')
            default: Default value if key not found
        """
        return self._cache.get(key, default)

    async def set(self, key: str, value: Any, user_id: int):
        """
        Set configuration value and persist to database.

        Args:
            key: Configuration key
            value: Configuration value (will be JSON-encoded)
            user_id: Discord user ID for audit trail
        """
        async with self.db.transaction() as session:
            config = await session.scalar(
                select(Configuration).where(Configuration.key == key)
            )

            if config:
                old_value = config.value
                config.value = json.dumps(value)
            else:
                old_value = None
                session.add(Configuration(key=key, value=json.dumps(value)))

            old_value_parsed = None
            if old_value:
                try:
                    old_value_parsed = json.loads(old_value)
                except json.JSONDecodeError:
                    old_value_parsed = {"error": "invalid JSON", "raw": old_value}

            session.add(AuditLog(
                user_id=user_id,
                action='config_set',
                details=json.dumps({
                    'key': key,
                    'old_value': old_value_parsed,
                    'new_value': value
                })
            ))

        logger.info(f"Configuration '{key}' set to {value!r} by {user_id}")
        # Reload so the cache reflects exactly what was committed
        await self.load_all()

    def list_all(self) -> Dict[str, Any]:
        return self._cache.copy()

    def get_by_category(self, category: str) -> Dict[str, Any]:
        """All values under one prefix, e.g. 'scoring' -> {'easy_weight': 1, ...}"""
        prefix = f"{category}."
        return {
            key[len(prefix):]: value
            for key, value in self._cache.items()
            if key.startswith(prefix)
        }

    # Typed accessors

    def _number(self, key: str, default, cast=int):
        """Read a numeric key, falling back to the default on unusable values."""
        raw = self.get(key, default)
        try:
            return cast(raw)
        except (TypeError, ValueError, OverflowError):
            logger.warning(f"{key} must be a number, got {raw!r}. Using default: {default}")
            return default

    def score_weights(self) -> ScoreWeights:
        return ScoreWeights(
            easy=self._number('scoring.easy_weight', ScoringConstants.EASY_WEIGHT),
            medium=self._number('scoring.medium_weight', ScoringConstants.MEDIUM_WEIGHT),
            hard=self._number('scoring.hard_weight', ScoringConstants.HARD_WEIGHT),
        )

    def unresolved_sort_key(self) -> int:
        value = self._number('ranking.unresolved_sort_key', ScoringConstants.UNRESOLVED_SORT_KEY)
        if value >= 0:
            logger.warning(
                f"ranking.unresolved_sort_key must be negative, got {value}. "
                f"Using default: {ScoringConstants.UNRESOLVED_SORT_KEY}"
            )
            return ScoringConstants.UNRESOLVED_SORT_KEY
        return value

    def max_concurrency(self) -> int:
        value = self._number('stats.max_concurrency', FetchConstants.DEFAULT_MAX_CONCURRENCY)
        return max(value, 0)

    def page_size(self) -> int:
        value = self._number('dashboard.page_size', PaginationConstants.DEFAULT_PAGE_SIZE)
        return min(max(value, 1), PaginationConstants.MAX_PAGE_SIZE)

    def refresh_interval(self) -> float:
        value = self._number('dashboard.refresh_interval', PaginationConstants.DEFAULT_REFRESH_INTERVAL, float)
        return max(value, 0.5)

    def roll_ranges(self) -> Dict[str, Any]:
        value = self.get('roster.roll_ranges', {})
        return value if isinstance(value, dict) else {}
