import json

import pytest
from sqlalchemy import select

from tracker.database.models import AuditLog
from tracker.data_models.stats import ScoreWeights
from tracker.services.configuration import INITIAL_CONFIGS, ConfigurationService
from tracker.services.dashboard import DashboardSettings


@pytest.mark.asyncio
async def test_seed_defaults_only_adds_missing_keys(memory_db):
    service = ConfigurationService(memory_db)

    assert await service.seed_defaults() == len(INITIAL_CONFIGS)
    assert await service.seed_defaults() == 0

    await service.load_all()
    assert service.list_all() == INITIAL_CONFIGS


@pytest.mark.asyncio
async def test_defaults_drive_typed_accessors(memory_db):
    service = ConfigurationService(memory_db)
    await service.seed_defaults()
    await service.load_all()

    assert service.score_weights() == ScoreWeights(easy=1, medium=2, hard=3)
    assert service.unresolved_sort_key() == -1
    assert service.max_concurrency() == 8
    assert service.page_size() == 10
    assert service.roll_ranges() == {}
    assert service.get_by_category("scoring") == {"easy_weight": 1, "medium_weight": 2, "hard_weight": 3}


@pytest.mark.asyncio
async def test_set_updates_cache_and_writes_audit_log(memory_db):
    service = ConfigurationService(memory_db)
    await service.seed_defaults()
    await service.load_all()

    await service.set("scoring.hard_weight", 5, user_id=42)

    assert service.score_weights().hard == 5
    async with memory_db.get_session() as session:
        logs = (await session.execute(select(AuditLog))).scalars().all()
    assert len(logs) == 1
    assert logs[0].user_id == 42
    assert json.loads(logs[0].details) == {"key": "scoring.hard_weight", "old_value": 3, "new_value": 5}


@pytest.mark.asyncio
async def test_out_of_range_values_fall_back(memory_db):
    service = ConfigurationService(memory_db)
    await service.set("ranking.unresolved_sort_key", 3, user_id=1)
    await service.set("dashboard.page_size", 500, user_id=1)
    await service.set("stats.max_concurrency", -4, user_id=1)
    await service.set("dashboard.refresh_interval", 0, user_id=1)

    assert service.unresolved_sort_key() == -1
    assert service.page_size() == 20
    assert service.max_concurrency() == 0
    assert service.refresh_interval() == 0.5


@pytest.mark.asyncio
async def test_non_numeric_values_fall_back_to_defaults(memory_db):
    service = ConfigurationService(memory_db)
    await service.set("stats.max_concurrency", "lots", user_id=1)
    await service.set("dashboard.page_size", None, user_id=1)
    await service.set("scoring.medium_weight", "heavy", user_id=1)
    await service.set("dashboard.refresh_interval", [1], user_id=1)

    settings = DashboardSettings.from_config(service)

    assert settings.max_concurrency == 8
    assert settings.page_size == 10
    assert settings.score_weights == ScoreWeights(easy=1, medium=2, hard=3)
    assert service.refresh_interval() == 2.0

@pytest.mark.asyncio
async def test_roll_ranges_are_seeded_from_file(memory_db, tmp_path):
    table = {"A": {"REGULAR": [["23211A6701", "23211A6764"]]}}
    ranges_file = tmp_path / "ranges.json"
    ranges_file.write_text(json.dumps(table), encoding="utf-8")
    service = ConfigurationService(memory_db)

    await service.seed_defaults(str(ranges_file))
    await service.load_all()

    assert service.roll_ranges() == table


@pytest.mark.asyncio
async def test_unreadable_roll_ranges_file_seeds_empty_table(memory_db, tmp_path):
    service = ConfigurationService(memory_db)

    await service.seed_defaults(str(tmp_path / "missing.json"))
    await service.load_all()

    assert service.roll_ranges() == {}
