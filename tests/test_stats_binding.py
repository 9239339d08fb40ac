import asyncio

import pytest

from tracker.data_models.stats import FetchState, ScoreWeights, StatEntry
from tracker.services.stats_binding import PerStudentStatsBinding


def _binding(fetcher, handle, resolutions, student_id=1, gate=None, weights=None):
    return PerStudentStatsBinding(
        student_id=student_id,
        handle=handle,
        fetcher=fetcher,
        on_resolved=lambda sid, entry: resolutions.append((sid, entry)),
        score_weights=weights,
        gate=gate
    )


@pytest.mark.asyncio
async def test_empty_handle_settles_idle_without_fetching(fake_fetcher):
    fetcher = fake_fetcher()
    resolutions = []
    binding = _binding(fetcher, "  ", resolutions)

    binding.mount()

    assert binding.state is FetchState.IDLE
    assert binding.is_settled
    assert resolutions == [(1, None)]
    assert fetcher.calls == []


@pytest.mark.asyncio
async def test_ready_reports_solved_and_weighted_score(fake_fetcher, make_snapshot):
    fetcher = fake_fetcher({"alice_lc": make_snapshot(easy=2, medium=1, hard=1)})
    resolutions = []
    binding = _binding(fetcher, "alice_lc", resolutions)

    binding.mount()
    assert binding.state is FetchState.PENDING

    outcome = await binding.wait()

    assert outcome.state is FetchState.READY
    assert outcome.snapshot.total_solved == 4
    assert resolutions == [(1, StatEntry(solved=4, score=2 * 1 + 1 * 2 + 1 * 3))]


@pytest.mark.asyncio
async def test_custom_weights_change_the_score(fake_fetcher, make_snapshot):
    fetcher = fake_fetcher({"alice_lc": make_snapshot(easy=2, medium=1, hard=1)})
    resolutions = []
    binding = _binding(fetcher, "alice_lc", resolutions, weights=ScoreWeights(easy=1, medium=1, hard=10))

    binding.mount()
    await binding.wait()

    assert resolutions == [(1, StatEntry(solved=4, score=13))]


@pytest.mark.asyncio
async def test_fetch_failure_reports_a_clear(fake_fetcher):
    fetcher = fake_fetcher()
    resolutions = []
    binding = _binding(fetcher, "ghost", resolutions)

    binding.mount()
    outcome = await binding.wait()

    assert outcome.state is FetchState.FAILED
    assert outcome.reason == "User not found or invalid username"
    assert resolutions == [(1, None)]


@pytest.mark.asyncio
async def test_unexpected_errors_are_contained(fake_fetcher):
    fetcher = fake_fetcher({"alice_lc": RuntimeError("boom")})
    resolutions = []
    binding = _binding(fetcher, "alice_lc", resolutions)

    binding.mount()
    outcome = await binding.wait()

    assert outcome.state is FetchState.FAILED
    assert outcome.reason == "Unexpected error"
    assert resolutions == [(1, None)]


@pytest.mark.asyncio
async def test_handle_change_discards_the_earlier_fetch(fake_fetcher, make_snapshot):
    fetcher = fake_fetcher({
        "old_handle": make_snapshot(easy=100),
        "new_handle": make_snapshot(easy=3),
    })
    release_old = fetcher.hold("old_handle")
    resolutions = []
    binding = _binding(fetcher, "old_handle", resolutions)

    binding.mount()
    await asyncio.sleep(0)
    binding.set_handle("new_handle")
    release_old.set()
    outcome = await binding.wait()
    await asyncio.sleep(0)

    assert outcome.snapshot.total_solved == 3
    assert resolutions == [(1, StatEntry(solved=3, score=3))]
    assert fetcher.calls == ["old_handle", "new_handle"]


@pytest.mark.asyncio
async def test_same_handle_does_not_refetch(fake_fetcher, make_snapshot):
    fetcher = fake_fetcher({"alice_lc": make_snapshot(easy=1)})
    resolutions = []
    binding = _binding(fetcher, "alice_lc", resolutions)

    binding.mount()
    binding.set_handle(" alice_lc ")
    await binding.wait()

    assert fetcher.calls == ["alice_lc"]
    assert len(resolutions) == 1


@pytest.mark.asyncio
async def test_close_drops_in_flight_results(fake_fetcher, make_snapshot):
    fetcher = fake_fetcher({"alice_lc": make_snapshot(easy=1)})
    release = fetcher.hold("alice_lc")
    resolutions = []
    binding = _binding(fetcher, "alice_lc", resolutions)

    binding.mount()
    await asyncio.sleep(0)
    binding.close()
    release.set()
    await asyncio.sleep(0.01)

    assert resolutions == []
    with pytest.raises(RuntimeError):
        binding.mount()


@pytest.mark.asyncio
async def test_shared_gate_bounds_concurrent_fetches(fake_fetcher, make_snapshot):
    handles = [f"user{i}" for i in range(6)]
    fetcher = fake_fetcher({h: make_snapshot(easy=i) for i, h in enumerate(handles)}, delay=0.01)
    gate = asyncio.Semaphore(2)
    resolutions = []
    bindings = [
        _binding(fetcher, handle, resolutions, student_id=i, gate=gate)
        for i, handle in enumerate(handles)
    ]

    for binding in bindings:
        binding.mount()
    await asyncio.gather(*(binding.wait() for binding in bindings))

    assert fetcher.max_in_flight <= 2
    assert len(resolutions) == 6
    assert all(binding.state is FetchState.READY for binding in bindings)
