import asyncio
import random

import pytest

from montepi.core import MonteCarloPi
from montepi.scheduler import Scheduler, SimulationStatus, clamp_delay


def make_scheduler(**kwargs):
    return Scheduler(MonteCarloPi(rng=random.Random(7)), **kwargs)


@pytest.mark.parametrize("value,expected", [(-5, 0), (0, 0), (500, 500), (1000, 1000), (2500, 1000), (12.7, 12),
                                            ("250", 250)])
def test_clamp_delay(value, expected):
    assert clamp_delay(value) == expected


@pytest.mark.parametrize("value", [None, True, "fast"])
def test_clamp_delay_rejects_non_numbers(value):
    with pytest.raises((TypeError, ValueError)):
        clamp_delay(value)


def test_defaults_and_set_delay():
    s = make_scheduler()
    assert s.status is SimulationStatus.IDLE
    assert s.delay_ms == 500
    assert s.set_delay(-1) == 0
    assert s.set_delay(5000) == 1000
    assert make_scheduler(delay_ms=20, max_delay_ms=10).delay_ms == 10


def test_step_and_listeners_when_idle():
    s = make_scheduler()
    seen = []
    s.subscribe(seen.append)
    reports = [s.step() for _ in range(5)]
    assert seen == reports
    assert [r.state.total for r in reports] == [1, 2, 3, 4, 5]
    assert s.status is SimulationStatus.IDLE


def test_failing_listener_does_not_break_tick():
    s = make_scheduler()

    def boom(report):
        raise ValueError("renderer failed")

    seen = []
    s.subscribe(boom)
    s.subscribe(seen.append)
    s.tick()
    assert len(seen) == 1
    assert s.engine.state.total == 1


def test_start_requires_event_loop():
    s = make_scheduler()
    with pytest.raises(RuntimeError):
        s.start()


def test_reset_from_idle_is_idempotent():
    s = make_scheduler()
    s.step()
    assert s.reset() == (0, 0)
    assert s.reset() == (0, 0)
    assert s.status is SimulationStatus.IDLE


def test_reset_listener_sees_final_counts():
    s = make_scheduler()
    finals = []
    s.on_reset(lambda state, report: finals.append((state, report)))
    s.reset()
    assert finals == []
    for _ in range(3):
        s.step()
    s.reset()
    assert len(finals) == 1
    state, report = finals[0]
    assert state.total == 3
    assert report.pi_estimate == 4 * state.inside / 3


def test_run_pause_resume_reset():
    async def scenario():
        s = make_scheduler(delay_ms=0)
        assert s.start() is SimulationStatus.RUNNING
        assert s.start() is SimulationStatus.RUNNING
        for _ in range(20):
            await asyncio.sleep(0)
        assert s.engine.state.total > 0

        assert s.pause() is SimulationStatus.PAUSED
        paused_total = s.engine.state.total
        for _ in range(20):
            await asyncio.sleep(0)
        assert s.engine.state.total == paused_total
        assert s.start() is SimulationStatus.PAUSED
        assert s.resume() is SimulationStatus.RUNNING

        for _ in range(20):
            await asyncio.sleep(0)
        assert s.status is SimulationStatus.RUNNING
        assert s.engine.state.total > paused_total

        assert s.reset() == (0, 0)
        assert s.status is SimulationStatus.IDLE
        for _ in range(20):
            await asyncio.sleep(0)
        assert s.engine.state.total == 0
        await s.shutdown()

    asyncio.run(scenario())


def test_one_tick_per_cycle_with_zero_delay():
    async def scenario():
        s = make_scheduler(delay_ms=0)
        totals = []
        s.subscribe(lambda report: totals.append(report.state.total))
        s.start()
        for _ in range(50):
            await asyncio.sleep(0)
        s.pause()
        assert totals == list(range(1, len(totals) + 1))
        await s.shutdown()

    asyncio.run(scenario())


def test_pause_from_listener_stops_before_next_tick():
    async def scenario():
        s = make_scheduler(delay_ms=0)

        def stop_at_ten(report):
            if report.state.total == 10:
                s.pause()

        s.subscribe(stop_at_ten)
        s.start()
        for _ in range(100):
            await asyncio.sleep(0)
        assert s.status is SimulationStatus.PAUSED
        assert s.engine.state.total == 10

    asyncio.run(scenario())


def test_step_while_running_is_rejected():
    async def scenario():
        s = make_scheduler(delay_ms=1000)
        s.start()
        with pytest.raises(RuntimeError):
            s.step()
        await s.shutdown()
        assert s.status is SimulationStatus.PAUSED

    asyncio.run(scenario())


def test_toggle_cycles_states():
    async def scenario():
        s = make_scheduler(delay_ms=1000)
        assert s.toggle() is SimulationStatus.RUNNING
        assert s.toggle() is SimulationStatus.PAUSED
        assert s.toggle() is SimulationStatus.RUNNING
        s.reset()
        assert s.status is SimulationStatus.IDLE

    asyncio.run(scenario())
