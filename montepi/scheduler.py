# scheduler.py
"""Cooperative tick loop that drives the estimation engine.

One tick samples, classifies, records and estimates in a single synchronous
call. The loop runs as an asyncio task that sleeps between ticks, so pause and
reset only ever land between two ticks.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Callable, List, Optional

from .core import AccumulatorState, EstimateReport, MonteCarloPi, TickReport

DEFAULT_DELAY_MS = 500
MAX_DELAY_MS = 1000


class SimulationStatus(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


def clamp_delay(delay_ms, max_delay_ms: int = MAX_DELAY_MS) -> int:
    """Coerce a delay to an int in [0, max_delay_ms]."""
    if isinstance(delay_ms, bool):
        raise TypeError("delay_ms must be a number")
    value = int(delay_ms)
    return max(0, min(value, max_delay_ms))


class Scheduler:
    """Runs ticks at a caller-controlled cadence with pause/resume/reset."""

    def __init__(self, engine: MonteCarloPi, *, delay_ms: int = DEFAULT_DELAY_MS,
                 max_delay_ms: int = MAX_DELAY_MS):
        if max_delay_ms < 0:
            raise ValueError("max_delay_ms must be non-negative")
        self.engine = engine
        self.max_delay_ms = int(max_delay_ms)
        self.delay_ms = clamp_delay(delay_ms, self.max_delay_ms)
        self.status = SimulationStatus.IDLE
        self._task: Optional[asyncio.Task] = None
        self._tick_listeners: List[Callable[[TickReport], None]] = []
        self._reset_listeners: List[Callable[[AccumulatorState, EstimateReport], None]] = []

    def subscribe(self, callback: Callable[[TickReport], None]) -> None:
        self._tick_listeners.append(callback)

    def on_reset(self, callback: Callable[[AccumulatorState, EstimateReport], None]) -> None:
        """Register a callback receiving the final counts of a run about to be cleared."""
        self._reset_listeners.append(callback)

    @property
    def is_running(self) -> bool:
        return self.status is SimulationStatus.RUNNING

    def set_delay(self, delay_ms) -> int:
        self.delay_ms = clamp_delay(delay_ms, self.max_delay_ms)
        logging.debug("Tick delay set to %d ms", self.delay_ms)
        return self.delay_ms

    def tick(self) -> TickReport:
        report = self.engine.tick()
        for listener in list(self._tick_listeners):
            try:
                listener(report)
            except Exception:
                logging.exception("Tick listener %r failed", listener)
        return report

    def step(self) -> TickReport:
        """Run one manual tick. Only allowed while the loop is not running."""
        if self.is_running:
            raise RuntimeError("Cannot step while the simulation is running; pause it first")
        return self.tick()

    def start(self) -> SimulationStatus:
        if self.status is SimulationStatus.IDLE:
            self._launch()
        return self.status

    def pause(self) -> SimulationStatus:
        if self.status is SimulationStatus.RUNNING:
            self._cancel()
            self.status = SimulationStatus.PAUSED
            logging.info("Simulation paused at %d samples", self.engine.state.total)
        return self.status

    def resume(self) -> SimulationStatus:
        if self.status is SimulationStatus.PAUSED:
            self._launch()
        return self.status

    def toggle(self) -> SimulationStatus:
        """Pause when running, otherwise start or resume."""
        if self.is_running:
            return self.pause()
        if self.status is SimulationStatus.PAUSED:
            return self.resume()
        return self.start()

    def reset(self) -> AccumulatorState:
        self._cancel()
        self.status = SimulationStatus.IDLE
        state, report = self.engine.snapshot()
        if state.total:
            for listener in list(self._reset_listeners):
                try:
                    listener(state, report)
                except Exception:
                    logging.exception("Reset listener %r failed", listener)
        logging.info("Simulation reset after %d samples", state.total)
        return self.engine.reset()

    async def shutdown(self) -> None:
        """Stop the loop and wait for its task to finish."""
        task = self._task
        self._cancel()
        if self.is_running:
            self.status = SimulationStatus.PAUSED
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    def _launch(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise RuntimeError("Scheduler.start() requires a running event loop") from e
        self.status = SimulationStatus.RUNNING
        self._task = loop.create_task(self._run())
        logging.info("Simulation running with %d ms delay", self.delay_ms)

    def _cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        while self.status is SimulationStatus.RUNNING:
            self.tick()
            await asyncio.sleep(self.delay_ms / 1000)
