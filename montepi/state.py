# state.py
"""Per-app simulation state shared by the HTTP handlers."""

from __future__ import annotations

import collections
import logging
import random
from typing import Any, Deque, Dict, List, Optional

from .config import SimulationConfig
from .core import AccumulatorState, EstimateReport, Geometry, MonteCarloPi, TickReport
from .scheduler import Scheduler
from .storage_orm import Storage
from .utils import tick_payload


class SimulationState:
    """Owns the engine, its scheduler, the recent-sample buffer and optional run history."""

    def __init__(self, config: SimulationConfig, storage: Optional[Storage] = None):
        self.config = config
        self.geometry = Geometry(square_size=config.square_size, offset=config.offset)
        rng = random.Random(config.seed) if config.seed is not None else None
        self.engine = MonteCarloPi(self.geometry, rng=rng)
        self.scheduler = Scheduler(self.engine, delay_ms=config.delay_ms, max_delay_ms=config.max_delay_ms)
        self.storage = storage
        self.samples: Deque[Dict[str, Any]] = collections.deque(maxlen=config.history_size)

        self.scheduler.subscribe(self._remember)
        self.scheduler.on_reset(self._forget)
        if storage is not None:
            self.scheduler.on_reset(self._persist)

    def _remember(self, report: TickReport) -> None:
        self.samples.append(tick_payload(report))

    def _forget(self, state: AccumulatorState, report: EstimateReport) -> None:
        self.samples.clear()

    def _persist(self, state: AccumulatorState, report: EstimateReport) -> None:
        # Runs on the event loop; the tick task is already cancelled when reset fires.
        self.storage.record_run(state, report, self.geometry)

    def recent_samples(self, n: int) -> List[Dict[str, Any]]:
        """Return up to n most recent samples, oldest first."""
        if n <= 0:
            return []
        items = list(self.samples)
        return items[-n:]

    def describe(self) -> Dict[str, Any]:
        state, report = self.engine.snapshot()
        return {
            "status": self.scheduler.status.value,
            "delay_ms": self.scheduler.delay_ms,
            "max_delay_ms": self.scheduler.max_delay_ms,
            "geometry": {
                "square_size": self.geometry.square_size,
                "offset": self.geometry.offset,
                "radius": self.geometry.radius,
                "center": list(self.geometry.center),
            },
            "total": state.total,
            "inside": state.inside,
            "pi_estimate": report.pi_estimate,
            "z_score": report.z_score,
        }

    async def close(self) -> None:
        await self.scheduler.shutdown()
        if self.storage is not None:
            state, report = self.engine.snapshot()
            if state.total:
                self.storage.record_run(state, report, self.geometry)
            self.storage.close()
        logging.info("Simulation state closed")
