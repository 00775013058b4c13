# core.py
"""Sampling and estimation engine for the Monte Carlo estimate of pi.

Points are drawn uniformly in a square, classified against the inscribed
circle, and counted. The running ratio inside/total approaches pi/4, and the
z-score reports how far the observed ratio sits from that expectation under a
binomial model.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import NamedTuple, Optional, Tuple

# Probability that a uniform point in the square lands in the inscribed circle.
P_INSIDE = math.pi / 4


@dataclass(frozen=True)
class Geometry:
    """Square of side ``square_size`` at ``offset`` with its inscribed circle."""

    square_size: float = 500.0
    offset: float = 50.0
    radius: float = field(init=False)
    center: Tuple[float, float] = field(init=False)

    def __post_init__(self):
        if not math.isfinite(self.square_size) or self.square_size <= 0:
            raise ValueError(f"square_size must be positive, got {self.square_size!r}")
        if not math.isfinite(self.offset) or self.offset < 0:
            raise ValueError(f"offset must be non-negative, got {self.offset!r}")
        radius = self.square_size / 2
        object.__setattr__(self, "radius", radius)
        object.__setattr__(self, "center", (self.offset + radius, self.offset + radius))


class Sample(NamedTuple):
    x: float
    y: float
    inside: bool


class AccumulatorState(NamedTuple):
    total: int = 0
    inside: int = 0


class EstimateReport(NamedTuple):
    # None until at least one sample has been recorded
    pi_estimate: Optional[float]
    z_score: float


class TickReport(NamedTuple):
    """Everything the renderer needs after one tick."""

    sample: Sample
    state: AccumulatorState
    estimate: EstimateReport


def next_point(geometry: Geometry, rng=None) -> Tuple[float, float]:
    """Return a point drawn uniformly from [offset, offset + square_size)^2.

    ``rng`` is anything with a ``random()`` method; the module-level
    ``random`` source is used when it is omitted.
    """
    rng = random if rng is None else rng
    x = geometry.offset + rng.random() * geometry.square_size
    y = geometry.offset + rng.random() * geometry.square_size
    return (x, y)


def classify(point: Tuple[float, float], geometry: Geometry) -> bool:
    """True iff the point lies strictly inside the circle. Points on it are outside."""
    cx, cy = geometry.center
    dx = point[0] - cx
    dy = point[1] - cy
    return dx * dx + dy * dy < geometry.radius * geometry.radius


class Accumulator:
    """Running sample counts. The only mutable state of the engine."""

    def __init__(self):
        self._total = 0
        self._inside = 0

    @property
    def state(self) -> AccumulatorState:
        return AccumulatorState(self._total, self._inside)

    def record(self, is_inside: bool) -> AccumulatorState:
        self._total += 1
        if is_inside:
            self._inside += 1
        return self.state

    def reset(self) -> AccumulatorState:
        self._total = 0
        self._inside = 0
        return self.state


def estimate(state: AccumulatorState) -> EstimateReport:
    """Derive the pi estimate and z-score from the current counts.

    With no samples there is no estimate and the z-score is reported as 0.
    Otherwise the observed ratio inside/total is compared to p = pi/4 using
    the binomial standard error sqrt(p * (1 - p) / total).
    """
    n = state.total
    if n == 0:
        return EstimateReport(pi_estimate=None, z_score=0.0)

    observed = state.inside / n
    std = math.sqrt(P_INSIDE * (1 - P_INSIDE) / n)
    z = 0.0 if std == 0 else (observed - P_INSIDE) / std
    return EstimateReport(pi_estimate=4 * observed, z_score=z)


class MonteCarloPi:
    """Wires sampler, classifier, accumulator and estimator into single ticks."""

    def __init__(self, geometry: Optional[Geometry] = None, rng=None):
        self.geometry = geometry or Geometry()
        self.rng = rng
        self._accumulator = Accumulator()

    @property
    def state(self) -> AccumulatorState:
        return self._accumulator.state

    def tick(self) -> TickReport:
        x, y = next_point(self.geometry, self.rng)
        is_inside = classify((x, y), self.geometry)
        state = self._accumulator.record(is_inside)
        return TickReport(Sample(x, y, is_inside), state, estimate(state))

    def snapshot(self) -> Tuple[AccumulatorState, EstimateReport]:
        state = self._accumulator.state
        return state, estimate(state)

    def reset(self) -> AccumulatorState:
        return self._accumulator.reset()
