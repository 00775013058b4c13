from .core import (
    Accumulator,
    AccumulatorState,
    EstimateReport,
    Geometry,
    MonteCarloPi,
    Sample,
    TickReport,
    classify,
    estimate,
    next_point,
)
from .scheduler import Scheduler, SimulationStatus

__version__ = "0.1.0"
