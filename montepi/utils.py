from __future__ import annotations

import json
from typing import Any, Dict, List

from fastapi.encoders import jsonable_encoder

from .core import AccumulatorState, EstimateReport, TickReport


def enc(obj: Any) -> str:
    """Best-effort JSON encoding for logging."""
    try:
        return json.dumps(jsonable_encoder(obj))
    except (TypeError, ValueError):
        return json.dumps(repr(obj))


def tick_payload(report: TickReport) -> Dict[str, Any]:
    """Flatten a tick into the JSON shape served to renderers."""
    sample, state, estimate = report
    return {
        "x": sample.x,
        "y": sample.y,
        "inside": sample.inside,
        "total": state.total,
        "inside_count": state.inside,
        "pi_estimate": estimate.pi_estimate,
        "z_score": estimate.z_score,
    }


def format_stats(state: AccumulatorState, report: EstimateReport) -> List[str]:
    """Human-readable stats lines; estimate lines only appear once sampling started."""
    lines = [f"Total:\t{state.total}", f"Inside:\t{state.inside}"]
    if state.total > 0:
        lines.append(f"4 × (Inside / Total) = {report.pi_estimate:.6f} → π")
        lines.append(f"Standard deviations from expectation: {report.z_score:.2f}")
    return lines
