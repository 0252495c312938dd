from typing import Dict, List, Sequence, Union
from src.core.segment import Segment

# Allocation summary utilities

def _route_length(route: Sequence[Segment]) -> int:
    return sum(s.length for s in route)


def summarize_allocation(requested: Sequence[Sequence[Segment]], allocated: Sequence[Sequence[Segment]]) -> Dict[str, Union[int, float]]:
    # returns basic KPIs: trains granted in full, truncated, blocked, and the share of requested length granted
    if not requested:
        return {
            "total_trains": 0,
            "fully_granted": 0,
            "truncated": 0,
            "blocked": 0,
            "requested_length": 0,
            "allocated_length": 0,
            "grant_ratio": 0.0,
        }
    fully = truncated = blocked = 0
    for req, alloc in zip(requested, allocated):
        if list(alloc) == list(req):
            fully += 1
        elif not alloc:
            blocked += 1
        else:
            truncated += 1
    requested_length = sum(_route_length(r) for r in requested)
    allocated_length = sum(_route_length(a) for a in allocated)
    ratio = round(100.0 * allocated_length / requested_length, 2) if requested_length > 0 else 0.0
    return {
        "total_trains": len(requested),
        "fully_granted": fully,
        "truncated": truncated,
        "blocked": blocked,
        "requested_length": requested_length,
        "allocated_length": allocated_length,
        "grant_ratio": ratio,
    }


def granted_by_train(requested: Sequence[Sequence[Segment]], allocated: Sequence[Sequence[Segment]]) -> List[Dict[str, int]]:
    # per-train lengths, for tables and CSV export
    return [
        {"train": i, "requested_length": _route_length(req), "allocated_length": _route_length(alloc)}
        for i, (req, alloc) in enumerate(zip(requested, allocated))
    ]
