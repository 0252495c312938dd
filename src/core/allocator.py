from __future__ import annotations
import logging
from typing import FrozenSet, List, Sequence

from .location import Location
from .segment import Segment, longest_valid_prefix, route_locations, segment_locations

logger = logging.getLogger(__name__)

# Priority allocation:
# - Trains are handled in index order; a lower index always wins.
# - Train i may not touch anything occupied by another train, nor anything
#   already granted to trains 0..i-1 during this call.
# - Requested segments are granted whole until the first one that conflicts;
#   that one is cut just before its first forbidden location and the rest of
#   the request is dropped, so the grant stays contiguous.
#
# Callers guarantee both lists have the same length, occupied routes do not
# intersect each other and all segments lie on one track.


def allocate(occupied: Sequence[Sequence[Segment]], requested: Sequence[Sequence[Segment]]) -> List[List[Segment]]:
    allocated: List[List[Segment]] = []
    granted: FrozenSet[Location] = frozenset()
    occupied_locations = [frozenset(route_locations(route)) for route in occupied]

    for index in range(len(occupied)):
        forbidden = granted.union(*(locs for j, locs in enumerate(occupied_locations) if j != index))
        route = allocate_train(requested[index], forbidden)
        if route != list(requested[index]):
            logger.debug("train %d: request truncated to %d of %d segments", index, len(route), len(requested[index]))
        allocated.append(route)
        granted = granted | frozenset(route_locations(route))

    return allocated


def allocate_train(request: Sequence[Segment], forbidden: FrozenSet[Location]) -> List[Segment]:
    result: List[Segment] = []
    for seg in request:
        if forbidden.isdisjoint(segment_locations(seg)):
            result.append(seg)
            continue
        prefix = longest_valid_prefix(seg, forbidden)
        if prefix is not None:
            result.append(prefix)
        break
    return result
