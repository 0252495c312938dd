from typing import List, Dict, Any, Sequence
from src.core.allocator import allocate
from src.core.errors import EndpointFormatError, ScenarioError, SegmentError
from src.core.location import Location
from src.core.route import Route
from src.core.segment import Segment
from src.core.topology import Branch, Junction, JunctionBranch, Track

# Payload shapes:
#   endpoint: {"junction": "j1", "branch": "FACING"}
#   segment:  {"departing": endpoint, "start": 2, "end": 4}
#   location: {"departing": endpoint, "offset": 3}
# The section of a segment/location is the one connected at its departing end-point.


def endpoint_from_dict(d: Dict[str, Any]) -> JunctionBranch:
    try:
        branch = Branch(str(d["branch"]).upper())
    except ValueError as e:
        raise EndpointFormatError(f"Unknown branch {d.get('branch')!r} at junction {d.get('junction')!r}") from e
    return JunctionBranch(Junction(str(d["junction"])), branch)


def endpoint_to_dict(ep: JunctionBranch) -> Dict[str, Any]:
    return {"junction": ep.junction.name, "branch": ep.branch.value}


def segment_from_dict(track: Track, d: Dict[str, Any]) -> Segment:
    ep = endpoint_from_dict(d["departing"])
    section = track.section_at(ep.junction, ep.branch)
    if section is None:
        raise SegmentError(f"No section of the track is connected at {ep}")
    return Segment(section, ep, int(d["start"]), int(d["end"]))


def segment_to_dict(seg: Segment) -> Dict[str, Any]:
    return {
        "departing": endpoint_to_dict(seg.departing_endpoint),
        "start": seg.start_offset,
        "end": seg.end_offset,
        "length": seg.length,
        "section": str(seg.section),
        "from": str(seg.first_location()),
        "to": str(seg.last_location()),
    }


def location_from_dict(track: Track, d: Dict[str, Any]) -> Location:
    ep = endpoint_from_dict(d["departing"])
    section = track.section_at(ep.junction, ep.branch)
    if section is None:
        raise SegmentError(f"No section of the track is connected at {ep}")
    return Location(section, ep, int(d["offset"]))


def routes_from_payload(track: Track, raw: Sequence[Sequence[Dict[str, Any]]]) -> List[List[Segment]]:
    return [[segment_from_dict(track, s) for s in route] for route in (raw or [])]


def check_scenario(track: Track, occupied: Sequence[Sequence[Segment]], requested: Sequence[Sequence[Segment]]) -> None:
    """Raise unless the routes satisfy what :func:`allocate` assumes.

    One requested route per occupied route, every route on ``track`` and
    physically continuous, occupied routes non-empty and pairwise disjoint.
    Requested routes may be empty.
    """
    if len(occupied) != len(requested):
        raise ScenarioError(
            f"Got {len(occupied)} occupied routes but {len(requested)} requested routes."
        )
    for route in list(occupied) + list(requested):
        for seg in route:
            if not seg.on_track(track):
                raise SegmentError(f"Segment {seg} is not on the track")
    held = [Route(segs) for segs in occupied]
    for segs in requested:
        if segs:
            Route(segs)
    for i, a in enumerate(held):
        for j in range(i + 1, len(held)):
            if a.intersects(held[j]):
                raise ScenarioError(f"The occupied routes of trains {i} and {j} intersect.")


def run_scenario(track: Track, occupied: List[List[Segment]], requested: List[List[Segment]]) -> Dict[str, Any]:
    check_scenario(track, occupied, requested)
    allocated = allocate(occupied, requested)
    return {
        "allocated": allocated,
    }


def allocation_json(routes: Sequence[Sequence[Segment]]) -> List[List[Dict[str, Any]]]:
    # one list of segment dicts per train
    return [[segment_to_dict(s) for s in route] for route in routes]
