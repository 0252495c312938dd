from __future__ import annotations
from typing import Iterable, Iterator, List, Tuple

from .errors import RouteError
from .location import Location
from .segment import Segment, route_locations
from .topology import Track


class Route:
    """An ordered, physically continuous, non-empty sequence of segments."""

    def __init__(self, segments: Iterable[Segment]) -> None:
        segs: Tuple[Segment, ...] = tuple(segments)
        if not segs:
            raise RouteError("a route needs at least one segment")
        for prev, nxt in zip(segs, segs[1:]):
            if prev.last_location() != nxt.first_location():
                raise RouteError(f"segments are not continuous: '{prev}' then '{nxt}'")
            # staying on a section means keeping the direction of travel
            if prev.section == nxt.section and prev.departing_endpoint != nxt.departing_endpoint:
                raise RouteError(f"route turns back on its section: '{prev}' then '{nxt}'")
        self._segments = segs

    @property
    def segments(self) -> Tuple[Segment, ...]:
        return self._segments

    def length(self) -> int:
        return sum(s.length for s in self._segments)

    def locations(self) -> List[Location]:
        return route_locations(self._segments)

    def intersects(self, other: "Route") -> bool:
        return not set(self.locations()).isdisjoint(other.locations())

    def on_track(self, track: Track) -> bool:
        return all(s.on_track(track) for s in self._segments)

    def subroute(self, start: int, end: int) -> "Route":
        """The part of the route between route offsets ``start`` and ``end``."""
        if not (0 <= start < end <= self.length()):
            raise RouteError(f"invalid sub-route [{start}, {end}] for a route of length {self.length()}")
        out: List[Segment] = []
        base = 0
        for seg in self._segments:
            lo = max(start, base)
            hi = min(end, base + seg.length)
            if lo < hi:
                out.append(Segment(
                    seg.section,
                    seg.departing_endpoint,
                    seg.start_offset + (lo - base),
                    seg.start_offset + (hi - base),
                ))
            base += seg.length
            if base >= end:
                break
        return Route(out)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __getitem__(self, idx: int) -> Segment:
        return self._segments[idx]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Route):
            return NotImplemented
        return self._segments == other._segments

    def __hash__(self) -> int:
        return hash(self._segments)

    def __str__(self) -> str:
        return "\n".join(str(s) for s in self._segments)
