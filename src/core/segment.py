from __future__ import annotations
from dataclasses import dataclass
from typing import AbstractSet, Iterable, List, Optional

from .errors import SegmentError
from .location import Location
from .topology import JunctionBranch, Section, Track


@dataclass(frozen=True)
class Segment:
    """The part of a route lying on one section.

    Covers the locations at offsets ``start_offset .. end_offset`` (inclusive)
    measured from ``departing_endpoint``, in the direction of travel away from it.
    """
    section: Section
    departing_endpoint: JunctionBranch
    start_offset: int
    end_offset: int

    def __post_init__(self) -> None:
        if self.section is None:
            raise SegmentError("section cannot be None")
        if self.departing_endpoint not in self.section.endpoints:
            raise SegmentError(f"{self.departing_endpoint} is not an end-point of section {self.section}")
        if not (0 <= self.start_offset < self.end_offset <= self.section.length):
            raise SegmentError(
                f"offsets must satisfy 0 <= start < end <= {self.section.length}, "
                f"got [{self.start_offset}, {self.end_offset}]"
            )

    @property
    def length(self) -> int:
        return self.end_offset - self.start_offset

    @property
    def arriving_endpoint(self) -> JunctionBranch:
        return self.section.other_endpoint(self.departing_endpoint)

    def first_location(self) -> Location:
        return Location(self.section, self.departing_endpoint, self.start_offset)

    def last_location(self) -> Location:
        # a Location cannot sit at offset == length, so describe the far junction instead
        if self.end_offset == self.section.length:
            return Location(self.section, self.arriving_endpoint, 0)
        return Location(self.section, self.departing_endpoint, self.end_offset)

    def locations(self) -> List[Location]:
        return segment_locations(self)

    def intersects(self, other: "Segment") -> bool:
        return not set(segment_locations(self)).isdisjoint(segment_locations(other))

    def prefix(self, end_offset: int) -> "Segment":
        return Segment(self.section, self.departing_endpoint, self.start_offset, end_offset)

    def on_track(self, track: Track) -> bool:
        return track.contains(self.section)

    def __str__(self) -> str:
        return f"{self.section} {self.departing_endpoint} {self.start_offset} {self.end_offset}"


def segment_locations(segment: Segment) -> List[Location]:
    """All distinct locations of a segment in travel order (``length + 1`` of them)."""
    out = [
        Location(segment.section, segment.departing_endpoint, offset)
        for offset in range(segment.start_offset, segment.end_offset)
    ]
    out.append(segment.last_location())
    return out


def route_locations(route: Iterable[Segment]) -> List[Location]:
    out: List[Location] = []
    for seg in route:
        out.extend(segment_locations(seg))
    return out


def longest_valid_prefix(segment: Segment, forbidden: AbstractSet[Location]) -> Optional[Segment]:
    """Longest leading part of ``segment`` that stops before its first forbidden location.

    Returns None when fewer than two locations precede the first forbidden one,
    since a segment needs a positive length. When nothing is forbidden the
    segment itself is returned.
    """
    for i, loc in enumerate(segment_locations(segment)):
        if loc in forbidden:
            break
    else:
        return segment
    new_end = segment.start_offset + i - 1
    if new_end <= segment.start_offset:
        return None
    return segment.prefix(new_end)
