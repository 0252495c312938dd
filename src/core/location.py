from __future__ import annotations
from typing import Tuple, Union

from .errors import (
    EndpointNotOnSectionError,
    NullEndpointError,
    NullSectionError,
    OffsetOutOfRangeError,
)
from .topology import Junction, JunctionBranch, Section

# (junction,) for a location at a junction, otherwise (end-point, offset)
CanonicalForm = Union[Tuple[Junction], Tuple[JunctionBranch, int]]


class Location:
    """An immutable point on the track.

    A location is described as ``offset`` meters from ``endpoint`` along
    ``section``. The same point has several descriptions: a section of length
    10 between (j1, FACING) and (j2, REVERSE) has the point 3 from j1/FACING
    equal to the point 7 from j2/REVERSE, and a location at offset 0 is the
    junction itself, whichever branch it was described from.

    Equivalence holds when either
      * both are at a junction and the junctions are equal,
      * the end-points are equal and so are the offsets, or
      * the end-points are the two ends of the same section and the offsets
        sum to the section's length.

    Hashing goes through :meth:`canonical`, the description measured from the
    nearer end of the section. The two agree for locations on the sections of
    a single track, where an end-point belongs to exactly one section.
    """

    __slots__ = ("_section", "_endpoint", "_offset")

    def __init__(self, section: Section, endpoint: JunctionBranch, offset: int) -> None:
        if section is None:
            raise NullSectionError("section cannot be None")
        if endpoint is None:
            raise NullEndpointError("endpoint cannot be None")
        if offset < 0:
            raise OffsetOutOfRangeError(f"offset cannot be negative, got {offset}")
        if offset >= section.length:
            raise OffsetOutOfRangeError(
                f"offset {offset} must be less than the section length {section.length}"
            )
        if endpoint not in section.endpoints:
            raise EndpointNotOnSectionError(f"{endpoint} is not an end-point of section {section}")
        self._section = section
        self._endpoint = endpoint
        self._offset = offset

    @property
    def section(self) -> Section:
        return self._section

    @property
    def endpoint(self) -> JunctionBranch:
        return self._endpoint

    @property
    def offset(self) -> int:
        return self._offset

    def at_junction(self) -> bool:
        return self._offset == 0

    def on_section(self, section: Section) -> bool:
        if self.at_junction():
            return self._endpoint.junction in section.junctions()
        return section == self._section

    def canonical(self) -> CanonicalForm:
        if self._offset == 0:
            return (self._endpoint.junction,)
        other = self._section.other_endpoint(self._endpoint)
        other_offset = self._section.length - self._offset
        if self._offset < other_offset:
            return (self._endpoint, self._offset)
        if other_offset < self._offset:
            return (other, other_offset)
        # midpoint: both descriptions have the same offset
        nearer = min(self._endpoint, other, key=lambda ep: ep.sort_key)
        return (nearer, self._offset)

    def equivalent(self, other: "Location") -> bool:
        if self._offset == 0 and other._offset == 0:
            return self._endpoint.junction == other._endpoint.junction
        if self._endpoint == other._endpoint:
            return self._offset == other._offset
        if self._section == other._section:
            return self._offset + other._offset == self._section.length
        return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Location):
            return NotImplemented
        return self.equivalent(other)

    def __hash__(self) -> int:
        form = self.canonical()
        if len(form) == 1:
            return hash(form)
        endpoint, offset = form
        return hash((endpoint.junction, offset))

    def __repr__(self) -> str:
        return f"Location({self._section!s}, {self._endpoint!s}, {self._offset})"

    def __str__(self) -> str:
        if self.at_junction():
            return str(self._endpoint.junction)
        return (
            f"Distance {self._offset} from {self._endpoint.junction} "
            f"along the {self._endpoint.branch} branch"
        )
