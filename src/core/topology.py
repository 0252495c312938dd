from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterator, Optional, Set, Tuple

from .errors import (
    DuplicateEndpointError,
    InvalidLengthError,
    InvalidTrackError,
    MissingEndpointError,
    MissingSectionError,
    UnknownEndpointError,
)

logger = logging.getLogger(__name__)


class Branch(str, Enum):
    FACING = "FACING"
    NORMAL = "NORMAL"
    REVERSE = "REVERSE"

    def __str__(self) -> str:
        return self.value


_BRANCH_ORDER = {b: i for i, b in enumerate(Branch)}


@dataclass(frozen=True)
class Junction:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class JunctionBranch:
    """One end of a section: a junction together with the branch it leaves by."""
    junction: Junction
    branch: Branch

    @property
    def sort_key(self) -> Tuple[str, int]:
        # total order used wherever a deterministic choice between end-points is needed
        return (self.junction.name, _BRANCH_ORDER[self.branch])

    def __str__(self) -> str:
        return f"{self.junction} {self.branch}"


@dataclass(frozen=True, eq=False)
class Section:
    """An immutable stretch of track of positive length between two end-points.

    The end-points are unordered: ``Section(5, a, b) == Section(5, b, a)``.
    Both end-points may share a junction (a loop) as long as their branches differ.
    """
    length: int
    endpoint_a: JunctionBranch
    endpoint_b: JunctionBranch
    _key: Tuple[int, FrozenSet[JunctionBranch]] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.endpoint_a is None or self.endpoint_b is None:
            raise MissingEndpointError("end-points cannot be None")
        if self.length <= 0:
            raise InvalidLengthError(f"length must be positive, got {self.length}")
        if self.endpoint_a == self.endpoint_b:
            raise DuplicateEndpointError(f"end-points cannot be equal: {self.endpoint_a}")
        object.__setattr__(self, "_key", (self.length, frozenset((self.endpoint_a, self.endpoint_b))))

    @property
    def endpoints(self) -> FrozenSet[JunctionBranch]:
        return self._key[1]

    def other_endpoint(self, endpoint: JunctionBranch) -> JunctionBranch:
        if endpoint == self.endpoint_a:
            return self.endpoint_b
        if endpoint == self.endpoint_b:
            return self.endpoint_a
        raise UnknownEndpointError(f"{endpoint} is not an end-point of section {self}")

    def junctions(self) -> Set[Junction]:
        return {self.endpoint_a.junction, self.endpoint_b.junction}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Section):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        # frozenset hashing is independent of end-point order
        return hash(self._key)

    def __str__(self) -> str:
        return f"{self.length} {self.endpoint_a} {self.endpoint_b}"


class Track:
    """A mutable set of sections in which every end-point is used at most once.

    Sections are indexed by end-point so collision checks on insert do not scan
    the track. Mutation is not synchronised; callers sharing a track across
    threads must serialise access themselves.
    """

    def __init__(self) -> None:
        # insertion ordered; values unused
        self._sections: Dict[Section, None] = {}
        self._by_endpoint: Dict[JunctionBranch, Section] = {}

    def add_section(self, section: Section) -> None:
        if section is None:
            raise MissingSectionError("section cannot be None")
        if section in self._sections:
            return
        for ep in (section.endpoint_a, section.endpoint_b):
            if ep in self._by_endpoint:
                raise InvalidTrackError(
                    f"The track already contains a section connected to end-point {ep}",
                    endpoint=ep,
                )
        self._sections[section] = None
        self._by_endpoint[section.endpoint_a] = section
        self._by_endpoint[section.endpoint_b] = section

    def remove_section(self, section: Section) -> None:
        if section not in self._sections:
            return
        del self._sections[section]
        self._by_endpoint.pop(section.endpoint_a, None)
        self._by_endpoint.pop(section.endpoint_b, None)

    def contains(self, section: Section) -> bool:
        return section in self._sections

    def junctions(self) -> Set[Junction]:
        return {ep.junction for ep in self._by_endpoint}

    def section_at(self, junction: Junction, branch: Branch) -> Optional[Section]:
        return self._by_endpoint.get(JunctionBranch(junction, branch))

    def __contains__(self, section: object) -> bool:
        return section in self._sections

    def __iter__(self) -> Iterator[Section]:
        return iter(list(self._sections))

    def __len__(self) -> int:
        return len(self._sections)

    def __str__(self) -> str:
        return "\n".join(str(s) for s in self._sections)
