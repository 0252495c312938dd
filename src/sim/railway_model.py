from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from src.core.allocator import allocate
from src.core.errors import AllocationRejected
from src.core.route import Route
from src.core.segment import Segment
from src.core.topology import Track

logger = logging.getLogger(__name__)


@dataclass
class Train:
    identifier: int
    route: Route
    # the train is allocated route offsets [start_offset, end_offset]
    start_offset: int
    end_offset: int

    def allocation(self) -> Route:
        return self.route.subroute(self.start_offset, self.end_offset)

    def remaining(self) -> List[Segment]:
        # the rest of the route ahead of the allocation
        if self.end_offset >= self.route.length():
            return []
        return list(self.route.subroute(self.end_offset, self.route.length()))

    def __str__(self) -> str:
        return (
            f"Identifier: {self.identifier}\n"
            f"Start Offset: {self.start_offset}\n"
            f"End Offset: {self.end_offset}\n"
            f"Following Route: \n{self.route}"
        )


class RailwayModel:
    """Trains following routes on one track, each holding a stretch of its route.

    Manual updates are checked against every other train's current allocation;
    :meth:`extend` hands competing extension requests to the priority allocator.
    """

    def __init__(self, track: Optional[Track] = None) -> None:
        self.track = track
        self._trains: List[Train] = []

    @property
    def trains(self) -> List[Train]:
        return list(self._trains)

    def train(self, identifier: int) -> Train:
        for t in self._trains:
            if t.identifier == identifier:
                return t
        raise KeyError(f"Train {identifier} not found")

    def last_train(self) -> Train:
        return self._trains[-1]

    def add_train(self, route: Route, start_offset: int, end_offset: int) -> Train:
        identifier = len(self._trains)
        self._check_route(route, start_offset, end_offset, identifier)
        train = Train(identifier=identifier, route=route, start_offset=start_offset, end_offset=end_offset)
        self._trains.append(train)
        logger.info("Added train %d at [%d, %d]", identifier, start_offset, end_offset)
        return train

    def update_train(self, identifier: int, start_offset: int, end_offset: int) -> bool:
        train = self.train(identifier)
        if start_offset == train.start_offset and end_offset == train.end_offset:
            return False
        self._check_route(train.route, start_offset, end_offset, identifier)
        train.start_offset = start_offset
        train.end_offset = end_offset
        logger.info("Updated train %d to [%d, %d]", identifier, start_offset, end_offset)
        return True

    def extend(self, targets: Dict[int, int]) -> Dict[int, List[Segment]]:
        """Move the end offset of several trains forward, lowest identifier first.

        ``targets`` maps train identifier to the end offset it would like to
        reach along its route. Every train takes part in the allocation as an
        occupant; trains without a target (or already past it) request nothing.
        """
        occupied: List[List[Segment]] = []
        requested: List[List[Segment]] = []
        for t in self._trains:
            occupied.append(list(t.allocation()))
            target = min(targets.get(t.identifier, t.end_offset), t.route.length())
            if target > t.end_offset:
                requested.append(list(t.route.subroute(t.end_offset, target)))
            else:
                requested.append([])
        allocated = allocate(occupied, requested)
        granted: Dict[int, List[Segment]] = {}
        for t, segs in zip(self._trains, allocated):
            if t.identifier not in targets:
                continue
            t.end_offset += sum(s.length for s in segs)
            granted[t.identifier] = segs
        return granted

    def _check_route(self, route: Route, start_offset: int, end_offset: int, identifier: int) -> None:
        if self.track is None or not route.on_track(self.track):
            raise AllocationRejected("The route is not on the system's track.")
        if not (0 <= start_offset < end_offset <= route.length()):
            raise AllocationRejected("Invalid Start Offset and/or End Offset for the route.")
        sub = route.subroute(start_offset, end_offset)
        for other in self._trains:
            if other.identifier != identifier and sub.intersects(other.allocation()):
                raise AllocationRejected(
                    "The sub-route intersects with some sub-routes currently allocated to other trains."
                )

    def __iter__(self) -> Iterator[Train]:
        return iter(self._trains)

    def __len__(self) -> int:
        return len(self._trains)
