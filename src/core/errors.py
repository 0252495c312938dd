from __future__ import annotations
from typing import Any, Optional


class RailwayError(Exception):
    """Base class for all track model and allocation errors."""


# Section construction
class InvalidSectionError(RailwayError, ValueError):
    pass


class InvalidLengthError(InvalidSectionError):
    pass


class DuplicateEndpointError(InvalidSectionError):
    pass


class MissingEndpointError(InvalidSectionError):
    pass


class UnknownEndpointError(RailwayError, ValueError):
    pass


# Track mutation
class MissingSectionError(RailwayError, ValueError):
    pass


class InvalidTrackError(RailwayError):
    """A section could not be added because one of its end-points is taken."""

    def __init__(self, message: str, endpoint: Any = None) -> None:
        super().__init__(message)
        self.endpoint = endpoint


# Location construction
class LocationError(RailwayError, ValueError):
    pass


class NullSectionError(LocationError):
    pass


class NullEndpointError(LocationError):
    pass


class OffsetOutOfRangeError(LocationError):
    pass


class EndpointNotOnSectionError(LocationError):
    pass


class SegmentError(RailwayError, ValueError):
    pass


class RouteError(RailwayError, ValueError):
    pass


class TrackFormatError(RailwayError):
    def __init__(self, line_number: Optional[int], reason: str) -> None:
        self.line_number = line_number
        self.reason = reason
        if line_number is None:
            super().__init__(f"Format error: {reason}")
        else:
            super().__init__(f"Format error in line {line_number}: {reason}")


class AllocationRejected(RailwayError):
    """A manual allocation request for a train failed validation."""


class EndpointFormatError(RailwayError, ValueError):
    """An end-point in a payload names an unknown branch or no junction."""


class ScenarioError(RailwayError, ValueError):
    """Occupied/requested routes handed to the allocator are inconsistent."""
