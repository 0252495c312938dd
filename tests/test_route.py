import pytest

from src.core.errors import RouteError
from src.core.route import Route
from src.core.segment import Segment
from src.core.topology import Branch, Junction, JunctionBranch, Section, Track


def ep(name: str, branch: Branch) -> JunctionBranch:
    return JunctionBranch(Junction(name), branch)


J1F = ep("j1", Branch.FACING)
J2N = ep("j2", Branch.NORMAL)
J2R = ep("j2", Branch.REVERSE)
J3F = ep("j3", Branch.FACING)
S1 = Section(10, J1F, J2N)
S2 = Section(6, J2R, J3F)


def make_track() -> Track:
    track = Track()
    track.add_section(S1)
    track.add_section(S2)
    return track


def through_route() -> Route:
    return Route([Segment(S1, J1F, 0, 10), Segment(S2, J2R, 0, 6)])


def test_route_requires_segments_and_continuity():
    with pytest.raises(RouteError):
        Route([])
    with pytest.raises(RouteError):
        Route([Segment(S1, J1F, 0, 5), Segment(S2, J2R, 0, 6)])
    # continuing on the same section is fine
    r = Route([Segment(S1, J1F, 0, 4), Segment(S1, J1F, 4, 8)])
    assert r.length() == 8


def test_length_and_on_track():
    r = through_route()
    assert r.length() == 16
    assert len(r) == 2
    assert r.on_track(make_track())
    other = Track()
    other.add_section(S1)
    assert not r.on_track(other)


def test_subroute_spanning_sections():
    r = through_route()
    sub = r.subroute(7, 12)
    assert list(sub) == [Segment(S1, J1F, 7, 10), Segment(S2, J2R, 0, 2)]
    assert sub.length() == 5


def test_subroute_inside_one_segment():
    r = through_route()
    assert list(r.subroute(11, 13)) == [Segment(S2, J2R, 1, 3)]
    assert list(r.subroute(0, 10)) == [Segment(S1, J1F, 0, 10)]


def test_subroute_bounds():
    r = through_route()
    with pytest.raises(RouteError):
        r.subroute(5, 5)
    with pytest.raises(RouteError):
        r.subroute(-1, 3)
    with pytest.raises(RouteError):
        r.subroute(0, 17)


def test_intersects():
    r = through_route()
    assert r.subroute(0, 10).intersects(r.subroute(10, 16))  # share j2
    assert not r.subroute(0, 9).intersects(r.subroute(10, 16))
    # opposite direction over the same stretch
    back = Route([Segment(S2, J3F, 0, 6), Segment(S1, J2N, 0, 3)])
    assert back.intersects(r.subroute(8, 9))
    assert not back.intersects(r.subroute(0, 6))


def test_route_cannot_turn_back_on_its_section():
    # offset 5 from j1 is offset 5 from j2, so the locations line up
    with pytest.raises(RouteError):
        Route([Segment(S1, J1F, 2, 5), Segment(S1, J2N, 5, 8)])
    with pytest.raises(RouteError):
        Route([Segment(S1, J1F, 0, 10), Segment(S1, J2N, 0, 4)])
