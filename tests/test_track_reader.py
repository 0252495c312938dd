from pathlib import Path

import pytest

from src.core.errors import TrackFormatError
from src.core.topology import Branch, Junction, JunctionBranch, Section
from src.core.track_reader import parse_track, read_track, write_track

DATA_DIR = Path(__file__).parents[1] / "data"


def test_parse_valid_track():
    track = parse_track([
        "10 j1 FACING j2 NORMAL",
        "5  j2 REVERSE   j3 FACING",
    ])
    assert len(track) == 2
    assert track.contains(Section(10, JunctionBranch(Junction("j2"), Branch.NORMAL), JunctionBranch(Junction("j1"), Branch.FACING)))
    assert {j.name for j in track.junctions()} == {"j1", "j2", "j3"}


@pytest.mark.parametrize("line,reason", [
    ("ten j1 FACING j2 NORMAL", "Wrong length format."),
    ("", "Wrong length format."),
    ("10 j1 FACING j2", "Wrong number of items."),
    ("10 j1 FACING j2 NORMAL extra", "Wrong number of items."),
    ("10 j1 LEFT j2 NORMAL", "Wrong format for the first branch type."),
    ("10 j1 FACING j2 normal", "Wrong format for the second branch type."),
])
def test_malformed_lines_report_line_number(line, reason):
    with pytest.raises(TrackFormatError) as exc:
        parse_track(["10 a FACING b FACING", line])
    assert exc.value.line_number == 2
    assert str(exc.value) == f"Format error in line 2: {reason}"


def test_construction_errors_become_format_errors():
    with pytest.raises(TrackFormatError) as exc:
        parse_track(["0 j1 FACING j2 NORMAL"])
    assert exc.value.line_number == 1
    with pytest.raises(TrackFormatError) as exc:
        parse_track(["4 j1 FACING j1 FACING"])
    assert exc.value.line_number == 1


def test_duplicate_and_collision_reported_distinctly():
    with pytest.raises(TrackFormatError) as dup:
        parse_track(["10 j1 FACING j2 NORMAL", "10 j2 NORMAL j1 FACING"])
    assert dup.value.reason == "Duplicate sections detected."
    with pytest.raises(TrackFormatError) as clash:
        parse_track(["10 j1 FACING j2 NORMAL", "7 j2 NORMAL j3 FACING"])
    assert clash.value.line_number == 2
    assert clash.value.reason != "Duplicate sections detected."
    assert "j2 NORMAL" in clash.value.reason


def test_read_write_round_trip(tmp_path):
    track = read_track(DATA_DIR / "track.txt")
    out = tmp_path / "copy.txt"
    write_track(track, out)
    again = read_track(out)
    assert set(again) == set(track)


def test_read_missing_file(tmp_path):
    with pytest.raises(OSError) as exc:
        read_track(tmp_path / "nope.txt")
    assert "Cannot read file" in str(exc.value)


@pytest.mark.parametrize("token", ["1_0", "١٠", "10.0", "0x10"])
def test_length_must_be_plain_decimal(token):
    with pytest.raises(TrackFormatError) as exc:
        parse_track([f"{token} j1 FACING j2 NORMAL"])
    assert exc.value.reason == "Wrong length format."


def test_signed_length_parses():
    track = parse_track(["+10 j1 FACING j2 NORMAL"])
    assert [s.length for s in track] == [10]
    with pytest.raises(TrackFormatError) as exc:
        parse_track(["-10 j1 FACING j2 NORMAL"])
    assert exc.value.reason != "Wrong length format."
