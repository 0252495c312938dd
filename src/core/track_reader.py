"""Reading and writing track definitions.

One section per line::

    <length> <junction1> <branch1> <junction2> <branch2>

e.g. ``10 j1 FACING j2 NORMAL``. Any malformed line aborts the read with a
:class:`TrackFormatError` naming the line.
"""
from __future__ import annotations
import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .errors import InvalidSectionError, InvalidTrackError, TrackFormatError
from .topology import Branch, Junction, JunctionBranch, Section, Track

logger = logging.getLogger(__name__)

# plain decimal integers only; no underscores or non-ASCII digits
_INTEGER = re.compile(r"[+-]?[0-9]+")


def _parse_branch(token: str) -> Optional[Branch]:
    try:
        return Branch(token)
    except ValueError:
        return None


def parse_section(line: str, line_number: Optional[int] = None) -> Section:
    tokens = line.split()
    length = int(tokens[0]) if tokens and _INTEGER.fullmatch(tokens[0]) else None
    if length is None:
        raise TrackFormatError(line_number, "Wrong length format.")
    items: List[str] = tokens[1:]
    if len(items) != 4:
        raise TrackFormatError(line_number, "Wrong number of items.")
    branch1 = _parse_branch(items[1])
    branch2 = _parse_branch(items[3])
    if branch1 is None:
        raise TrackFormatError(line_number, "Wrong format for the first branch type.")
    if branch2 is None:
        raise TrackFormatError(line_number, "Wrong format for the second branch type.")
    try:
        return Section(
            length,
            JunctionBranch(Junction(items[0]), branch1),
            JunctionBranch(Junction(items[2]), branch2),
        )
    except InvalidSectionError as e:
        raise TrackFormatError(line_number, str(e)) from e


def parse_track(lines: Iterable[str]) -> Track:
    track = Track()
    for line_number, line in enumerate(lines, start=1):
        section = parse_section(line, line_number)
        if track.contains(section):
            raise TrackFormatError(line_number, "Duplicate sections detected.")
        try:
            track.add_section(section)
        except InvalidTrackError as e:
            raise TrackFormatError(line_number, str(e)) from e
    return track


def read_track(path: Union[str, Path]) -> Track:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise OSError(f"Cannot read file: {path}") from e
    track = parse_track(text.splitlines())
    logger.info("Read %d sections from %s", len(track), path)
    return track


def format_track(track: Track) -> str:
    return str(track)


def write_track(track: Track, path: Union[str, Path]) -> None:
    text = format_track(track)
    Path(path).write_text(text + "\n" if text else "", encoding="utf-8")
