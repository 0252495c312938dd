from __future__ import annotations
import os, sys
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from typing import Any, Dict, List
import streamlit as st


def ensure_defaults() -> None:
    if "track_id" not in st.session_state:
        st.session_state.track_id = None
    if "track_text" not in st.session_state:
        st.session_state.track_text = default_track()
    if "route_text" not in st.session_state:
        st.session_state.route_text = default_route()
    if "action_log" not in st.session_state:
        st.session_state.action_log = []  # list of (level, message)


def default_track() -> str:
    return "\n".join([
        "10 j1 FACING j2 FACING",
        "12 j2 NORMAL j3 FACING",
        "8 j2 REVERSE j4 FACING",
        "15 j3 NORMAL j4 NORMAL",
    ])


def default_route() -> str:
    # one segment per line: <junction> <branch> <start> <end>
    return "\n".join([
        "j1 FACING 0 10",
        "j2 NORMAL 0 12",
    ])


def parse_route_text(text: str) -> List[Dict[str, Any]]:
    route: List[Dict[str, Any]] = []
    for n, line in enumerate(text.splitlines(), start=1):
        parts = line.split()
        if not parts:
            continue
        if len(parts) != 4:
            raise ValueError(f"Route line {n}: expected '<junction> <branch> <start> <end>'")
        junction, branch, start, end = parts
        route.append({
            "departing": {"junction": junction, "branch": branch.upper()},
            "start": int(start),
            "end": int(end),
        })
    return route


def log_message(msg: str) -> None:
    st.session_state.action_log.append(("info", msg))


def log_error(msg: str) -> None:
    st.session_state.action_log.append(("error", msg))


def clear_log() -> None:
    st.session_state.action_log = []
