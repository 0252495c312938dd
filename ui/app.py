import os, sys
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from typing import Any, Dict, List
import requests
import streamlit as st

from ui.api_client import ApiClient
from ui.state_manager import ensure_defaults, parse_route_text, log_message, log_error, clear_log
from ui.components.kpi_display import render_kpis, render_trains_table
from ui.components.track_schematic import render_track_schematic

st.set_page_config(page_title="Railway Track Allocation", layout="wide")
st.title("Railway Track Allocation – Trains & Routes")

ensure_defaults()
client = ApiClient()


def _call(fn, *args, **kwargs) -> Dict[str, Any] | None:
    try:
        data = fn(*args, **kwargs)
    except requests.RequestException as e:
        log_error(f"API error: {e}")
        return None
    if isinstance(data, dict) and data.get("error"):
        log_error(data["error"])
        return None
    return data


# Track panel
st.header("Track")
track_text = st.text_area("Track definition (<length> <junction> <branch> <junction> <branch>)", st.session_state.track_text, height=160)
tcols = st.columns([2, 1])
with tcols[0]:
    track_name = st.text_input("Track name", value="track-1")
with tcols[1]:
    if st.button("Load Track", type="primary"):
        res = _call(client.save_track, track_text, track_name)
        if res:
            st.session_state.track_text = track_text
            st.session_state.track_id = res["id"]
            log_message(f"Successfully loaded track #{res['id']} with {res['sections']} sections")

tid = st.session_state.track_id
if tid is None:
    st.info("Load a track to start adding trains.")
    st.stop()

track_data = _call(client.get_track, tid)
trains_data = _call(client.list_trains, tid) or {"items": []}
trains: List[Dict[str, Any]] = trains_data.get("items", [])

# Add train
st.markdown("---")
st.header("Add Train")
route_text = st.text_area("Route (one segment per line: <junction> <branch> <start> <end>)", st.session_state.route_text, height=120)
acols = st.columns(3)
with acols[0]:
    add_start = st.number_input("Start Offset", min_value=0, value=0, step=1, key="add_start")
with acols[1]:
    add_end = st.number_input("End Offset", min_value=0, value=5, step=1, key="add_end")
with acols[2]:
    if st.button("Add Train"):
        try:
            route = parse_route_text(route_text)
        except ValueError as e:
            log_error(str(e))
        else:
            res = _call(client.add_train, tid, route, int(add_start), int(add_end))
            if res:
                st.session_state.route_text = route_text
                log_message(f"The following train is added successfully:\n{res['train']['text']}")
                st.rerun()

# Select, view and update
st.markdown("---")
st.header("Trains")
render_trains_table(trains)
if trains:
    ids = [t["identifier"] for t in trains]
    ident = st.selectbox("Train", ids, format_func=lambda i: f"Train {i}")
    selected = next(t for t in trains if t["identifier"] == ident)
    ucols = st.columns(4)
    with ucols[0]:
        new_start = st.number_input("Start Offset", min_value=0, value=int(selected["start_offset"]), step=1, key=f"upd_start_{ident}")
    with ucols[1]:
        new_end = st.number_input("End Offset", min_value=0, value=int(selected["end_offset"]), step=1, key=f"upd_end_{ident}")
    with ucols[2]:
        if st.button("View Allocation"):
            log_message(f"The allocation of Train {ident} is:\n{selected['text']}")
    with ucols[3]:
        if st.button("Update Train"):
            res = _call(client.update_train, tid, ident, int(new_start), int(new_end))
            if res is not None:
                if res.get("updated"):
                    log_message(f"The allocation of Train {ident} is updated to:\n{res['train']['text']}")
                else:
                    log_message("The given start and end offsets are the same as the original. The train remains unchanged.")
                st.rerun()

    st.subheader("Request Extensions")
    targets: Dict[int, int] = {}
    ecols = st.columns(min(4, len(trains)))
    for n, t in enumerate(trains):
        with ecols[n % len(ecols)]:
            want = st.number_input(
                f"Train {t['identifier']} target end", min_value=0, max_value=int(t["route_length"]),
                value=int(t["end_offset"]), step=1, key=f"target_{t['identifier']}",
            )
            if want > t["end_offset"]:
                targets[t["identifier"]] = int(want)
    if st.button("Allocate Extensions", disabled=not targets):
        res = _call(client.extend_trains, tid, targets)
        if res:
            granted = {k: sum(s["length"] for s in v) for k, v in res.get("granted", {}).items()}
            log_message(f"Granted extensions (meters by train): {granted}")
            st.rerun()

if track_data:
    st.plotly_chart(render_track_schematic(track_data["track"], trains), use_container_width=True)

# Runs for this track
st.markdown("---")
st.header("Allocation Runs")
if trains:
    rcols = st.columns([2, 2, 1])
    with rcols[0]:
        run_name = st.text_input("Run name", value="rest-of-routes")
    with rcols[1]:
        run_comment = st.text_input("Comment", value="")
    with rcols[2]:
        if st.button("Save Run"):
            # every train asks for the rest of its route, ahead of its current allocation
            res = _call(
                client.allocate_on_track, tid,
                [t["allocation"] for t in trains], [t["remaining"] for t in trains],
                name=run_name or None, comment=run_comment or None,
            )
            if res:
                log_message(f"Saved run #{res['run_id']}: {res['kpis']['fully_granted']} of {res['kpis']['total_trains']} trains could take the rest of their route")
runs = _call(client.list_runs, tid) or {"items": []}
if runs.get("items"):
    rid = st.selectbox("Run", [r["id"] for r in runs["items"]])
    run = _call(client.get_run, rid)
    if run:
        render_kpis(run["run"].get("kpis"))
else:
    st.caption("No runs saved for this track yet.")

# Output log
st.markdown("---")
lcols = st.columns([4, 1])
with lcols[0]:
    st.header("Output")
with lcols[1]:
    if st.button("Clear Output"):
        clear_log()
        st.rerun()
for level, msg in reversed(st.session_state.action_log):
    if level == "error":
        st.error(msg)
    else:
        st.text(msg)
