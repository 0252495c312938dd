import os, sys
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from typing import Any, Dict, List
import pandas as pd
import streamlit as st


def render_kpis(kpis: Dict[str, Any]) -> None:
    if not isinstance(kpis, dict):
        st.warning("KPIs unavailable")
        return
    # Simple grid of key metrics if present
    cols = st.columns(4)
    def metric(c, label, key):
        if key in kpis:
            c.metric(label, kpis.get(key))
    metric(cols[0], "Fully granted", "fully_granted")
    metric(cols[1], "Truncated", "truncated")
    metric(cols[2], "Blocked", "blocked")
    metric(cols[3], "Grant ratio (%)", "grant_ratio")
    st.json(kpis)


def render_trains_table(trains: List[Dict[str, Any]]) -> None:
    if not trains:
        st.info("No trains added yet.")
        return
    df = pd.DataFrame([
        {
            "train": t.get("identifier"),
            "start_offset": t.get("start_offset"),
            "end_offset": t.get("end_offset"),
            "route_length": t.get("route_length"),
            "allocated": t.get("end_offset", 0) - t.get("start_offset", 0),
        }
        for t in trains
    ])
    st.dataframe(df, use_container_width=True)
