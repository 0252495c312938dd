import os, sys
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from typing import Any, Dict, List, Tuple
import plotly.express as px
import plotly.graph_objects as go


def _section_key(sec: Dict[str, Any]) -> str:
    a, b = sec["endpoints"]
    return f"{sec['length']} {a['junction']} {a['branch']} {b['junction']} {b['branch']}"


def _span(sec: Dict[str, Any], seg: Dict[str, Any]) -> Tuple[int, int]:
    # x positions are measured from the section's first end-point
    a = sec["endpoints"][0]
    dep = seg["departing"]
    if dep["junction"] == a["junction"] and dep["branch"] == a["branch"]:
        return seg["start"], seg["end"]
    return sec["length"] - seg["end"], sec["length"] - seg["start"]


def render_track_schematic(track: Dict[str, Any], trains: List[Dict[str, Any]]) -> go.Figure:
    sections = track.get("sections", [])
    y_positions = {_section_key(s): i for i, s in enumerate(sections)}
    by_key = {_section_key(s): s for s in sections}
    palette = px.colors.qualitative.Plotly
    fig = go.Figure()
    for key, y in y_positions.items():
        sec = by_key[key]
        a, b = sec["endpoints"]
        fig.add_trace(go.Scatter(
            x=[0, sec["length"]], y=[y, y], mode="lines+text",
            line=dict(color="#95a5a6", width=6),
            text=[f"{a['junction']}/{a['branch']}", f"{b['junction']}/{b['branch']}"],
            textposition="top center",
            hovertemplate=f"Section={key}<extra></extra>",
            showlegend=False,
        ))
    occupied_total = 0
    for n, tr in enumerate(trains):
        color = palette[n % len(palette)]
        first = True
        for seg in tr.get("allocation", []):
            sec = by_key.get(seg.get("section"))
            if sec is None:
                continue
            x0, x1 = _span(sec, seg)
            y = y_positions[seg["section"]]
            occupied_total += seg.get("length", 0)
            fig.add_trace(go.Scatter(
                x=[x0, x1], y=[y, y], mode="lines",
                line=dict(color=color, width=12),
                name=f"Train {tr.get('identifier')}",
                legendgroup=f"train-{tr.get('identifier')}",
                showlegend=first,
                hovertemplate=f"Train {tr.get('identifier')}<br>{seg.get('from')} -> {seg.get('to')}<extra></extra>",
            ))
            first = False
    fig.update_yaxes(
        tickmode="array",
        tickvals=list(y_positions.values()),
        ticktext=list(y_positions.keys()),
    )
    fig.update_layout(
        title=f"Track Schematic – {len(trains)} trains, {occupied_total} m allocated",
        height=120 + 60 * max(1, len(sections)),
        margin=dict(l=40, r=10, t=60, b=10),
    )
    return fig
