import io
import csv
import json
import logging
from typing import Any, Dict, List

from fastapi import FastAPI
from fastapi.responses import StreamingResponse, RedirectResponse, Response
from pydantic import BaseModel

from src.config import RailwayConfig
from src.core.errors import RailwayError, TrackFormatError
from src.core.route import Route
from src.core.topology import Track
from src.core.track_reader import parse_track, format_track
from src.sim.railway_model import RailwayModel, Train
from src.sim.scenario import (
    allocation_json,
    location_from_dict,
    routes_from_payload,
    run_scenario,
    segment_from_dict,
)
from src.sim.simulator import summarize_allocation, granted_by_train
from src.sim.audit import write_audit
from src.store.db import (
    init_db,
    save_track,
    list_tracks,
    get_track,
    update_track,
    delete_track,
    save_run,
    get_run,
    list_runs_by_track,
    delete_run,
)

cfg = RailwayConfig()
logging.basicConfig(level=cfg.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Railway Track Allocation API")
init_db()

# One railway model per stored track, rebuilt whenever the track changes
_MODELS: Dict[int, RailwayModel] = {}


@app.get("/")
async def root() -> RedirectResponse:
    # Redirect base URL to interactive docs to avoid 404 confusion
    return RedirectResponse(url="/docs")

@app.get("/favicon.ico")
async def favicon() -> Response:
    # Return empty 204 for favicon to avoid noisy 404s in logs
    return Response(status_code=204)


class EndpointIn(BaseModel):
    junction: str
    branch: str

class SegmentIn(BaseModel):
    departing: EndpointIn
    start: int
    end: int

class LocationIn(BaseModel):
    departing: EndpointIn
    offset: int

class AllocateRequest(BaseModel):
    track: str
    occupied: List[List[SegmentIn]]
    requested: List[List[SegmentIn]]

class TrackAllocateRequest(BaseModel):
    occupied: List[List[SegmentIn]]
    requested: List[List[SegmentIn]]
    name: str | None = None
    comment: str | None = None

class EquivalenceRequest(BaseModel):
    track: str
    a: LocationIn
    b: LocationIn

class TrackIn(BaseModel):
    name: str = "track"
    definition: str

class TrackUpdate(BaseModel):
    name: str | None = None
    definition: str | None = None

class TrainIn(BaseModel):
    route: List[SegmentIn]
    start_offset: int
    end_offset: int

class TrainUpdate(BaseModel):
    start_offset: int
    end_offset: int

class ExtendRequest(BaseModel):
    # train identifier -> end offset wanted along its route
    targets: Dict[int, int]


def _error(e: Exception) -> Dict[str, Any]:
    out: Dict[str, Any] = {"error": str(e)}
    if isinstance(e, TrackFormatError):
        out["line"] = e.line_number
    return out


def _track_json(track: Track) -> Dict[str, Any]:
    return {
        "sections": [
            {
                "length": s.length,
                "endpoints": [
                    {"junction": ep.junction.name, "branch": ep.branch.value}
                    for ep in (s.endpoint_a, s.endpoint_b)
                ],
            }
            for s in track
        ],
        "junctions": sorted(j.name for j in track.junctions()),
    }


def _train_json(train: Train) -> Dict[str, Any]:
    return {
        "identifier": train.identifier,
        "start_offset": train.start_offset,
        "end_offset": train.end_offset,
        "route_length": train.route.length(),
        "route": allocation_json([train.route.segments])[0],
        "allocation": allocation_json([train.allocation().segments])[0],
        "remaining": allocation_json([train.remaining()])[0],
        "text": str(train),
    }


def _allocate(track: Track, occupied_in: List[List[SegmentIn]], requested_in: List[List[SegmentIn]]) -> Dict[str, Any]:
    occupied = routes_from_payload(track, [[s.model_dump() for s in r] for r in occupied_in])
    requested = routes_from_payload(track, [[s.model_dump() for s in r] for r in requested_in])
    allocated = run_scenario(track, occupied, requested)["allocated"]
    return {
        "allocated": allocation_json(allocated),
        "kpis": summarize_allocation(requested, allocated),
        "by_train": granted_by_train(requested, allocated),
    }


def _load_stored_track(tid: int) -> Track | None:
    row = get_track(tid)
    if not row:
        return None
    return parse_track(row["definition"].splitlines())


def _model_for(tid: int) -> RailwayModel | None:
    if tid not in _MODELS:
        track = _load_stored_track(tid)
        if track is None:
            return None
        _MODELS[tid] = RailwayModel(track)
    return _MODELS[tid]


@app.get("/demo")
async def demo() -> Dict[str, Any]:
    """Two trains on one section of length 10; train 0 is cut short before train 1."""
    definition = "10 j1 FACING j2 NORMAL"
    track = parse_track([definition])
    ep = {"junction": "j1", "branch": "FACING"}
    body = AllocateRequest(
        track=definition,
        occupied=[[SegmentIn(departing=ep, start=0, end=3)], [SegmentIn(departing=ep, start=6, end=9)]],
        requested=[[SegmentIn(departing=ep, start=2, end=7)], [SegmentIn(departing=ep, start=8, end=10)]],
    )
    return _allocate(track, body.occupied, body.requested)


@app.post("/allocate")
async def allocate_endpoint(body: AllocateRequest) -> Dict[str, Any]:
    """Resolve requested routes against occupied routes, lower index first.

    Body:
      {
        "track": "<track definition text>",
        "occupied":  [[segment, ...], ...],
        "requested": [[segment, ...], ...]
      }
    """
    try:
        track = parse_track(body.track.splitlines())
        result = _allocate(track, body.occupied, body.requested)
    except (RailwayError, KeyError) as e:
        return _error(e)
    write_audit({
        "type": "allocate",
        "trains": len(body.occupied),
        "kpis": result["kpis"],
    })
    return result


@app.post("/locations/equivalent")
async def locations_equivalent(body: EquivalenceRequest) -> Dict[str, Any]:
    try:
        track = parse_track(body.track.splitlines())
        a = location_from_dict(track, body.a.model_dump())
        b = location_from_dict(track, body.b.model_dump())
    except (RailwayError, KeyError) as e:
        return _error(e)
    return {"equivalent": a.equivalent(b), "a": str(a), "b": str(b)}


# Persistence APIs
@app.post("/tracks")
async def create_track(body: TrackIn) -> Dict[str, Any]:
    try:
        track = parse_track(body.definition.splitlines())
    except TrackFormatError as e:
        return _error(e)
    tid = save_track(body.name, format_track(track))
    return {"id": tid, "sections": len(track)}


@app.get("/tracks")
async def tracks(offset: int = 0, limit: int = 50) -> Dict[str, Any]:
    return {"items": list_tracks(offset=offset, limit=limit)}


@app.get("/tracks/{tid}")
async def track_details(tid: int) -> Dict[str, Any]:
    row = get_track(tid)
    if not row:
        return {"error": "track not found"}
    track = parse_track(row["definition"].splitlines())
    return {"track": {**row, **_track_json(track)}}


@app.put("/tracks/{tid}")
async def update_track_api(tid: int, body: TrackUpdate) -> Dict[str, Any]:
    definition = body.definition
    if definition is not None:
        try:
            definition = format_track(parse_track(definition.splitlines()))
        except TrackFormatError as e:
            return _error(e)
    ok = update_track(tid, name=body.name, definition=definition)
    if ok and definition is not None:
        _MODELS.pop(tid, None)
    return {"updated": bool(ok)}


@app.delete("/tracks/{tid}")
async def delete_track_api(tid: int) -> Dict[str, Any]:
    ok = delete_track(tid)
    _MODELS.pop(tid, None)
    return {"deleted": bool(ok)}


@app.post("/tracks/{tid}/allocate")
async def allocate_on_track(tid: int, body: TrackAllocateRequest) -> Dict[str, Any]:
    track = _load_stored_track(tid)
    if track is None:
        return {"error": "track not found"}
    try:
        result = _allocate(track, body.occupied, body.requested)
    except (RailwayError, KeyError) as e:
        return _error(e)
    rid = save_run(
        track_id=tid,
        input_payload=body.model_dump(exclude={"name", "comment"}),
        allocation=result["allocated"],
        kpis={**result["kpis"], "by_train": result["by_train"]},
        name=body.name,
        comment=body.comment,
    )
    write_audit({
        "type": "allocate",
        "track_id": tid,
        "run_id": rid,
        "kpis": result["kpis"],
    })
    return {"run_id": rid, **result}


@app.get("/tracks/{tid}/runs")
async def list_runs_for_track(tid: int, offset: int = 0, limit: int = 50) -> Dict[str, Any]:
    # Return lightweight list of runs for a track
    return {"items": list_runs_by_track(tid, offset=offset, limit=limit)}


@app.get("/runs/{rid}")
async def get_run_details(rid: int) -> Dict[str, Any]:
    r = get_run(rid)
    if not r:
        return {"error": "run not found"}
    # Decode JSON fields
    r["input_payload"] = json.loads(r["input_payload"])
    r["allocation"] = json.loads(r["allocation"])
    r["kpis"] = json.loads(r["kpis"])
    return {"run": r}


@app.delete("/runs/{rid}")
async def delete_run_api(rid: int) -> Dict[str, Any]:
    ok = delete_run(rid)
    return {"deleted": bool(ok)}


@app.get("/runs/{rid}/allocation.csv")
async def download_allocation_csv(rid: int) -> StreamingResponse:
    r = get_run(rid)
    if not r:
        return StreamingResponse(io.StringIO("error,run not found\n"), media_type="text/csv")
    kpis = json.loads(r["kpis"]) if isinstance(r.get("kpis"), str) else r.get("kpis")
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=["train", "requested_length", "allocated_length"])
    writer.writeheader()
    for row in (kpis or {}).get("by_train", []):
        writer.writerow(row)
    buf.seek(0)
    return StreamingResponse(buf, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename=run_{rid}_allocation.csv"})


# Trains on a stored track
@app.post("/tracks/{tid}/trains")
async def add_train(tid: int, body: TrainIn) -> Dict[str, Any]:
    model = _model_for(tid)
    if model is None:
        return {"error": "track not found"}
    try:
        route = Route(segment_from_dict(model.track, s.model_dump()) for s in body.route)
        train = model.add_train(route, body.start_offset, body.end_offset)
    except (RailwayError, KeyError) as e:
        return _error(e)
    return {"train": _train_json(train)}


@app.get("/tracks/{tid}/trains")
async def list_trains(tid: int) -> Dict[str, Any]:
    model = _model_for(tid)
    if model is None:
        return {"error": "track not found"}
    return {"items": [_train_json(t) for t in model]}


@app.put("/tracks/{tid}/trains/{ident}")
async def update_train(tid: int, ident: int, body: TrainUpdate) -> Dict[str, Any]:
    model = _model_for(tid)
    if model is None:
        return {"error": "track not found"}
    try:
        changed = model.update_train(ident, body.start_offset, body.end_offset)
    except (RailwayError, KeyError) as e:
        logger.info("Rejected update of train %d: %s", ident, e)
        return _error(e)
    return {"updated": changed, "train": _train_json(model.train(ident))}


@app.post("/tracks/{tid}/trains/extend")
async def extend_trains(tid: int, body: ExtendRequest) -> Dict[str, Any]:
    model = _model_for(tid)
    if model is None:
        return {"error": "track not found"}
    try:
        granted = model.extend(body.targets)
    except (RailwayError, KeyError) as e:
        return _error(e)
    write_audit({
        "type": "extend",
        "track_id": tid,
        "granted": {str(k): sum(s.length for s in v) for k, v in granted.items()},
    })
    return {
        "granted": {str(k): allocation_json([v])[0] for k, v in granted.items()},
        "items": [_train_json(t) for t in model],
    }
