import httpx
import pytest
from pathlib import Path

from httpx import ASGITransport

from src.api import app, _MODELS
from src.store.db import set_db_path, init_db

TRACK = "10 j1 FACING j2 NORMAL\n6 j2 REVERSE j3 FACING"
EAST = [
    {"departing": {"junction": "j1", "branch": "FACING"}, "start": 0, "end": 10},
    {"departing": {"junction": "j2", "branch": "REVERSE"}, "start": 0, "end": 6},
]
WEST = [
    {"departing": {"junction": "j3", "branch": "FACING"}, "start": 0, "end": 6},
    {"departing": {"junction": "j2", "branch": "NORMAL"}, "start": 0, "end": 10},
]


@pytest.fixture
def fresh_db(tmp_path):
    # Isolate DB to a temp file
    set_db_path(Path(tmp_path) / "unit.db")
    init_db()
    _MODELS.clear()
    yield
    _MODELS.clear()


@pytest.mark.asyncio
async def test_track_crud(fresh_db):
    transport = ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        r = await client.post("/tracks", json={"name": "two-sections", "definition": TRACK})
        assert r.status_code == 200
        tid = r.json().get("id")
        assert isinstance(tid, int)
        assert r.json()["sections"] == 2

        r = await client.get("/tracks")
        assert any(it.get("id") == tid for it in r.json()["items"])

        r = await client.get(f"/tracks/{tid}")
        track = r.json()["track"]
        assert track["name"] == "two-sections"
        assert track["junctions"] == ["j1", "j2", "j3"]
        assert len(track["sections"]) == 2

        r = await client.put(f"/tracks/{tid}", json={"name": "renamed"})
        assert r.json().get("updated") is True
        r = await client.put(f"/tracks/{tid}", json={"definition": "10 j1 FACING"})
        assert r.json()["line"] == 1

        r = await client.delete(f"/tracks/{tid}")
        assert r.json().get("deleted") is True
        r = await client.get(f"/tracks/{tid}")
        assert r.json() == {"error": "track not found"}


@pytest.mark.asyncio
async def test_invalid_track_not_saved(fresh_db):
    transport = ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        r = await client.post("/tracks", json={"definition": "10 j1 FACING j2 NORMAL\n4 j2 NORMAL j5 FACING"})
        data = r.json()
        assert data["line"] == 2
        assert "error" in data
        r = await client.get("/tracks")
        assert r.json()["items"] == []


@pytest.mark.asyncio
async def test_runs_on_stored_track(fresh_db):
    transport = ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        tid = (await client.post("/tracks", json={"definition": TRACK})).json()["id"]
        payload = {
            "occupied": [[EAST[0] | {"end": 3}], [WEST[0] | {"end": 2}]],
            "requested": [[EAST[0] | {"start": 3}, EAST[1]], [WEST[0] | {"start": 2}]],
        }
        r = await client.post(f"/tracks/{tid}/allocate", json={**payload, "name": "first", "comment": "baseline"})
        assert r.status_code == 200
        rid = r.json().get("run_id")
        assert isinstance(rid, int)
        assert r.json()["kpis"]["total_trains"] == 2
        r = await client.post(f"/tracks/{tid}/allocate", json={**payload, "name": "second"})
        rid2 = r.json()["run_id"]

        r = await client.get(f"/tracks/{tid}/runs", params={"limit": 1, "offset": 0})
        items = r.json()["items"]
        assert len(items) == 1
        assert items[0]["id"] == rid2 and items[0]["name"] == "second"

        r = await client.get(f"/runs/{rid}")
        run = r.json()["run"]
        assert run["name"] == "first" and run["comment"] == "baseline"
        assert isinstance(run["input_payload"], dict)
        assert len(run["allocation"]) == 2
        assert run["kpis"]["by_train"][0]["requested_length"] == 13

        r = await client.get(f"/runs/{rid}/allocation.csv")
        assert r.status_code == 200
        lines = r.text.strip().splitlines()
        assert lines[0] == "train,requested_length,allocated_length"
        assert len(lines) == 3

        r = await client.delete(f"/runs/{rid}")
        assert r.json().get("deleted") is True
        r = await client.get(f"/runs/{rid}")
        assert r.json() == {"error": "run not found"}

        r = await client.post("/tracks/999/allocate", json=payload)
        assert r.json() == {"error": "track not found"}


@pytest.mark.asyncio
async def test_trains_on_stored_track(fresh_db):
    transport = ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        tid = (await client.post("/tracks", json={"definition": TRACK})).json()["id"]

        r = await client.post(f"/tracks/{tid}/trains", json={"route": EAST, "start_offset": 0, "end_offset": 3})
        assert r.json()["train"]["identifier"] == 0
        assert r.json()["train"]["route_length"] == 16
        r = await client.post(f"/tracks/{tid}/trains", json={"route": WEST, "start_offset": 0, "end_offset": 2})
        assert r.json()["train"]["identifier"] == 1

        # overlaps train 0
        r = await client.post(f"/tracks/{tid}/trains", json={"route": WEST, "start_offset": 12, "end_offset": 14})
        assert "intersects" in r.json()["error"]

        r = await client.put(f"/tracks/{tid}/trains/1", json={"start_offset": 0, "end_offset": 2})
        assert r.json()["updated"] is False
        r = await client.put(f"/tracks/{tid}/trains/1", json={"start_offset": 0, "end_offset": 15})
        assert "error" in r.json()

        r = await client.post(f"/tracks/{tid}/trains/extend", json={"targets": {"0": 16, "1": 5}})
        data = r.json()
        assert [(s["start"], s["end"]) for s in data["granted"]["0"]] == [(3, 10), (0, 3)]
        assert data["granted"]["1"] == []
        ends = {t["identifier"]: t["end_offset"] for t in data["items"]}
        assert ends == {0: 13, 1: 2}

        r = await client.get(f"/tracks/{tid}/trains")
        items = r.json()["items"]
        assert len(items) == 2
        assert [(s["start"], s["end"]) for s in items[0]["remaining"]] == [(3, 6)]

        # save a run where every train asks for the rest of its route
        r = await client.post(f"/tracks/{tid}/allocate", json={
            "occupied": [t["allocation"] for t in items],
            "requested": [t["remaining"] for t in items],
            "name": "rest",
        })
        data = r.json()
        assert isinstance(data["run_id"], int)
        assert data["kpis"]["blocked"] == 2

        r = await client.get("/tracks/999/trains")
        assert r.json() == {"error": "track not found"}
