import httpx
import pytest
from httpx import ASGITransport
from src.api import app
from src.core.segment import Segment
from src.core.topology import Branch, Junction, JunctionBranch, Section
from src.sim.simulator import granted_by_train, summarize_allocation

J1F = JunctionBranch(Junction("j1"), Branch.FACING)
S = Section(10, J1F, JunctionBranch(Junction("j2"), Branch.NORMAL))


def test_summarize_allocation_counts():
    requested = [[Segment(S, J1F, 0, 4)], [Segment(S, J1F, 4, 8)], [Segment(S, J1F, 8, 10)], []]
    allocated = [[Segment(S, J1F, 0, 4)], [Segment(S, J1F, 4, 6)], [], []]
    kpis = summarize_allocation(requested, allocated)
    assert kpis["total_trains"] == 4
    assert kpis["fully_granted"] == 2  # an empty request counts as granted
    assert kpis["truncated"] == 1
    assert kpis["blocked"] == 1
    assert kpis["requested_length"] == 10
    assert kpis["allocated_length"] == 6
    assert kpis["grant_ratio"] == 60.0
    assert granted_by_train(requested, allocated)[1] == {"train": 1, "requested_length": 4, "allocated_length": 2}


def test_summarize_allocation_empty():
    assert summarize_allocation([], [])["grant_ratio"] == 0.0
    assert summarize_allocation([[]], [[]])["grant_ratio"] == 0.0


@pytest.mark.asyncio
async def test_allocate_endpoint_and_audit_file_written(tmp_path, monkeypatch):
    # Redirect audit dir to temp
    from src.sim import audit as audit_mod
    monkeypatch.setattr(audit_mod, "AUDIT_DIR", tmp_path)
    monkeypatch.setattr(audit_mod, "AUDIT_FILE", tmp_path / "events.jsonl")

    transport = ASGITransport(app=app)
    ep = {"junction": "j1", "branch": "FACING"}
    payload = {
        "track": "10 j1 FACING j2 NORMAL",
        "occupied": [[{"departing": ep, "start": 0, "end": 2}], [{"departing": ep, "start": 7, "end": 9}]],
        "requested": [[{"departing": ep, "start": 2, "end": 8}], []],
    }
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        r = await client.post("/allocate", json=payload)
        assert r.status_code == 200
        data = r.json()
        assert "kpis" in data
        assert data["kpis"]["total_trains"] == 2

    # Ensure audit written
    assert (audit_mod.AUDIT_FILE).exists()
    content = audit_mod.AUDIT_FILE.read_text(encoding="utf-8").strip().splitlines()
    assert any('"type": "allocate"' in line for line in content)
