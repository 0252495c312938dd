import os, sys
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
import requests
from typing import Any, Dict, List, Optional


class ApiClient:
    def __init__(self, base_url: Optional[str] = None, timeout: float = 30.0) -> None:
        self.base_url = base_url or os.environ.get("API_BASE", "http://localhost:8000")
        self.timeout = timeout

    def _post(self, path: str, json: Dict[str, Any] | None = None, params: Dict[str, Any] | None = None) -> Dict[str, Any]:
        r = requests.post(f"{self.base_url}{path}", json=json, params=params, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def _put(self, path: str, json: Dict[str, Any]) -> Dict[str, Any]:
        r = requests.put(f"{self.base_url}{path}", json=json, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def _get(self, path: str, params: Dict[str, Any] | None = None) -> Dict[str, Any]:
        r = requests.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Runs
    def allocate_on_track(self, tid: int, occupied: List[List[Dict[str, Any]]], requested: List[List[Dict[str, Any]]], name: Optional[str] = None, comment: Optional[str] = None) -> Dict[str, Any]:
        body = {"occupied": occupied, "requested": requested, "name": name, "comment": comment}
        return self._post(f"/tracks/{tid}/allocate", json=body)

    # Tracks
    def save_track(self, definition: str, name: str) -> Dict[str, Any]:
        return self._post("/tracks", json={"name": name, "definition": definition})

    def get_track(self, tid: int) -> Dict[str, Any]:
        return self._get(f"/tracks/{tid}")

    # Trains
    def add_train(self, tid: int, route: List[Dict[str, Any]], start_offset: int, end_offset: int) -> Dict[str, Any]:
        body = {"route": route, "start_offset": int(start_offset), "end_offset": int(end_offset)}
        return self._post(f"/tracks/{tid}/trains", json=body)

    def list_trains(self, tid: int) -> Dict[str, Any]:
        return self._get(f"/tracks/{tid}/trains")

    def update_train(self, tid: int, ident: int, start_offset: int, end_offset: int) -> Dict[str, Any]:
        return self._put(f"/tracks/{tid}/trains/{ident}", json={"start_offset": int(start_offset), "end_offset": int(end_offset)})

    def extend_trains(self, tid: int, targets: Dict[int, int]) -> Dict[str, Any]:
        return self._post(f"/tracks/{tid}/trains/extend", json={"targets": {str(k): int(v) for k, v in targets.items()}})

    def list_runs(self, tid: int, offset: int = 0, limit: int = 50) -> Dict[str, Any]:
        return self._get(f"/tracks/{tid}/runs", params={"offset": offset, "limit": limit})

    def get_run(self, rid: int) -> Dict[str, Any]:
        return self._get(f"/runs/{rid}")
