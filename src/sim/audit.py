import json
from pathlib import Path
from typing import Any, Dict

from src.config import RailwayConfig

_cfg = RailwayConfig()
AUDIT_DIR = Path(_cfg.audit_dir) if _cfg.audit_dir else Path(__file__).parents[2] / "audit"
AUDIT_DIR.mkdir(parents=True, exist_ok=True)
AUDIT_FILE = AUDIT_DIR / "events.jsonl"


def write_audit(event: Dict[str, Any]) -> None:
    # append a JSONL entry
    with AUDIT_FILE.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")
