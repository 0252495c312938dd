from __future__ import annotations
import os
from dataclasses import dataclass
from dotenv import load_dotenv

# Load .env early (no error if missing)
load_dotenv()


@dataclass(frozen=True)
class RailwayConfig:
    # SQLite file for stored tracks and allocation runs (default: data/railway.db)
    db_path: str | None = os.getenv("RAILWAY_DB_PATH")
    # Directory for the JSONL audit trail (default: audit/)
    audit_dir: str | None = os.getenv("RAILWAY_AUDIT_DIR")
    # Track definition loaded by the command line when --track is not given
    track_file: str = os.getenv("RAILWAY_TRACK_FILE", "data/track.txt")
    log_level: str = os.getenv("RAILWAY_LOG_LEVEL", "INFO").upper()
