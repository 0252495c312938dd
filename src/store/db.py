import json
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

from src.config import RailwayConfig

DATA_DIR = (Path(__file__).parents[2] / "data")
DATA_DIR.mkdir(exist_ok=True)
DB_PATH: Path = Path(RailwayConfig().db_path or DATA_DIR / "railway.db")


def set_db_path(path: Path) -> None:
    global DB_PATH
    DB_PATH = Path(path)


def _conn() -> sqlite3.Connection:
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    with _conn() as conn:
        cur = conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS tracks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                definition TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS runs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                track_id INTEGER,
                name TEXT,
                comment TEXT,
                input_payload TEXT NOT NULL,
                allocation TEXT NOT NULL,
                kpis TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY(track_id) REFERENCES tracks(id)
            )
            """
        )
        conn.commit()


def save_track(name: str, definition: str) -> int:
    with _conn() as conn:
        cur = conn.cursor()
        cur.execute("INSERT INTO tracks(name, definition) VALUES(?, ?)", (name, definition))
        conn.commit()
        return int(cur.lastrowid)


def list_tracks(offset: int = 0, limit: int = 50) -> List[Dict[str, Any]]:
    with _conn() as conn:
        rows = conn.execute(
            "SELECT id, name, definition, created_at FROM tracks ORDER BY id DESC LIMIT ? OFFSET ?",
            (limit, offset),
        ).fetchall()
        return [dict(r) for r in rows]


def get_track(tid: int) -> Optional[Dict[str, Any]]:
    with _conn() as conn:
        r = conn.execute("SELECT id, name, definition, created_at FROM tracks WHERE id=?", (tid,)).fetchone()
        return dict(r) if r else None


def update_track(tid: int, name: Optional[str] = None, definition: Optional[str] = None) -> bool:
    sets = []
    args: List[Any] = []
    if name is not None:
        sets.append("name=?")
        args.append(name)
    if definition is not None:
        sets.append("definition=?")
        args.append(definition)
    if not sets:
        return False
    args.append(tid)
    with _conn() as conn:
        cur = conn.cursor()
        cur.execute(f"UPDATE tracks SET {', '.join(sets)} WHERE id=?", tuple(args))
        conn.commit()
        return cur.rowcount > 0


def delete_track(tid: int) -> bool:
    with _conn() as conn:
        cur = conn.cursor()
        # Delete runs first, then track
        cur.execute("DELETE FROM runs WHERE track_id=?", (tid,))
        cur.execute("DELETE FROM tracks WHERE id=?", (tid,))
        conn.commit()
        return cur.rowcount > 0


def save_run(
    track_id: Optional[int],
    input_payload: Dict[str, Any],
    allocation: List[Any],
    kpis: Dict[str, Any],
    name: Optional[str] = None,
    comment: Optional[str] = None,
) -> int:
    with _conn() as conn:
        cur = conn.cursor()
        cur.execute(
            "INSERT INTO runs(track_id, name, comment, input_payload, allocation, kpis) VALUES(?,?,?,?,?,?)",
            (
                track_id,
                name,
                comment,
                json.dumps(input_payload, ensure_ascii=False),
                json.dumps(allocation, ensure_ascii=False),
                json.dumps(kpis, ensure_ascii=False),
            ),
        )
        conn.commit()
        return int(cur.lastrowid)


def get_run(rid: int) -> Optional[Dict[str, Any]]:
    with _conn() as conn:
        r = conn.execute("SELECT * FROM runs WHERE id=?", (rid,)).fetchone()
        return dict(r) if r else None


def list_runs_by_track(tid: int, offset: int = 0, limit: int = 50) -> List[Dict[str, Any]]:
    with _conn() as conn:
        rows = conn.execute(
            "SELECT id, name, comment, created_at FROM runs WHERE track_id=? ORDER BY id DESC LIMIT ? OFFSET ?",
            (tid, limit, offset),
        ).fetchall()
        return [dict(r) for r in rows]


def delete_run(rid: int) -> bool:
    with _conn() as conn:
        cur = conn.cursor()
        cur.execute("DELETE FROM runs WHERE id=?", (rid,))
        conn.commit()
        return cur.rowcount > 0
