from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Iterable

import duckdb

from engine.types import FetchRequest, MarkerEngine
from markers.types import MapMarkerData, ReportStatus


class DuckDBEngine(MarkerEngine):
    """
    DuckDB-backed engine over a `reports` table (one row per marker).

    Bbox filter runs in SQL with bound parameters; a zoom-aware safety limit keeps a
    zoomed-out fetch from dragging the whole table into a render.
    """

    def __init__(self, *, path: str = ":memory:", threads: int | None = None):
        self.path = path
        self._lock = threading.RLock()
        self._conn = _connect(path, threads=threads or _duckdb_threads())
        _init_schema(self._conn)

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        return self._conn

    def seed(self, markers: Iterable[MapMarkerData]) -> int:
        rows = [
            (m.id, m.latitude, m.longitude, m.severity, m.is_pending, m.status.value)
            for m in markers
        ]
        if not rows:
            return 0
        with self._lock:
            self._conn.executemany(
                "INSERT OR REPLACE INTO reports VALUES (?, ?, ?, ?, ?, ?)", rows
            )
        return len(rows)

    def fetch(self, request: FetchRequest) -> list[MapMarkerData]:
        b = request.bounds.normalized()
        with self._lock:
            rows = self._conn.execute(
                """
                SELECT id, latitude, longitude, severity, is_pending, status
                FROM reports
                WHERE latitude >= ? AND latitude <= ? AND longitude >= ? AND longitude <= ?
                ORDER BY id
                LIMIT ?
                """,
                (b.min_lat, b.max_lat, b.min_lng, b.max_lng, safety_limit(request.zoom)),
            ).fetchall()
        return [
            MapMarkerData(
                id=str(rid),
                latitude=float(lat),
                longitude=float(lng),
                severity=int(severity or 0),
                is_pending=bool(is_pending),
                status=ReportStatus.parse(status),
            )
            for rid, lat, lng, severity, is_pending, status in rows
        ]

    def close(self) -> None:
        with self._lock:
            self._conn.close()


def safety_limit(zoom: int) -> int:
    z = int(zoom)
    if z <= 5:
        return 5_000
    if z <= 9:
        return 10_000
    return 20_000


def _duckdb_threads() -> int:
    raw = (os.getenv("REPORTMAP_DUCKDB_THREADS") or "").strip()
    if raw:
        try:
            return max(1, int(raw))
        except ValueError:
            pass
    return max(1, int(os.cpu_count() or 1))


def _connect(path: str, *, threads: int) -> duckdb.DuckDBPyConnection:
    if path != ":memory:":
        p = Path(path)
        if p.parent and str(p.parent) not in {".", ""}:
            p.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(database=path, read_only=False, config={"threads": int(threads)})


def _init_schema(conn: duckdb.DuckDBPyConnection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS reports (
          id TEXT PRIMARY KEY,
          latitude DOUBLE,
          longitude DOUBLE,
          severity INTEGER,
          is_pending BOOLEAN,
          status TEXT
        );
        """
    )
