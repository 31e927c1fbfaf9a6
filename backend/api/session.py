from __future__ import annotations

import threading
from dataclasses import dataclass
from functools import lru_cache

from engine.duckdb import DuckDBEngine
from engine.in_memory import InMemoryEngine
from engine.types import MarkerEngine
from geo.index import bounded_cache_put
from markers.loaders import load_markers
from render.heatmap import HeatmapRenderer
from render.renderer import MarkerRenderer
from render.tap import MapTapHandler
from settings.registry import duckdb_path, engine_name, get_settings, markers_path
from surface.style import StyleSurface
from viewport.controller import ViewportController

MAX_SESSIONS = 256


@dataclass
class MapSession:
    """
    Everything one map screen owns: surface, renderers, tap handler and controller.
    """

    session_id: str
    surface: StyleSurface
    renderer: MarkerRenderer
    tap_handler: MapTapHandler
    heatmap: HeatmapRenderer
    controller: ViewportController


_sessions: dict[str, MapSession] = {}
_sessions_lock = threading.RLock()


@lru_cache(maxsize=2)
def get_engine(name: str) -> MarkerEngine:
    path = markers_path()
    markers = load_markers(path) if path is not None else []
    if name == "duckdb":
        engine = DuckDBEngine(path=duckdb_path())
        engine.seed(markers)
        return engine
    return InMemoryEngine(markers)


def default_engine() -> MarkerEngine:
    return get_engine(engine_name())


def get_session(session_id: str) -> MapSession:
    sid = (session_id or "").strip() or "default"
    with _sessions_lock:
        session = _sessions.get(sid)
        if session is None:
            session = _new_session(sid)
            bounded_cache_put(_sessions, sid, session, max_items=MAX_SESSIONS)
        return session


def reset_sessions() -> None:
    with _sessions_lock:
        _sessions.clear()
    get_engine.cache_clear()


def _new_session(session_id: str) -> MapSession:
    settings = get_settings()
    surface = StyleSurface()
    renderer = MarkerRenderer(surface, settings=settings)
    tap_handler = MapTapHandler(surface, settings=settings)
    heatmap = HeatmapRenderer(surface, settings=settings)
    controller = ViewportController(
        surface=surface,
        renderer=renderer,
        tap_handler=tap_handler,
        engine=default_engine(),
        settings=settings,
        heatmap=heatmap,
    )
    return MapSession(
        session_id=session_id,
        surface=surface,
        renderer=renderer,
        tap_handler=tap_handler,
        heatmap=heatmap,
        controller=controller,
    )
