from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from api.session import MapSession, default_engine, get_session
from common.logging import setup_default_logging
from engine.duckdb import DuckDBEngine
from engine.in_memory import InMemoryEngine
from markers.types import HeatmapPoint, MapMarkerData, ReportStatus
from settings.registry import log_level
from surface.types import CameraState, LngLat, ScreenPoint
from viewport.controller import LoadResult

setup_default_logging(log_level())

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ApiCenter(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)


class ApiCamera(BaseModel):
    center: ApiCenter
    zoom: float = Field(ge=0.0, le=24.0)


class ApiViewport(BaseModel):
    width: int = Field(gt=0)
    height: int = Field(gt=0)


class ApiViewportRequest(BaseModel):
    sessionId: str = "default"
    camera: ApiCamera | None = None
    viewport: ApiViewport | None = None


class ApiPoint(BaseModel):
    x: float
    y: float


class ApiTapRequest(BaseModel):
    sessionId: str = "default"
    point: ApiPoint


class ApiStyleRequest(BaseModel):
    sessionId: str = "default"
    styleUri: str


class ApiStatusFilterRequest(BaseModel):
    sessionId: str = "default"
    statuses: list[ReportStatus]


class ApiHeatmapPoint(BaseModel):
    id: str
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    weight: float = Field(ge=0.0, le=1.0)


class ApiHeatmapRequest(BaseModel):
    sessionId: str = "default"
    visible: bool
    # Omitted: derived from the currently loaded markers.
    points: list[ApiHeatmapPoint] | None = None


class ApiMarker(BaseModel):
    id: str
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    severity: int = 0
    isPending: bool = False
    status: ReportStatus = ReportStatus.pending


def _apply_camera(session: MapSession, body: ApiViewportRequest) -> None:
    # The client owns the real camera; mirror it before computing bounds.
    if body.viewport is not None:
        session.surface.set_viewport(width=body.viewport.width, height=body.viewport.height)
    if body.camera is not None:
        session.surface.jump_to(
            CameraState(
                center=LngLat(lng=body.camera.center.lng, lat=body.camera.center.lat),
                zoom=body.camera.zoom,
            )
        )


def _load_payload(session: MapSession, result: LoadResult) -> dict[str, Any]:
    return {
        "status": result.status,
        "bounds": result.bounds.to_dict() if result.bounds is not None else None,
        "zoom": result.zoom,
        "markerCount": result.marker_count,
        "rendered": result.rendered,
        "error": result.error,
        "showSearchArea": session.controller.show_search_area,
        "style": session.surface.to_style_json(),
    }


@app.put("/markers")
def put_markers(body: list[ApiMarker]):
    markers = [
        MapMarkerData(
            id=m.id,
            latitude=m.latitude,
            longitude=m.longitude,
            severity=m.severity,
            is_pending=m.isPending,
            status=m.status,
        )
        for m in body
    ]
    engine = default_engine()
    if isinstance(engine, InMemoryEngine):
        engine.replace(markers)
    elif isinstance(engine, DuckDBEngine):
        engine.seed(markers)
    else:
        raise HTTPException(status_code=501, detail="engine does not accept markers")
    return {"count": len(markers)}


@app.post("/viewport/sync")
async def viewport_sync(body: ApiViewportRequest):
    session = get_session(body.sessionId)
    _apply_camera(session, body)
    result = await session.controller.load_viewport_markers()
    return _load_payload(session, result)


@app.post("/viewport/changed")
async def viewport_changed(body: ApiViewportRequest):
    session = get_session(body.sessionId)
    _apply_camera(session, body)
    show = await session.controller.on_camera_changed()
    return {"showSearchArea": show}


@app.post("/viewport/search")
async def viewport_search(body: ApiViewportRequest):
    session = get_session(body.sessionId)
    _apply_camera(session, body)
    result = await session.controller.search_this_area()
    return _load_payload(session, result)


@app.post("/tap")
async def tap(body: ApiTapRequest):
    session = get_session(body.sessionId)
    result = await session.controller.on_tap(ScreenPoint(x=body.point.x, y=body.point.y))
    camera = session.surface.camera
    return {
        "kind": result.kind,
        "markerId": result.marker_id,
        "camera": {
            "center": {"lat": camera.center.lat, "lng": camera.center.lng},
            "zoom": camera.zoom,
        },
    }


@app.post("/style")
async def switch_style(body: ApiStyleRequest):
    session = get_session(body.sessionId)
    session.surface.set_style(body.styleUri)
    rendered = await session.controller.on_style_changed()
    return {"rendered": rendered, "style": session.surface.to_style_json()}


@app.post("/filters/status")
async def set_status_filter(body: ApiStatusFilterRequest):
    session = get_session(body.sessionId)
    rendered = await session.controller.set_visible_statuses(set(body.statuses))
    return {"rendered": rendered, "style": session.surface.to_style_json()}


@app.post("/heatmap")
async def toggle_heatmap(body: ApiHeatmapRequest):
    session = get_session(body.sessionId)
    points = None
    if body.points is not None:
        points = [
            HeatmapPoint(id=p.id, latitude=p.lat, longitude=p.lng, weight=p.weight)
            for p in body.points
        ]
    rendered = await session.controller.toggle_heatmap(body.visible, points)
    return {"rendered": rendered, "style": session.surface.to_style_json()}


@app.get("/style/{session_id}")
def get_style(session_id: str):
    return get_session(session_id).surface.to_style_json()
