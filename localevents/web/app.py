from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import socketio
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, Response
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

from localevents.api import image_mime
from localevents.config import DEFAULT_HOST, DEFAULT_PORT, WEB_DIR
from localevents.exceptions import FetchError


if TYPE_CHECKING:
    import uvicorn

    from localevents.core.client import LocalEvents
    from localevents.web.gui_manager import WebGUIManager


logger = logging.getLogger("LocalEvents")

# Create FastAPI app
app = FastAPI(title="Local Events", version="1.0.0")

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Create Socket.IO server
sio = socketio.AsyncServer(
    async_mode="asgi", cors_allowed_origins="*", logger=False, engineio_logger=False
)

# Wrap with ASGI app
socket_app = socketio.ASGIApp(sio, app)

# Global references (set by __main__)
gui_manager: WebGUIManager | None = None
local_events: LocalEvents | None = None
_server_instance: uvicorn.Server | None = None


def set_managers(gui: WebGUIManager, client: LocalEvents):
    """Called by __main__ to set up references"""
    global gui_manager, local_events
    gui_manager = gui
    local_events = client
    gui.set_socketio(sio)


# Pydantic models for API
class RowConfigureRequest(BaseModel):
    index: int = Field(ge=0)


class SettingsUpdate(BaseModel):
    search: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    rows_per_page: int | None = Field(default=None, ge=1)
    connection_quality: int | None = Field(default=None, ge=1, le=6)
    cache_max_bytes: int | None = Field(default=None, ge=0)
    proxy: str | None = None


def _require_gui() -> WebGUIManager:
    if not gui_manager:
        raise HTTPException(status_code=503, detail="GUI not initialized")
    return gui_manager


def _require_client() -> LocalEvents:
    if not local_events:
        raise HTTPException(status_code=503, detail="Client not initialized")
    return local_events


# ==================== REST API Endpoints ====================


@app.get("/", response_class=HTMLResponse)
async def serve_index():
    """Serve the main web interface"""
    index_file = WEB_DIR / "index.html"
    if index_file.exists():
        return FileResponse(index_file)
    return HTMLResponse(
        content="<h1>Local Events</h1><p>Web interface files not found. Please check installation.</p>",
        status_code=500,
    )


@app.get("/api/status")
async def get_status():
    """Get current application status, including cache statistics"""
    gui = _require_gui()
    client = _require_client()
    return {**gui.status.get_state(), **client.status()}


@app.get("/api/events")
async def get_events():
    """Get the list state and its rows"""
    return _require_gui().events.get_events()


@app.post("/api/events/reload")
async def reload_events():
    """Fetch the event list again"""
    _require_client().reload()
    return {"success": True}


@app.post("/api/rows/{row_id}")
async def configure_row(row_id: str, request: RowConfigureRequest):
    """Bind a display row to the event at a list position"""
    gui = _require_gui()
    try:
        return gui.events.configure(row_id, request.index)
    except IndexError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.delete("/api/rows/{row_id}")
async def release_row(row_id: str):
    """Stop image delivery to a row that's being reused"""
    _require_gui().events.release(row_id)
    return {"success": True}


@app.get("/api/images")
async def get_image(key: str):
    """Serve the image of an event in the current list, fetching it if needed"""
    gui = _require_gui()
    client = _require_client()
    if not key.strip():
        raise HTTPException(status_code=400, detail="Invalid cache key")
    if not gui.events.has_image(key):
        # only images of listed events are fetched, never arbitrary URLs
        raise HTTPException(status_code=404, detail="Unknown image key")
    try:
        data = await client.cache.get(key)
    except FetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return Response(
        content=data,
        media_type=image_mime(data),
        headers={"Cache-Control": "private, max-age=3600"},
    )


@app.get("/api/console")
async def get_console_history():
    """Get console output history"""
    return {"lines": _require_gui().output.get_history()}


@app.get("/api/settings")
async def get_settings():
    """Get current settings"""
    return _require_gui().settings.get_settings()


@app.post("/api/settings")
async def update_settings(settings: SettingsUpdate):
    """Update application settings"""
    gui = _require_gui()
    settings_dict = settings.model_dump(exclude_unset=True)
    gui.settings.update_settings(settings_dict)
    return {"success": True, "settings": gui.settings.get_settings()}


@app.post("/api/close")
async def trigger_close():
    """Trigger application shutdown"""
    _require_client().close()
    return {"success": True}


# ==================== Socket.IO Events ====================


@sio.event
async def connect(sid, environ):
    """Client connected"""
    logger.info(f"Web client connected: {sid}")

    # Send initial state to new client
    if gui_manager:
        await sio.emit("initial_state", gui_manager.initial_state(), room=sid)


@sio.event
async def disconnect(sid):
    """Client disconnected"""
    logger.info(f"Web client disconnected: {sid}")
    if gui_manager:
        gui_manager.events.disconnect(sid)


@sio.event
async def request_reload(sid):
    """Client requested the event list to be fetched again"""
    if local_events:
        local_events.reload()


@sio.on("configure_row")
async def on_configure_row(sid, data):
    """Client row scrolled into view: bind it to the event at `index`"""
    if not gui_manager:
        return
    try:
        payload = gui_manager.events.configure(
            str(data["row_id"]), int(data["index"]), sid=sid
        )
    except (KeyError, TypeError, ValueError, IndexError) as exc:
        logger.debug(f"Rejected row configuration from {sid}: {exc!r}")
        return
    await sio.emit("row_configured", payload, to=sid)


@sio.on("release_row")
async def on_release_row(sid, data):
    """Client row is about to be reused"""
    if gui_manager and isinstance(data, dict) and "row_id" in data:
        gui_manager.events.release(str(data["row_id"]), sid=sid)


# Mount static files (CSS, JS, images)
if WEB_DIR.exists():
    static_dir = WEB_DIR / "static"
    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")


async def run_server(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT):
    """Run the web server until `shutdown_server` is called"""
    global _server_instance
    import uvicorn

    config = uvicorn.Config(socket_app, host=host, port=port, log_level="info", access_log=False)
    server = uvicorn.Server(config)
    _server_instance = server
    try:
        await server.serve()
    finally:
        _server_instance = None


async def shutdown_server():
    """Gracefully shutdown the web server"""
    if _server_instance:
        logger.info("Setting server.should_exit = True")
        _server_instance.should_exit = True
        # The uvicorn server checks should_exit periodically
        await asyncio.sleep(0.1)
