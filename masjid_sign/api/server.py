"""
FastAPI server for the admin and public API. Run with run_api_server(app) in a background thread.
Central endpoints: GET /api/tasks, GET /api/sign/state. Per-plugin routes are mounted
from masjid_sign.plugins.<package>.api (get_router(sign_app)) under /api/components/<package>/.
Docs when enabled: http://<host>:<port>/docs
"""
import importlib
import logging
import pkgutil
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict

from masjid_sign.core.models import get_all_task_schedule_records

logger = logging.getLogger(__name__)


class TaskScheduleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    task_name: str
    schedule_type: str
    schedule_config: Optional[Dict[str, Any]] = None
    next_run_at: Optional[datetime] = None
    last_run_at: Optional[datetime] = None
    last_error: Optional[str] = None


def _serialize_datetime(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def serialize_state(state: Any) -> Dict[str, Any]:
    """JSON view of a SignState."""
    def occurrence(value):
        if value is None:
            return None
        return {
            "name": value.name,
            "at": value.at.isoformat(),
            "formatted_time": value.formatted_time,
            "countdown": value.countdown,
        }

    overlay = None
    if state.overlay is not None:
        overlay = {
            "channel": state.overlay.channel.value,
            "title": state.overlay.title,
            "message": state.overlay.message,
            "hide_at": state.overlay.hide_at.isoformat(),
        }
    view = {"kind": state.view.kind.value}
    if state.view.announcement:
        view["announcement_id"] = state.view.announcement.get("id")
    return {
        "now": state.now.isoformat(),
        "next_prayer": occurrence(state.resolution.next),
        "one_hour_before": occurrence(state.resolution.one_hour_before),
        "downtime": state.downtime,
        "view": view,
        "view_index": state.view_index,
        "view_count": state.view_count,
        "overlay": overlay,
    }


def _mount_plugin_routers(app: FastAPI, sign_app: Any) -> None:
    try:
        plugins_pkg = importlib.import_module("masjid_sign.plugins")
        for _mod, name, is_pkg in pkgutil.iter_modules(plugins_pkg.__path__):
            if not is_pkg:
                continue
            try:
                api_module = importlib.import_module(f"masjid_sign.plugins.{name}.api")
            except ImportError as e:
                logger.debug(f"Plugin {name} has no API: {e}")
                continue
            if not callable(getattr(api_module, "get_router", None)):
                continue
            try:
                router = api_module.get_router(sign_app)
                if router is not None:
                    app.include_router(router, prefix=f"/api/components/{name}")
            except Exception as e:
                logger.warning(f"Failed to mount API router for plugin {name}: {e}", exc_info=True)
    except Exception as e:
        logger.warning(f"Plugin API discovery failed: {e}", exc_info=True)


def create_app(sign_app: Any) -> FastAPI:
    """Create FastAPI app with routes that use the given SignApp (or any object with .config)."""
    app = FastAPI(title="Masjid Sign API", description="Sign state, poll tasks, and admin data")

    @app.get("/api/tasks")
    def list_tasks() -> Dict[str, Any]:
        """Poll schedules from the DB and active in-memory timers."""
        db_schedules = [
            TaskScheduleResponse.model_validate(row).model_dump(mode="json")
            for row in get_all_task_schedule_records()
        ]
        active_list: List[Dict[str, Any]] = []
        task_manager = getattr(sign_app, "task_manager", None)
        if task_manager is not None:
            active_list = [
                {"name": t["name"], "next_run_at": _serialize_datetime(t["next_run_at"])}
                for t in task_manager.get_active_timers()
            ]
        return {"db_schedules": db_schedules, "active_timers": active_list}

    @app.get("/api/sign/state")
    def sign_state() -> Dict[str, Any]:
        """Most recent engine tick."""
        state = getattr(sign_app, "last_state", None)
        if state is None:
            raise HTTPException(status_code=503, detail="Sign has not ticked yet")
        return serialize_state(state)

    _mount_plugin_routers(app, sign_app)

    storage = sign_app.config.data.get("storage") or {}
    if storage.get("directory"):
        try:
            app.mount("/files", StaticFiles(directory=storage["directory"], check_dir=False), name="files")
        except Exception as e:
            logger.warning(f"Uploaded files will not be served: {e}")

    return app


def run_api_server(sign_app: Any) -> None:
    """
    Start the API server in a daemon thread if api.enabled is true.
    Reads api.host (default 127.0.0.1) and api.port (default 8765) from config.
    """
    api_config = sign_app.config.data.get("api") or {}
    if not api_config.get("enabled", False):
        logger.info("API server not started: set api.enabled to true in your config file to enable.")
        return
    host = api_config.get("host", "127.0.0.1")
    port = int(api_config.get("port", 8765))
    fastapi_app = create_app(sign_app)

    def run_uvicorn():
        try:
            import uvicorn
            logger.info(f"API server listening at http://{host}:{port} (docs at /docs)")
            uvicorn.run(fastapi_app, host=host, port=port, log_config=None)
        except Exception as e:
            logger.exception(f"API server thread failed: {e}")

    thread = threading.Thread(target=run_uvicorn, daemon=True)
    thread.start()
    logger.info("API server thread started.")
