"""
任务运行控制 API
"""
from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import Response

from ....core.config import settings
from ...executor.runner import TaskAlreadyRunningError


router = APIRouter(prefix="/api", tags=["runner"])


def _runtime(request: Request):
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(status_code=503, detail="运行时未就绪")
    return runtime


def _state(runtime) -> dict:
    runner = runtime.runner
    return {
        "running": runner.is_running,
        "paused": runner.is_paused,
        "task": runner.current_task,
    }


@router.get("/tasks")
async def list_tasks(request: Request):
    runtime = _runtime(request)
    return {"tasks": list(runtime.tasks.keys()), **_state(runtime)}


@router.post("/tasks/{name}/run")
async def run_task(name: str, request: Request):
    runtime = _runtime(request)
    descriptor = runtime.tasks.get(name)
    if descriptor is None:
        raise HTTPException(status_code=404, detail=f"未知任务: {name}")
    try:
        runtime.runner.start(descriptor.create())
    except TaskAlreadyRunningError:
        raise HTTPException(status_code=409, detail="已有任务在运行")
    return _state(runtime)


@router.get("/runner/state")
async def runner_state(request: Request):
    """运行状态 + 预览刷新间隔（供前端轮询 /api/preview）。"""
    return {**_state(_runtime(request)), "preview_interval_ms": settings.preview_interval_ms}


@router.post("/runner/stop")
async def stop(request: Request):
    runtime = _runtime(request)
    runtime.runner.stop()
    return _state(runtime)


@router.post("/runner/pause")
async def pause(request: Request):
    runtime = _runtime(request)
    runtime.runner.pause()
    return _state(runtime)


@router.post("/runner/resume")
async def resume(request: Request):
    runtime = _runtime(request)
    runtime.runner.resume()
    return _state(runtime)


@router.post("/runner/toggle")
async def toggle(request: Request):
    runtime = _runtime(request)
    runtime.runner.toggle_pause()
    return _state(runtime)


@router.get("/logs")
async def logs(
    request: Request,
    limit: int = Query(100, ge=0, le=500),
    after: int = Query(0, ge=0),
):
    runtime = _runtime(request)
    entries = runtime.log_store.entries(limit=limit, after=after)
    return {
        "entries": [
            {"seq": e.seq, "level": e.level, "line": e.line} for e in entries
        ]
    }


@router.get("/preview")
async def preview(request: Request):
    """最近一次截图（PNG）。"""
    capture = _runtime(request).api.latest_capture
    if capture is None:
        raise HTTPException(status_code=404, detail="暂无截图")
    return Response(
        content=capture.png_bytes,
        media_type="image/png",
        headers={"X-Captured-At": capture.captured_at.isoformat()},
    )
