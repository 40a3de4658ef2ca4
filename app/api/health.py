"""
Health check and metrics endpoints for observability.

- /health  - liveness + record store connectivity + host memory/disk stats
- /metrics - Prometheus-compatible metrics
"""

import time
from datetime import datetime, timezone
from typing import Dict, Any

import psutil
from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from app import __version__
from app.common.logging import get_logger
from app.core.errors import InfrastructureError
from .schemas import HealthStatus

logger = get_logger(__name__)
router = APIRouter()

# Track startup time for uptime calculation
_start_time = time.time()

MB = 1024 * 1024


def get_memory_health() -> Dict[str, Any]:
    """Host memory in MB."""
    mem = psutil.virtual_memory()
    return {
        "freeMemory": f"{mem.available / MB:.2f} MB",
        "totalMemory": f"{mem.total / MB:.2f} MB",
        "used_percent": round(mem.percent, 1),
    }


def get_disk_health(path: str) -> Dict[str, Any]:
    """Disk space of the volume holding `path`, in MB."""
    disk = psutil.disk_usage(path)
    return {
        "free": f"{disk.free / MB:.2f} MB",
        "total": f"{disk.total / MB:.2f} MB",
        "used_percent": round(disk.percent, 1),
    }


async def get_cache_health(cache) -> Dict[str, Any]:
    """Cache connectivity. An unreachable cache degrades, it does not fail."""
    healthy = await cache.ping()
    return {"status": "healthy" if healthy else "degraded"}


@router.get("/health", response_model=HealthStatus)
async def health_check(request: Request):
    """
    Health check endpoint.

    Returns 200 when the record store answers, 500 otherwise.
    """
    state = request.app.state
    try:
        await state.store.ping()
        disk_path = str(state.blobs.ensure_root())
        return HealthStatus(
            status="healthy",
            timestamp=datetime.now(timezone.utc).isoformat(),
            uptime_seconds=round(time.time() - _start_time, 2),
            version=__version__,
            memory=get_memory_health(),
            disk=get_disk_health(disk_path),
            cache=await get_cache_health(state.cache),
        )
    except (InfrastructureError, OSError, psutil.Error) as e:
        logger.error(f"Health check failed: {e}")
        message = e.message if isinstance(e, InfrastructureError) else "Unexpected error"
        return JSONResponse(status_code=500, content={"status": "unhealthy", "error": message})


@router.get("/metrics", response_class=Response)
async def metrics():
    """Prometheus exposition of the default registry."""
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
