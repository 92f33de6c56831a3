"""
Sync Router
동기화 상태/이력/헬스 체크 API
"""

from fastapi import APIRouter, Depends, Query, Request

from shared.models.responses import ApiResponse
from shared.services.sync_monitor import SyncMonitor

router = APIRouter(tags=["Health"])

SERVICE_NAME = "sheet-mirror"
SERVICE_VERSION = "1.0.0"


def get_sync_monitor(request: Request) -> SyncMonitor:
    return request.app.state.sync_monitor


@router.get("/health")
async def health_check(monitor: SyncMonitor = Depends(get_sync_monitor)):
    """동기화 이력 기반 헬스 체크"""
    health = monitor.get_health_status()
    last = health["last_sync"]
    return ApiResponse.health_check(
        service_name=SERVICE_NAME,
        version=SERVICE_VERSION,
        status=health["status"],
        message=health["message"],
        data={
            "recent_failures": health["recent_failures"],
            "last_sync": last.model_dump(mode="json") if last else None,
        },
    ).to_dict()


@router.get("/sync/stats")
async def sync_stats(monitor: SyncMonitor = Depends(get_sync_monitor)):
    stats = monitor.get_stats()
    last = stats["last_sync"]
    stats["last_sync"] = last.model_dump(mode="json") if last else None
    return ApiResponse.success("Sync statistics", stats).to_dict()


@router.get("/sync/history")
async def sync_history(
    limit: int = Query(10, ge=1, le=100), monitor: SyncMonitor = Depends(get_sync_monitor)
):
    runs = monitor.get_history(limit)
    return ApiResponse.success(
        f"{len(runs)} sync runs", {"history": [run.model_dump(mode="json") for run in runs]}
    ).to_dict()
