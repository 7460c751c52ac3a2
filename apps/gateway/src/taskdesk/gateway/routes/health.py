"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，探测任务存储连通性。
"""

import structlog
from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from taskdesk.core.store import StoreGroup

from ..deps import get_store_group

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(store_group: StoreGroup | None = Depends(get_store_group)):
    """Readiness 检查 -- 验证任务存储可用

    检查项：
    1. task_store: 存储后端连通性（sqlite SELECT 1 / dynamodb DescribeTable）
    """
    checks = {}
    all_ok = True
    try:
        if store_group is None:
            raise RuntimeError("store not initialized")
        await store_group.task_store.ping()
        checks["task_store"] = "ok"
    except Exception as e:
        log.warning("readiness_check_failed", check="task_store", error=str(e))
        checks["task_store"] = f"error: {str(e)}"
        all_ok = False

    status_code = 200 if all_ok else 503
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "ready" if all_ok else "not_ready",
            "backend": store_group.backend if store_group is not None else None,
            "checks": checks,
        },
    )
