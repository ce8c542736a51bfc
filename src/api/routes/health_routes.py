"""
Health check route - public, no authentication required.
"""
from fastapi import APIRouter, Request

router = APIRouter()


@router.get(
    "",
    summary="System health check",
)
async def health_check(request: Request):
    """
    Check system health status.

    Reports which components are wired and how many conversations are live.
    """
    state = request.app.state
    health = {
        "status": "healthy",
        "service": "Live Session Reporter",
        "version": "1.0.0",
        "components": {},
    }

    dispatcher = getattr(state, "dispatcher", None)
    if dispatcher is None:
        health["components"]["dispatcher"] = "unavailable"
        health["status"] = "degraded"
    else:
        health["components"]["dispatcher"] = "ok"
        health["active_conversations"] = len(dispatcher.store)

    host_db = getattr(state, "host_db", None)
    health["components"]["database"] = "ok" if host_db is not None else "unavailable"

    ocr_engine = getattr(dispatcher.pipeline, "ocr_engine", None) if dispatcher else None
    health["components"]["ocr"] = "available" if ocr_engine is not None else "unavailable"

    health["pending_tasks"] = len(getattr(state, "background_tasks", ()))
    return health
