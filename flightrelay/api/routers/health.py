import time
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel

from flightrelay.api.dependencies import get_registry, get_settings_dependency, get_tracker
from flightrelay.config import Settings


# Response models
class HealthResponse(BaseModel):
    status: str
    version: str
    service: str
    timestamp: float


class DetailedHealthResponse(HealthResponse):
    subscriptions: int
    tracker_running: bool
    dependencies: Dict[str, Dict[str, Any]]


# Router
router = APIRouter()


@router.get(
    "/",
    response_model=HealthResponse,
    summary="Basic health check",
    description="Returns basic health status of the service",
    status_code=status.HTTP_200_OK
)
async def get_health(settings: Settings = Depends(get_settings_dependency)):
    """
    Basic health check endpoint.

    Returns a simple health status indicating the service is running.
    """
    return {
        "status": "ok",
        "version": settings.VERSION,
        "service": settings.APP_NAME,
        "timestamp": time.time()
    }


@router.get(
    "/detailed",
    response_model=DetailedHealthResponse,
    summary="Detailed health check",
    description="Returns tracking state and which collaborators are configured",
    status_code=status.HTTP_200_OK
)
async def get_detailed_health(
    request: Request,
    settings: Settings = Depends(get_settings_dependency),
    registry=Depends(get_registry),
    tracker=Depends(get_tracker)
):
    """
    Detailed health check endpoint.

    The service is "degraded" when the tracker is not running or a
    required collaborator is unconfigured.
    """
    state = request.app.state
    dependencies = {
        "aviationstack": {"configured": bool(settings.aviation.API_KEY)},
        "twilio": {"configured": state.channel.is_configured()},
        "classifier": {
            "configured": getattr(state, "classifier", None) is not None,
            "backend": settings.classifier.BACKEND if settings.classifier.ENABLED else None
        },
    }
    tracker_running = tracker.is_running()
    healthy = tracker_running and dependencies["aviationstack"]["configured"] and dependencies["twilio"]["configured"]

    return {
        "status": "ok" if healthy else "degraded",
        "version": settings.VERSION,
        "service": settings.APP_NAME,
        "timestamp": time.time(),
        "subscriptions": len(registry),
        "tracker_running": tracker_running,
        "dependencies": dependencies
    }
