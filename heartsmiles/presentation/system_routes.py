"""Service-level endpoints: API index, health check and favicon."""

from datetime import UTC, datetime
from typing import Any, Final

from fastapi import APIRouter, Request, Response, status

from ..constants import APP_DESCRIPTION, APP_NAME, APP_VERSION, HEALTH_PATH

router: Final = APIRouter(tags=["system"])

ENDPOINTS: Final = {
    "health": HEALTH_PATH,
    "auth": "/api/auth",
    "participants": "/api/participants",
    "programs": "/api/programs",
    "staff": "/api/staff",
    "upload": "/api/upload",
    "export": "/api/export",
    "import": "/api/import",
}


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


@router.get("/", summary="API index")
async def api_index() -> dict[str, Any]:
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "status": "OK",
        "message": APP_DESCRIPTION,
        "endpoints": ENDPOINTS,
        "timestamp": _timestamp(),
    }


@router.get(HEALTH_PATH, summary="Health check")
async def api_health(request: Request) -> dict[str, Any]:
    """Report liveness. Always 200; degraded startup shows up under ``checks``."""
    report = request.app.state.startup_report
    return {
        "status": "OK",
        "message": f"{APP_NAME} is running",
        "timestamp": _timestamp(),
        "checks": report.as_dict(),
    }


@router.get("/favicon.ico", include_in_schema=False)
@router.get("/favicon.png", include_in_schema=False)
async def favicon() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT)
