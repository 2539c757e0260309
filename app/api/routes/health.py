from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.domain.services.health_check import run_health_check

router = APIRouter(tags=["health"])


@router.get("/")
async def health():
    return {"status": "ok", "message": f"{settings.USSD_APP_TITLE} USSD Running"}


@router.get("/health")
async def health_components():
    """Database and Redis probes as JSON (for monitoring tools, curl, etc.)."""
    report = await run_health_check()

    # Return 200 for healthy/degraded, 503 for fully down
    status_code = 200 if report.status != "down" else 503
    return JSONResponse(content=report.to_dict(), status_code=status_code)
