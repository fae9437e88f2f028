"""Cron-triggered endpoints."""

import logging
import secrets

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from src.core.config import settings
from src.core.db_client import DatabaseError
from src.services.overdue_sweep import run_overdue_sweep


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cron", tags=["cron"])


def is_authorized_cron_request(request: Request) -> bool:
    """Require `Authorization: Bearer <CRON_SECRET>`; an unset secret refuses every call."""
    if not settings.cron_secret:
        return False
    header = request.headers.get("authorization", "")
    return secrets.compare_digest(header.encode(), f"Bearer {settings.cron_secret}".encode())


@router.get("/check-overdue")
async def check_overdue(request: Request) -> JSONResponse:
    """Email every user a digest of their overdue high-priority todos."""
    if not is_authorized_cron_request(request):
        logger.warning("cron_unauthorized", extra={"configured": bool(settings.cron_secret)})
        return JSONResponse(content={"error": "Unauthorized"}, status_code=status.HTTP_401_UNAUTHORIZED)

    try:
        result = await run_overdue_sweep()
    except DatabaseError as e:
        logger.error("cron_overdue_query_failed", extra={"error": str(e)})
        return JSONResponse(
            content={"error": "Failed to fetch todos"}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return JSONResponse(content=result.model_dump(exclude_none=True))
