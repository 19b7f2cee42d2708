from fastapi import APIRouter
from typing import Any
import logging

logger = logging.getLogger('gateway.service.routers.misc')

router = APIRouter()


@router.get("/status")
async def get_status() -> dict[str, Any]:
    """Health check endpoint."""

    status_info = {
        "status": "ok",
    }

    return status_info
