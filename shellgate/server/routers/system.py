from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from shellgate import __version__
from shellgate.gateway import CommandGateway
from shellgate.server.routers.tools import get_gateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


@router.get("/health")
async def health_check(gateway: CommandGateway = Depends(get_gateway)):
    """Simple health check endpoint."""
    return {
        "status": "ok",
        "version": __version__,
        "policy": gateway.policy.describe(),
        "history_size": len(gateway.history),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
