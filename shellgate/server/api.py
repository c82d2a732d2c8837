# shellgate/server/api.py
# FastAPI transport for the gateway tools

from __future__ import annotations

import logging
from typing import Optional

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shellgate import __version__
from shellgate.errors import ErrorCode, GatewayError
from shellgate.gateway import CommandGateway, GatewayResult
from shellgate.server.routers import system, tools

logger = logging.getLogger(__name__)


def create_app(gateway: CommandGateway) -> FastAPI:
    """Build the HTTP app around an already-configured gateway."""
    app = FastAPI(
        title="shellgate",
        description="Policy-gated shell command execution",
        version=__version__,
    )
    app.state.gateway = gateway

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        logger.error(f"[API] {exc.code.value}: {exc.message}", extra={"details": exc.details})
        return JSONResponse(
            status_code=exc.http_status,
            content=exc.to_dict()
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        problems = []
        for err in exc.errors():
            field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
            problems.append(f"'{field or 'body'}': {err.get('msg', 'invalid value')}")
        error = GatewayError(
            ErrorCode.REQUEST_MALFORMED,
            "Invalid request: " + "; ".join(problems),
        )
        logger.warning(f"[API] {request.url.path}: {error.message}")
        return JSONResponse(
            status_code=422,
            content=GatewayResult.from_error(error).to_dict(),
        )

    # All tool endpoints live under /v1; /health stays unversioned.
    v1_router = APIRouter(prefix="/v1")
    v1_router.include_router(tools.router)
    app.include_router(v1_router)
    app.include_router(system.router)

    return app


def serve(gateway: CommandGateway, host: Optional[str] = None, port: Optional[int] = None):
    """Run the HTTP transport until interrupted."""
    host = host or "127.0.0.1"
    port = port or 8765
    logger.info(f"[API] Listening on http://{host}:{port}")
    uvicorn.run(create_app(gateway), host=host, port=port, log_level="info")
