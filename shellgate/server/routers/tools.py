from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field, StrictFloat, StrictInt, StrictStr

from shellgate.gateway import CommandGateway
from shellgate.server.catalog import TOOLS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tools", tags=["tools"])


class ExecuteCommandRequest(BaseModel):
    command: StrictStr
    shell: Optional[StrictStr] = None


class ListRecentRequest(BaseModel):
    # Any JSON number; the gateway truncates it and rejects non-finite values.
    limit: Optional[Union[StrictInt, StrictFloat]] = Field(None, description="Maximum number of commands to return")


class TextContent(BaseModel):
    type: str = "text"
    text: str


class ToolResult(BaseModel):
    content: List[TextContent]
    isError: bool = False


def get_gateway(request: Request) -> CommandGateway:
    return request.app.state.gateway


@router.get("")
async def list_tools() -> Dict[str, Any]:
    """Tool catalog: names, descriptions and parameters."""
    return {"tools": TOOLS}


@router.post("/execute_command", response_model=ToolResult)
async def execute_command(req: ExecuteCommandRequest, gateway: CommandGateway = Depends(get_gateway)):
    """
    Run a command if its base command is allowlisted.

    A refused command comes back with isError set. A command that ran and
    failed is a normal result; the exit code is in the text.
    """
    result = await gateway.execute(req.command, req.shell)
    return result.to_dict()


@router.post("/list_recent_commands", response_model=ToolResult)
async def list_recent_commands(
    req: Optional[ListRecentRequest] = None,
    gateway: CommandGateway = Depends(get_gateway),
):
    limit = req.limit if req is not None else None
    return gateway.list_recent(limit).to_dict()


@router.post("/list_allowed_commands", response_model=ToolResult)
async def list_allowed_commands(gateway: CommandGateway = Depends(get_gateway)):
    return gateway.list_allowed().to_dict()
