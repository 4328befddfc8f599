"""Request/response endpoint for the onboarding methods."""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from agentdock.context import AppContext, get_context
from agentdock.onboarding.handlers import dispatch

router = APIRouter(tags=["rpc"])


class RpcRequest(BaseModel):
    id: str | int | None = None
    method: str
    params: dict[str, Any] = Field(default_factory=dict)


@router.post("/rpc")
async def rpc(
    request: RpcRequest,
    context: AppContext = Depends(get_context),  # noqa: B008
) -> dict[str, object]:
    response = await dispatch(request.method, request.params, context)
    ok = bool(response.get("ok"))
    return {
        "id": request.id,
        "ok": ok,
        "payload": response if ok else None,
        "error": None if ok else response.get("error"),
    }
