"""Health and readiness routes."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from agentdock.context import AppContext, get_context
from agentdock.errors import ConfigError

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz() -> dict[str, bool]:
    return {"ok": True}


@router.get("/readyz")
async def readyz(context: AppContext = Depends(get_context)) -> JSONResponse:  # noqa: B008
    try:
        await context.config_store.aload()
    except ConfigError as exc:
        return JSONResponse({"ok": False, "config": str(exc)}, status_code=503)
    return JSONResponse(
        {
            "ok": True,
            "config": str(context.config_store.path),
            "composio": await context.integration_enabled(),
        }
    )
