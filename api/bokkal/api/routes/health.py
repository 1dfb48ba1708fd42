from fastapi import APIRouter

from bokkal.core.config import get_settings

router = APIRouter()


@router.get("/")
async def root() -> dict[str, str]:
    return {"status": "ok", "service": get_settings().app_name}


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}
