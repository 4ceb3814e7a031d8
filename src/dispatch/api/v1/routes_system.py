from fastapi import APIRouter

from src.dispatch.infra.db.bootstrap import database_ready

router = APIRouter(prefix="", tags=["system"])


@router.get("/health")
def health_check_v1() -> dict:
    """API v1 health endpoint, including a database round trip."""
    return {"status": "ok", "version": "v1", "database": database_ready()}
