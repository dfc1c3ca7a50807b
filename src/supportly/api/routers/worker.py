"""Worker routes (APP_ROLE=worker): health plus the integration task handlers."""

from fastapi import APIRouter

from supportly.api.routes import tasks_bots, tasks_contacts

router = APIRouter()
router.include_router(tasks_bots.router)
router.include_router(tasks_contacts.router)


@router.get("/tasks/health")
def tasks_health() -> dict:
    """Tasks subsystem health check."""
    return {"status": "ok", "subsystem": "tasks"}
