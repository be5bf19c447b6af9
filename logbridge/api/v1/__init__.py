"""API v1 router."""

from fastapi import APIRouter

from logbridge.api.v1 import events, receivers

router = APIRouter()

router.include_router(receivers.router, prefix="/receivers", tags=["Receivers"])
router.include_router(events.router, prefix="/events", tags=["Events"])
