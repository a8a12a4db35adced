"""API Routes Module."""

from fastapi import APIRouter

from app.api import (
    dashboard,
    controls,
)

router = APIRouter()

router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
router.include_router(controls.router, prefix="/controls", tags=["Controls"])
