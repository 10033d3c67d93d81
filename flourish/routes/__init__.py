"""
HTTP routes for the Flourish API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends

from flourish.dependencies import get_clock
from flourish.records import to_iso
from flourish.routes import admin, ai, challenges, user, webhooks, wins

SERVICE_NAME = "flourish-api"

router = APIRouter()


@router.get("/health")
def health(clock: Callable[[], datetime] = Depends(get_clock)):
    return {"ok": True, "service": SERVICE_NAME, "timestamp": to_iso(clock())}


router.include_router(user.router)
router.include_router(wins.router)
router.include_router(challenges.router)
router.include_router(admin.router)
router.include_router(ai.router)
router.include_router(webhooks.router)
