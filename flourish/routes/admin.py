"""
Admin helpers for demos.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends

from flourish.auth import get_token_claims
from flourish.db import DbClient
from flourish.dependencies import get_clock, get_db_client
from flourish.errors import ForbiddenError, NotFoundError, success
from flourish.records import PLAN_FREE, PLAN_HACKATHON, to_iso
from flourish.schemas import SetPremiumPayload

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/set-premium")
def set_premium(
    payload: Optional[SetPremiumPayload] = None,
    claims: dict = Depends(get_token_claims),
    db: DbClient = Depends(get_db_client),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Toggle premium for the caller's own account (hackathon plan). Defaults
    to granting.
    """
    payload = payload or SetPremiumPayload()
    uid = claims["uid"]
    target_uid = payload.uid or uid
    has_premium = True if payload.has_premium is None else payload.has_premium

    if target_uid != uid:
        raise ForbiddenError()

    user = db.update_user(
        target_uid,
        {
            "has_premium": has_premium,
            "premium_plan": PLAN_HACKATHON if has_premium else PLAN_FREE,
            "updated_at": to_iso(clock()),
        },
    )
    if user is None:
        raise NotFoundError("User")
    return success({"user": user.as_dict()})
