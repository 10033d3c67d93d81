"""
RevenueCat webhook receiver.

Authenticated by HMAC signature rather than a Firebase token. Once a request
is known to be genuine it is always acknowledged with 200, so RevenueCat does
not retry; the outcome is reported in the body instead.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Header, Request
from starlette.concurrency import run_in_threadpool

from flourish.billing import (
    ACTION_GRANT,
    ACTION_IGNORE,
    DEFAULT_PAID_PLAN,
    classify_event,
    grant_premium,
    product_to_plan,
    revoke_premium,
    verify_webhook_signature,
)
from flourish.config import Settings, get_settings
from flourish.db import DbClient
from flourish.dependencies import get_clock, get_db_client
from flourish.errors import BadRequestError, UnauthorizedError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

RESULT_IGNORED = "ignored"
RESULT_USER_NOT_FOUND = "user_not_found"


def _find_user_id(db: DbClient, app_user_id: str) -> Optional[str]:
    user = db.get_user(app_user_id)
    if user:
        return user.id
    user = db.find_user_by_revenuecat_id(app_user_id)
    return user.id if user else None


def apply_event(db: DbClient, event: dict, now: datetime) -> str:
    """
    Applies one RevenueCat event to the matching user.

    Returns:
        str: "ignored", "user_not_found", "grant" or "revoke".
    """
    event_type = event["type"]
    app_user_id = event["app_user_id"]
    product_id = event.get("product_id")
    logger.info("RevenueCat event %s for user %s", event_type, app_user_id)

    action = classify_event(event_type)
    if action == ACTION_IGNORE:
        logger.info("Ignoring RevenueCat event type %s", event_type)
        return RESULT_IGNORED

    user_id = _find_user_id(db, app_user_id)
    if not user_id:
        logger.error("RevenueCat user not found: %s", app_user_id)
        return RESULT_USER_NOT_FOUND

    if action == ACTION_GRANT:
        grant_premium(
            db,
            user_id,
            plan=product_to_plan(product_id) or DEFAULT_PAID_PLAN,
            revenuecat_id=app_user_id,
            event_type=event_type,
            product_id=product_id,
            now=now,
        )
    else:
        revoke_premium(
            db, user_id, event_type=event_type, product_id=product_id, now=now
        )
    return action


@router.post("/revenuecat")
async def revenuecat_webhook(
    request: Request,
    x_revenuecat_signature: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
    db: DbClient = Depends(get_db_client),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    raw_body = await request.body()
    if not verify_webhook_signature(
        raw_body, x_revenuecat_signature, settings.revenuecat_webhook_secret
    ):
        logger.error("Invalid RevenueCat webhook signature")
        raise UnauthorizedError()

    try:
        payload = json.loads(raw_body)
    except ValueError:
        raise BadRequestError("Invalid JSON body")

    event = payload.get("event") if isinstance(payload, dict) else None
    if not isinstance(event, dict) or not event.get("type") or not event.get("app_user_id"):
        raise BadRequestError("Invalid webhook payload")

    try:
        action = await run_in_threadpool(apply_event, db, event, clock())
    except Exception:
        logger.exception("RevenueCat webhook failed")
        return {"ok": True, "received": True, "error": "internal"}
    return {"ok": True, "received": True, "action": action}
