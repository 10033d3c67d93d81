"""
Request authentication and the premium gate, as FastAPI dependencies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Optional

from fastapi import Depends, Header

from flourish.billing import RevenueCatClient, grant_premium
from flourish.db import DbClient
from flourish.dependencies import (
    get_billing_client,
    get_clock,
    get_db_client,
    get_token_verifier,
)
from flourish.errors import PremiumRequiredError, UnauthorizedError
from flourish.firebase import TokenVerificationError, TokenVerifier
from flourish.records import PLAN_FREE, ProfileRecord, UserRecord, to_iso

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass
class AuthenticatedUser:
    id: str
    email: str
    has_premium: bool
    premium_plan: str


def blank_user(uid: str, email: str, now: str) -> UserRecord:
    return UserRecord(id=uid, email=email, created_at=now, updated_at=now)


def blank_profile(uid: str, display_name: Optional[str], now: str) -> ProfileRecord:
    return ProfileRecord(
        id=uid, display_name=display_name, created_at=now, updated_at=now
    )


def get_token_claims(
    authorization: Optional[str] = Header(default=None),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> dict:
    """Verifies the `Authorization: Bearer <Firebase ID token>` header."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise UnauthorizedError()
    try:
        claims = verifier.verify(authorization[len(BEARER_PREFIX):])
    except TokenVerificationError as e:
        logger.warning("Token verification failed: %s", e)
        raise UnauthorizedError()
    if not claims.get("uid"):
        raise UnauthorizedError()
    return claims


def require_user(
    claims: dict = Depends(get_token_claims),
    db: DbClient = Depends(get_db_client),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AuthenticatedUser:
    """
    Resolves the caller's user document, creating the user and a blank
    profile when the app skipped /user/init.
    """
    uid = claims["uid"]
    email = claims.get("email") or ""

    user = db.get_user(uid)
    if user:
        return AuthenticatedUser(
            id=uid,
            email=user.email or email,
            has_premium=bool(user.has_premium),
            premium_plan=user.premium_plan or PLAN_FREE,
        )

    now = to_iso(clock())
    db.create_user(blank_user(uid, email, now), blank_profile(uid, None, now))
    logger.info("Lazily created user %s", uid)
    return AuthenticatedUser(
        id=uid, email=email, has_premium=False, premium_plan=PLAN_FREE
    )


def require_premium(
    user: AuthenticatedUser = Depends(require_user),
    db: DbClient = Depends(get_db_client),
    billing: Optional[RevenueCatClient] = Depends(get_billing_client),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AuthenticatedUser:
    """
    Lets premium users through. Free users are re-checked against RevenueCat
    when an API key is configured, in case the purchase webhook is late.
    """
    if user.has_premium:
        return user

    if billing is not None:
        status = billing.get_subscriber_status(user.id, now=clock())
        if status.has_premium:
            grant_premium(
                db,
                user.id,
                plan=status.plan,
                revenuecat_id=user.id,
                event_type="SUBSCRIBER_LOOKUP",
                product_id=None,
                now=clock(),
            )
            return replace(user, has_premium=True, premium_plan=status.plan)

    raise PremiumRequiredError()
