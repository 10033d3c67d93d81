"""
RevenueCat integration: event classification, webhook signatures, subscriber
lookups and the premium grant/revoke writes shared by the webhook and the
premium gate.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import requests

from flourish.db import DbClient
from flourish.records import (
    PLAN_FREE,
    ActivityRecord,
    from_iso,
    to_iso,
    utc_now,
)

logger = logging.getLogger(__name__)

REVENUECAT_API_URL = "https://api.revenuecat.com/v1"
REQUEST_TIMEOUT = 10  # seconds
PREMIUM_ENTITLEMENT = "premium"
DEFAULT_PAID_PLAN = "monthly"

PRODUCT_TO_PLAN = {
    "flourish_premium_monthly": "monthly",
    "flourish_premium_annual": "annual",
    "rc_premium_monthly_4_99": "monthly",
    "rc_premium_annual_49_99": "annual",
}

GRANT_EVENTS = frozenset(
    {"INITIAL_PURCHASE", "RENEWAL", "UNCANCELLATION", "PRODUCT_CHANGE"}
)
REVOKE_EVENTS = frozenset({"EXPIRATION", "CANCELLATION", "BILLING_ISSUE"})

ACTION_GRANT = "grant"
ACTION_REVOKE = "revoke"
ACTION_IGNORE = "ignore"


def product_to_plan(product_id: Optional[str]) -> Optional[str]:
    return PRODUCT_TO_PLAN.get(product_id or "")


def classify_event(event_type: str) -> str:
    if event_type in GRANT_EVENTS:
        return ACTION_GRANT
    if event_type in REVOKE_EVENTS:
        return ACTION_REVOKE
    return ACTION_IGNORE


def verify_webhook_signature(
    raw_body: bytes, signature: Optional[str], secret: Optional[str]
) -> bool:
    """
    Checks the HMAC-SHA256 hex digest of the raw body against the
    X-RevenueCat-Signature header. Verification is skipped when no secret is
    configured.
    """
    if not secret:
        logger.warning("No RevenueCat webhook secret configured; skipping verification")
        return True
    if not signature:
        return False
    expected = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8"))


@dataclass
class SubscriberStatus:
    has_premium: bool
    plan: str


FREE_STATUS = SubscriberStatus(has_premium=False, plan=PLAN_FREE)


class RevenueCatClient:
    """Reads subscriber entitlements from the RevenueCat REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = REVENUECAT_API_URL,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    def get_subscriber_status(
        self, app_user_id: str, now: Optional[datetime] = None
    ) -> SubscriberStatus:
        """
        Returns whether the subscriber holds an unexpired `premium`
        entitlement. Any HTTP or parsing problem is logged and reported as
        the free plan.
        """
        now = now or utc_now()
        try:
            response = self.session.get(
                f"{self.base_url}/subscribers/{app_user_id}",
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=REQUEST_TIMEOUT,
            )
            if not response.ok:
                logger.error("RevenueCat API returned %s", response.status_code)
                return FREE_STATUS
            entitlements = (response.json().get("subscriber") or {}).get(
                "entitlements"
            ) or {}
            premium = entitlements.get(PREMIUM_ENTITLEMENT)
            if not premium:
                return FREE_STATUS
            expires_date = premium.get("expires_date")
            # A null expiry is a lifetime entitlement.
            if expires_date and from_iso(expires_date) <= now:
                return FREE_STATUS
            plan = product_to_plan(premium.get("product_identifier")) or DEFAULT_PAID_PLAN
            return SubscriberStatus(has_premium=True, plan=plan)
        except (requests.RequestException, ValueError, AttributeError) as e:
            logger.error("Failed to fetch RevenueCat subscriber status: %s", e)
            return FREE_STATUS


def create_revenuecat_client(api_key: Optional[str]) -> Optional[RevenueCatClient]:
    if not api_key:
        return None
    return RevenueCatClient(api_key)


def grant_premium(
    db: DbClient,
    user_id: str,
    *,
    plan: str,
    revenuecat_id: str,
    event_type: str,
    product_id: Optional[str],
    now: datetime,
) -> None:
    timestamp = to_iso(now)
    db.update_user(
        user_id,
        {
            "has_premium": True,
            "premium_plan": plan,
            "revenuecat_id": revenuecat_id,
            "updated_at": timestamp,
        },
    )
    db.log_activity(
        ActivityRecord(
            user_id=user_id,
            action="app_open",
            metadata={
                "event": "subscription_granted",
                "type": event_type,
                "product": product_id,
                "plan": plan,
            },
            created_at=timestamp,
        )
    )
    logger.info("Granted premium (%s) to user %s", plan, user_id)


def revoke_premium(
    db: DbClient,
    user_id: str,
    *,
    event_type: str,
    product_id: Optional[str],
    now: datetime,
) -> None:
    timestamp = to_iso(now)
    db.update_user(
        user_id,
        {"has_premium": False, "premium_plan": PLAN_FREE, "updated_at": timestamp},
    )
    db.log_activity(
        ActivityRecord(
            user_id=user_id,
            action="app_open",
            metadata={
                "event": "subscription_revoked",
                "type": event_type,
                "product": product_id,
            },
            created_at=timestamp,
        )
    )
    logger.info("Revoked premium for user %s", user_id)
