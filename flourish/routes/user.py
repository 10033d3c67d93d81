"""
User bootstrap and profile routes.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Response

from flourish.auth import (
    AuthenticatedUser,
    blank_profile,
    blank_user,
    get_token_claims,
    require_user,
)
from flourish.db import DbClient
from flourish.dependencies import get_clock, get_db_client
from flourish.errors import BadRequestError, NotFoundError, success
from flourish.records import (
    PLAN_FREE,
    USER_CHALLENGE_ACTIVE,
    ActivityRecord,
    ProfileRecord,
    to_iso,
)
from flourish.schemas import ONBOARDING_FIELDS, InitUserPayload, UpdateProfilePayload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["user"])


def _profile_view(profile: ProfileRecord) -> dict:
    return {
        "displayName": profile.display_name,
        "numKids": profile.num_kids or 0,
        "kidsAges": profile.kids_ages,
        "monthlyIncome": profile.monthly_income,
        "monthlyBudget": profile.monthly_budget,
        "savingsGoal": profile.savings_goal,
        "savingsGoalLabel": profile.savings_goal_label,
        "bio": profile.bio,
        "avatarUrl": profile.avatar_url,
        "onboardingComplete": bool(profile.onboarding_complete),
        "dietaryPreferences": profile.dietary_preferences,
    }


def _profile_response(
    db: DbClient, user: AuthenticatedUser, profile: ProfileRecord
) -> dict:
    record = db.get_user(user.id)
    has_premium = record.has_premium if record else False
    premium_plan = record.premium_plan if record else PLAN_FREE

    wins = db.list_wins(user.id)
    active_challenges = [
        uc for uc in db.list_user_challenges(user.id) if uc.status == USER_CHALLENGE_ACTIVE
    ]
    return {
        "user": {
            "id": user.id,
            "email": user.email or "",
            "hasPremium": has_premium,
            "premiumPlan": premium_plan,
            "streakDays": record.streak_days if record else 0,
            "totalSavings": record.total_savings if record else 0,
        },
        "profile": _profile_view(profile),
        "subscription": {"plan": premium_plan, "active": has_premium},
        "stats": {
            "totalWins": len(wins),
            "totalSaved": sum(win.amount_saved or 0 for win in wins),
            "activeChallenges": len(active_challenges),
        },
    }


@router.post("/init")
def init_user(
    response: Response,
    payload: Optional[InitUserPayload] = None,
    claims: dict = Depends(get_token_claims),
    db: DbClient = Depends(get_db_client),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Create the user and profile documents on first launch, or return the
    existing ones.
    """
    payload = payload or InitUserPayload()
    uid = claims["uid"]
    email = payload.email or claims.get("email") or ""
    if not email:
        raise BadRequestError("Email is required")

    existing = db.get_user(uid)
    if existing:
        profile = db.get_profile(uid)
        return success(
            {
                "user": existing.as_dict(),
                "profile": profile.as_dict() if profile else None,
                "isNew": False,
            }
        )

    now = to_iso(clock())
    user = blank_user(uid, email, now)
    profile = blank_profile(uid, payload.display_name, now)
    db.create_user(user, profile)
    db.log_activity(
        ActivityRecord(
            user_id=uid,
            action="app_open",
            metadata={"event": "first_init"},
            created_at=now,
        )
    )
    logger.info("Initialised new user %s", uid)

    response.status_code = 201
    return success({"user": user.as_dict(), "profile": profile.as_dict(), "isNew": True})


@router.get("/profile")
def get_profile(
    user: AuthenticatedUser = Depends(require_user),
    db: DbClient = Depends(get_db_client),
):
    profile = db.get_profile(user.id)
    if not profile:
        raise NotFoundError("Profile")
    return success(_profile_response(db, user, profile))


@router.put("/profile")
def update_profile(
    payload: Optional[UpdateProfilePayload] = None,
    user: AuthenticatedUser = Depends(require_user),
    db: DbClient = Depends(get_db_client),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Merge the supplied fields into the profile. Fields explicitly sent as
    null are written as null; omitted fields are left alone.
    """
    payload = payload or UpdateProfilePayload()
    provided = payload.model_fields_set
    updates = {name: getattr(payload, name) for name in sorted(provided)}

    if any(name in provided for name in ONBOARDING_FIELDS):
        updates["onboarding_complete"] = True
    if not updates:
        raise BadRequestError("No fields to update")

    now = to_iso(clock())
    updates["updated_at"] = now
    profile = db.merge_profile(user.id, updates)

    db.log_activity(
        ActivityRecord(
            user_id=user.id,
            action="profile_updated",
            metadata={"fields": list(updates.keys())},
            created_at=now,
        )
    )
    return success(_profile_response(db, user, profile))
