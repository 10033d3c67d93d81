"""
Challenge catalogue and per-user challenge progress.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends

from flourish.auth import AuthenticatedUser, require_user
from flourish.db import DbClient
from flourish.dependencies import get_clock, get_db_client
from flourish.errors import BadRequestError, ConflictError, NotFoundError, success
from flourish.records import (
    USER_CHALLENGE_ACTIVE,
    USER_CHALLENGE_COMPLETED,
    ActivityRecord,
    ChallengeRecord,
    UserChallengeRecord,
    WinRecord,
    to_iso,
)
from flourish.schemas import CompleteChallengePayload, StartChallengePayload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/challenges", tags=["challenges"])

# Used when a completed challenge has since been removed from the catalogue.
MISSING_CHALLENGE = ChallengeRecord(id="", title="Challenge")


def _progress_view(uc: Optional[UserChallengeRecord]) -> Optional[dict]:
    if uc is None:
        return None
    return {
        "status": uc.status,
        "progress": uc.progress,
        "startedAt": uc.started_at,
        "completedAt": uc.completed_at,
        "userChallengeId": uc.id,
    }


@router.get("")
def list_challenges(
    user: AuthenticatedUser = Depends(require_user),
    db: DbClient = Depends(get_db_client),
):
    progress_by_challenge = {}
    for uc in db.list_user_challenges(user.id):
        progress_by_challenge.setdefault(uc.challenge_id, uc)

    challenges = []
    for challenge in db.list_challenges():
        item = challenge.as_dict()
        item["locked"] = bool(challenge.is_premium and not user.has_premium)
        item["userProgress"] = _progress_view(progress_by_challenge.get(challenge.id))
        challenges.append(item)
    return success({"challenges": challenges})


@router.post("/start", status_code=201)
def start_challenge(
    payload: Optional[StartChallengePayload] = None,
    user: AuthenticatedUser = Depends(require_user),
    db: DbClient = Depends(get_db_client),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Start a challenge. A previous completed or abandoned attempt is replaced
    by a fresh one.
    """
    payload = payload or StartChallengePayload()
    if not payload.challenge_id:
        raise BadRequestError("challengeId is required")

    challenge = db.get_challenge(payload.challenge_id)
    if not challenge:
        raise NotFoundError("Challenge")

    existing = db.find_user_challenge(user.id, challenge.id)
    if existing:
        if existing.status == USER_CHALLENGE_ACTIVE:
            raise ConflictError("You've already started this challenge!")
        db.delete_user_challenge(user.id, existing.id)

    now = to_iso(clock())
    user_challenge = db.add_user_challenge(
        UserChallengeRecord(
            user_id=user.id,
            challenge_id=challenge.id,
            status=USER_CHALLENGE_ACTIVE,
            progress=0,
            started_at=now,
            completed_at=None,
        )
    )
    db.log_activity(
        ActivityRecord(
            user_id=user.id,
            action="challenge_started",
            metadata={"challenge_id": challenge.id, "title": challenge.title},
            created_at=now,
        )
    )
    return success(
        {
            "userChallenge": user_challenge.as_dict(),
            "challenge": challenge.as_dict(),
            "message": f'You\'ve started "{challenge.title}"! 🌱',
        }
    )


@router.post("/complete")
def complete_challenge(
    payload: Optional[CompleteChallengePayload] = None,
    user: AuthenticatedUser = Depends(require_user),
    db: DbClient = Depends(get_db_client),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Mark an active challenge as completed and log a zero-value win for it.
    """
    payload = payload or CompleteChallengePayload()
    if not payload.user_challenge_id:
        raise BadRequestError("userChallengeId is required")

    user_challenge = db.get_user_challenge(user.id, payload.user_challenge_id)
    if not user_challenge:
        raise NotFoundError("Challenge progress")
    if user_challenge.status == USER_CHALLENGE_COMPLETED:
        raise ConflictError("This challenge is already completed! 🎉")
    if user_challenge.status != USER_CHALLENGE_ACTIVE:
        raise BadRequestError("This challenge is not active")

    challenge = db.get_challenge(user_challenge.challenge_id)
    if challenge is None:
        logger.warning("Completed challenge %s is not in the catalogue", user_challenge.challenge_id)
        challenge = MISSING_CHALLENGE
    reward_emoji = challenge.reward_emoji or "🏆"

    now = to_iso(clock())
    completion = {
        "status": USER_CHALLENGE_COMPLETED,
        "progress": 100,
        "completed_at": now,
    }
    db.update_user_challenge(user.id, user_challenge.id, completion)
    updated = UserChallengeRecord(**{**user_challenge.as_dict(), **completion})

    win = db.add_win(
        WinRecord(
            user_id=user.id,
            title=f"Completed: {challenge.title}",
            description=challenge.reward_description or "Challenge completed!",
            amount_saved=0,
            category="challenge",
            emoji=reward_emoji,
            created_at=now,
        )
    )
    db.log_activity(
        ActivityRecord(
            user_id=user.id,
            action="challenge_completed",
            metadata={
                "challenge_id": user_challenge.challenge_id,
                "title": challenge.title,
                "duration_days": challenge.duration_days,
            },
            created_at=now,
        )
    )
    return success(
        {
            "userChallenge": updated.as_dict(),
            "win": win.as_dict(),
            "message": f'Amazing! You completed "{challenge.title}"! {reward_emoji}',
        }
    )
