"""
Savings "wins": logging, listing and the summary dashboard.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Query

from flourish.auth import AuthenticatedUser, require_user
from flourish.db import DbClient
from flourish.dependencies import get_clock, get_db_client
from flourish.errors import BadRequestError, success
from flourish.records import WIN_CATEGORIES, ActivityRecord, WinRecord, from_iso, to_iso
from flourish.schemas import CreateWinPayload

router = APIRouter(prefix="/wins", tags=["wins"])

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
RECENT_WINS = 5
DEFAULT_WIN_EMOJI = "🎉"


def _round_money(value: float) -> float:
    # Halves round up, not to even.
    return math.floor(value * 100 + 0.5) / 100


def _total(wins: list[WinRecord]) -> float:
    return sum(float(win.amount_saved or 0) for win in wins)


@router.post("", status_code=201)
def create_win(
    payload: Optional[CreateWinPayload] = None,
    user: AuthenticatedUser = Depends(require_user),
    db: DbClient = Depends(get_db_client),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    payload = payload or CreateWinPayload()
    if not payload.title or payload.amount_saved is None or not payload.category:
        raise BadRequestError("title, amountSaved, and category are required")
    if payload.category not in WIN_CATEGORIES:
        raise BadRequestError(f"category must be one of: {', '.join(WIN_CATEGORIES)}")

    now = to_iso(clock())
    win = db.add_win(
        WinRecord(
            user_id=user.id,
            title=payload.title,
            description=payload.description,
            amount_saved=payload.amount_saved,
            category=payload.category,
            emoji=payload.emoji or DEFAULT_WIN_EMOJI,
            created_at=now,
        )
    )
    db.add_to_user_savings(user.id, payload.amount_saved, now)
    db.log_activity(
        ActivityRecord(
            user_id=user.id,
            action="win_logged",
            metadata={
                "win_id": win.id,
                "category": win.category,
                "amount": win.amount_saved,
            },
            created_at=now,
        )
    )
    return success({"win": win.as_dict()})


@router.get("")
def list_wins(
    limit: Optional[int] = Query(default=None),
    offset: Optional[int] = Query(default=None),
    category: Optional[str] = Query(default=None),
    user: AuthenticatedUser = Depends(require_user),
    db: DbClient = Depends(get_db_client),
):
    """Newest first. A missing or zero limit means the default page size."""
    limit = min(limit or DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)
    if limit < 1:
        raise BadRequestError("limit must be positive")
    offset = max(offset or 0, 0)
    category = category or None

    wins = db.list_wins(user.id, category=category, limit=limit, offset=offset)
    return success(
        {
            "wins": [win.as_dict() for win in wins],
            "total": db.count_wins(user.id, category),
            "limit": limit,
            "offset": offset,
        }
    )


@router.get("/summary")
def wins_summary(
    user: AuthenticatedUser = Depends(require_user),
    db: DbClient = Depends(get_db_client),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    wins = db.list_wins(user.id)

    now = clock()
    week_ago = now - timedelta(days=7)
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    this_week = [win for win in wins if from_iso(win.created_at) >= week_ago]
    this_month = [win for win in wins if from_iso(win.created_at) >= month_start]

    by_category = {}
    for category in WIN_CATEGORIES:
        category_wins = [win for win in wins if win.category == category]
        by_category[category] = {
            "count": len(category_wins),
            "total": _round_money(_total(category_wins)),
        }

    record = db.get_user(user.id)
    return success(
        {
            "totalSaved": _round_money(_total(wins)),
            "winCount": len(wins),
            "streakDays": record.streak_days if record else 0,
            "thisWeek": _round_money(_total(this_week)),
            "thisMonth": _round_money(_total(this_month)),
            "byCategory": by_category,
            "recentWins": [win.as_dict() for win in wins[:RECENT_WINS]],
        }
    )
