"""
Default challenge catalogue, loaded by `scripts/seed_challenges.py`.
"""

from __future__ import annotations

from datetime import datetime

from flourish.db import DbClient
from flourish.records import ChallengeRecord, to_iso

DEFAULT_CHALLENGES = [
    ChallengeRecord(
        id="seven-day-reset",
        title="7-Day Money Reset",
        description=(
            "One small step a day: audit your fridge, swap a branded item, plan a "
            "no-spend evening, prep a lunch, check your energy use, review a "
            "subscription and share your win."
        ),
        duration_days=7,
        category="saving",
        difficulty="easy",
        reward_description="A calmer week and a few extra pounds in the pot",
        reward_emoji="🌱",
        is_premium=False,
        sort_order=1,
    ),
    ChallengeRecord(
        id="no-spend-weekend",
        title="No-Spend Weekend",
        description="Plan a weekend of free family activities with nothing bought beyond essentials.",
        duration_days=2,
        category="spending",
        difficulty="easy",
        reward_description="A free weekend of family fun",
        reward_emoji="🏡",
        is_premium=False,
        sort_order=2,
    ),
    ChallengeRecord(
        id="own-brand-swap",
        title="Own-Brand Fortnight",
        description="Swap every branded item in your weekly shop for a supermarket own-brand version.",
        duration_days=14,
        category="saving",
        difficulty="medium",
        reward_description="Most families save £15-20 a week",
        reward_emoji="🛒",
        is_premium=False,
        sort_order=3,
    ),
    ChallengeRecord(
        id="batch-cook-sundays",
        title="Batch Cook Sundays",
        description="Cook one big meal every Sunday for a month to skip midweek takeaways.",
        duration_days=28,
        category="meal",
        difficulty="medium",
        reward_description="Fewer takeaway temptations",
        reward_emoji="🍳",
        is_premium=True,
        sort_order=4,
    ),
    ChallengeRecord(
        id="subscription-audit",
        title="Subscription Audit",
        description="Review every subscription and cancel the ones the family no longer uses.",
        duration_days=3,
        category="spending",
        difficulty="easy",
        reward_description="Money back every single month",
        reward_emoji="✂️",
        is_premium=True,
        sort_order=5,
    ),
    ChallengeRecord(
        id="first-isa-deposit",
        title="Your First ISA Deposit",
        description="Learn how a Stocks & Shares ISA works and make a first £5 deposit.",
        duration_days=30,
        category="investing",
        difficulty="hard",
        reward_description="Your money starts growing for you",
        reward_emoji="📈",
        is_premium=True,
        sort_order=6,
    ),
]


def seed_challenges(db: DbClient, now: datetime) -> int:
    """Writes (or overwrites) every default challenge; returns how many."""
    created_at = to_iso(now)
    for challenge in DEFAULT_CHALLENGES:
        db.save_challenge(
            ChallengeRecord(**{**challenge.as_dict(), "created_at": created_at})
        )
    return len(DEFAULT_CHALLENGES)
