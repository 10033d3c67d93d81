# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

WIN_CATEGORIES = ("swap", "meal", "budget", "challenge", "custom")
AI_ENDPOINTS = ("smart-swap", "meal-plan", "goal", "chat")

USER_CHALLENGE_ACTIVE = "active"
USER_CHALLENGE_COMPLETED = "completed"
USER_CHALLENGE_ABANDONED = "abandoned"

PLAN_FREE = "free"
PLAN_HACKATHON = "hackathon"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Millisecond precision with a Z suffix, so string order matches time order."""
    return (
        value.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def from_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class UserRecord:
    """A Flourish account, keyed by the Firebase UID."""

    id: str
    email: str = ""
    has_premium: bool = False
    premium_plan: str = PLAN_FREE
    revenuecat_id: Optional[str] = None
    streak_days: int = 0
    total_savings: float = 0
    created_at: str = ""
    updated_at: str = ""

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class ProfileRecord:
    """Onboarding and household details used to personalise AI prompts."""

    id: str
    display_name: Optional[str] = None
    num_kids: int = 0
    kids_ages: Optional[List[int]] = None
    monthly_income: Optional[float] = None
    monthly_budget: Optional[float] = None
    savings_goal: Optional[float] = None
    savings_goal_label: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    onboarding_complete: bool = False
    dietary_preferences: Optional[List[str]] = None
    created_at: str = ""
    updated_at: str = ""

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class WinRecord:
    user_id: str
    title: str
    amount_saved: float
    category: str
    description: Optional[str] = None
    emoji: str = "🎉"
    created_at: str = ""
    id: str = ""

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class ChallengeRecord:
    """An entry of the shared challenge catalogue."""

    id: str
    title: str
    description: str = ""
    duration_days: int = 0
    category: str = "saving"
    difficulty: str = "easy"
    reward_description: Optional[str] = None
    reward_emoji: str = "🏆"
    is_premium: bool = False
    sort_order: int = 0
    created_at: str = ""

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class UserChallengeRecord:
    """A user's progress through one catalogue challenge."""

    user_id: str
    challenge_id: str
    status: str = USER_CHALLENGE_ACTIVE
    progress: int = 0
    started_at: str = ""
    completed_at: Optional[str] = None
    id: str = ""

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class BudgetEntryRecord:
    user_id: str
    category: str
    amount: float
    type: str
    date: str
    description: Optional[str] = None
    created_at: str = ""
    id: str = ""

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class ActivityRecord:
    user_id: str
    action: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: str = ""
    id: str = ""

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class AiCacheRecord:
    """
    A cached generator response for (user, endpoint, prompt hash).

    Entries are never updated or swept; expiry is applied when reading.
    """

    user_id: str
    endpoint: str
    prompt_hash: str
    response: Any
    created_at: str
    expires_at: str
    id: str = ""

    def as_dict(self) -> dict:
        return asdict(self)
