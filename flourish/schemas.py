"""
Pydantic schemas for request bodies and generated AI responses.

Request bodies arrive with camelCase keys from the mobile app. Required-field
checks live in the route handlers so each endpoint can answer with its own
message; the models here only enforce types.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False
    )


class InitUserPayload(CamelModel):
    email: Optional[str] = None
    display_name: Optional[str] = None


class UpdateProfilePayload(CamelModel):
    display_name: Optional[str] = None
    num_kids: Optional[int] = None
    kids_ages: Optional[List[int]] = None
    monthly_income: Optional[float] = None
    monthly_budget: Optional[float] = None
    savings_goal: Optional[float] = None
    savings_goal_label: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    dietary_preferences: Optional[List[str]] = None


# Fields whose presence means the user has been through onboarding.
ONBOARDING_FIELDS = (
    "display_name",
    "num_kids",
    "monthly_budget",
    "savings_goal",
    "monthly_income",
)


class CreateWinPayload(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    amount_saved: Optional[float] = None
    category: Optional[str] = None
    emoji: Optional[str] = None


class StartChallengePayload(CamelModel):
    challenge_id: Optional[str] = None


class CompleteChallengePayload(CamelModel):
    user_challenge_id: Optional[str] = None


class SetPremiumPayload(CamelModel):
    uid: Optional[str] = None
    has_premium: Optional[bool] = None


class SmartSwapPayload(CamelModel):
    item: Optional[str] = None
    budget: Optional[float] = None


class MealPlanPayload(CamelModel):
    days: Optional[int] = None
    budget: Optional[float] = None
    num_people: Optional[int] = None
    dietary_preferences: Optional[List[str]] = None


class GoalPayload(CamelModel):
    goal_amount: Optional[float] = None
    goal_label: Optional[str] = None
    timeframe_months: Optional[float] = None
    current_savings: Optional[float] = None


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatPayload(CamelModel):
    message: Optional[str] = None
    conversation_history: Optional[List[ChatTurn]] = None


# Generated responses. Field names match the JSON the prompts ask for; numbers
# are accepted wherever the prompt asks for a display string.


class GeneratedModel(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)


class Swap(GeneratedModel):
    name: str
    estimatedSaving: str
    reason: str
    emoji: str


class SmartSwapResponse(GeneratedModel):
    original: str
    swaps: List[Swap]
    totalEstimatedSaving: str
    tip: str


class MealItem(GeneratedModel):
    name: str
    estimatedCost: str
    emoji: str


class Meals(GeneratedModel):
    breakfast: MealItem
    lunch: MealItem
    dinner: MealItem
    snack: MealItem


class MealPlanDay(GeneratedModel):
    day: str
    meals: Meals


class ShoppingItem(GeneratedModel):
    item: str
    estimatedCost: str


class MealPlanResponse(GeneratedModel):
    days: List[MealPlanDay]
    shoppingList: List[ShoppingItem]
    totalEstimatedCost: str
    tips: List[str]


class GoalStrategy(GeneratedModel):
    title: str
    description: str
    potentialSaving: str
    emoji: str


class GoalMilestone(GeneratedModel):
    month: int
    amount: str
    celebration: str


class GoalResponse(GeneratedModel):
    monthlyTarget: str
    weeklyTarget: str
    dailyTarget: str
    strategies: List[GoalStrategy]
    milestones: List[GoalMilestone]
    encouragement: str


class ChatResponse(GeneratedModel):
    reply: str
    suggestedActions: Optional[List[str]] = None
