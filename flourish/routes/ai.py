"""
AI generation endpoints: smart swaps, meal plans, goal plans and chat.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends

from flourish.auth import AuthenticatedUser, require_premium, require_user
from flourish.db import DbClient
from flourish.dependencies import get_clock, get_db_client, get_generator
from flourish.errors import BadRequestError, success
from flourish.generation import AiResponseGenerator, build_user_context, format_amount
from flourish.models import mock_responses, prompts
from flourish.schemas import (
    ChatPayload,
    ChatResponse,
    GoalPayload,
    GoalResponse,
    MealPlanPayload,
    MealPlanResponse,
    SmartSwapPayload,
    SmartSwapResponse,
)

router = APIRouter(prefix="/ai", tags=["ai"])

DEFAULT_MEAL_PLAN_DAYS = 3
DEFAULT_MEAL_PLAN_BUDGET = 30
DEFAULT_MEAL_PLAN_PEOPLE = 2
CHAT_RECENT_WINS = 5


@router.post("/smart-swap")
def smart_swap(
    payload: Optional[SmartSwapPayload] = None,
    user: AuthenticatedUser = Depends(require_premium),
    db: DbClient = Depends(get_db_client),
    generator: AiResponseGenerator = Depends(get_generator),
):
    payload = payload or SmartSwapPayload()
    if not payload.item:
        raise BadRequestError('item is required (e.g. "branded cereal")')

    budget_context = (
        f"My weekly budget is £{format_amount(payload.budget)}." if payload.budget else ""
    )
    result = generator.generate(
        user_id=user.id,
        endpoint="smart-swap",
        system_prompt=prompts.SMART_SWAP_PROMPT,
        user_prompt=f"I usually buy: {payload.item}. {budget_context} What are some cheaper alternatives?",
        profile=db.get_profile(user.id),
        mock_response=mock_responses.SMART_SWAP_MOCK,
        response_schema=SmartSwapResponse,
    )
    generator.log_usage(user.id, "smart-swap", result.cached)
    return success(result.data)


@router.post("/meal-plan")
def meal_plan(
    payload: Optional[MealPlanPayload] = None,
    user: AuthenticatedUser = Depends(require_user),
    db: DbClient = Depends(get_db_client),
    generator: AiResponseGenerator = Depends(get_generator),
):
    payload = payload or MealPlanPayload()
    days = DEFAULT_MEAL_PLAN_DAYS if payload.days is None else payload.days
    budget = DEFAULT_MEAL_PLAN_BUDGET if payload.budget is None else payload.budget
    num_people = DEFAULT_MEAL_PLAN_PEOPLE if payload.num_people is None else payload.num_people
    if days < 1 or days > 7:
        raise BadRequestError("days must be between 1 and 7")

    dietary = (
        f"Dietary preferences: {', '.join(payload.dietary_preferences)}."
        if payload.dietary_preferences
        else ""
    )
    result = generator.generate(
        user_id=user.id,
        endpoint="meal-plan",
        system_prompt=prompts.MEAL_PLAN_PROMPT,
        user_prompt=(
            f"Create a {days}-day meal plan for {num_people} people with a budget "
            f"of £{format_amount(budget)}. {dietary}"
        ),
        profile=db.get_profile(user.id),
        mock_response=mock_responses.MEAL_PLAN_MOCK,
        response_schema=MealPlanResponse,
    )
    generator.log_usage(user.id, "meal-plan", result.cached)
    return success(result.data)


@router.post("/goal")
def goal(
    payload: Optional[GoalPayload] = None,
    user: AuthenticatedUser = Depends(require_premium),
    db: DbClient = Depends(get_db_client),
    generator: AiResponseGenerator = Depends(get_generator),
):
    payload = payload or GoalPayload()
    if not payload.goal_amount or not payload.goal_label or not payload.timeframe_months:
        raise BadRequestError("goalAmount, goalLabel, and timeframeMonths are required")
    if payload.goal_amount <= 0 or payload.timeframe_months <= 0:
        raise BadRequestError("goalAmount and timeframeMonths must be positive")

    current = (
        f" I've already saved £{format_amount(payload.current_savings)}."
        if payload.current_savings
        else ""
    )
    result = generator.generate(
        user_id=user.id,
        endpoint="goal",
        system_prompt=prompts.GOAL_PROMPT,
        user_prompt=(
            f"I want to save £{format_amount(payload.goal_amount)} for "
            f'"{payload.goal_label}" in {format_amount(payload.timeframe_months)} '
            f"months.{current} What's my plan?"
        ),
        profile=db.get_profile(user.id),
        mock_response=mock_responses.GOAL_MOCK,
        response_schema=GoalResponse,
    )
    generator.log_usage(user.id, "goal", result.cached)
    return success(result.data)


def _sum_amounts(entries, entry_type: str) -> float:
    return sum(float(entry.amount) for entry in entries if entry.type == entry_type)


@router.post("/chat")
def chat(
    payload: Optional[ChatPayload] = None,
    user: AuthenticatedUser = Depends(require_premium),
    db: DbClient = Depends(get_db_client),
    generator: AiResponseGenerator = Depends(get_generator),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Conversational assistant. The prompt carries the profile, totals, recent
    wins, this month's budget entries and the conversation so far, so chat
    responses are never served from the cache.
    """
    payload = payload or ChatPayload()
    if not payload.message or not payload.message.strip():
        raise BadRequestError("message is required")

    profile = db.get_profile(user.id)
    recent_wins = db.list_wins(user.id, limit=CHAT_RECENT_WINS)
    record = db.get_user(user.id)
    month_start = clock().date().replace(day=1).isoformat()
    budget_entries = db.list_budget_entries(user.id, month_start)

    wins_context = (
        "Recent wins: "
        + ", ".join(f"{win.title} (£{format_amount(win.amount_saved)})" for win in recent_wins)
        if recent_wins
        else "No wins logged yet."
    )
    stats_context = (
        f"Total savings: £{format_amount(record.total_savings)}. "
        f"Streak: {record.streak_days} days."
        if record
        else ""
    )
    budget_context = (
        f"This month: £{format_amount(_sum_amounts(budget_entries, 'income'))} income, "
        f"£{format_amount(_sum_amounts(budget_entries, 'expense'))} spent."
        if budget_entries
        else ""
    )
    history = "\n".join(
        f"{'Mum' if turn.role == 'user' else 'Flo'}: {turn.content}"
        for turn in payload.conversation_history or []
    )
    parts = [
        prompts.CHAT_PROMPT,
        build_user_context(profile),
        stats_context,
        wins_context,
        budget_context,
        f"Previous conversation:\n{history}\n" if history else "",
        f"Mum: {payload.message}",
    ]

    result = generator.generate(
        user_id=user.id,
        endpoint="chat",
        system_prompt="\n".join(part for part in parts if part),
        user_prompt=payload.message,
        profile=profile,
        skip_cache=True,
        mock_response=mock_responses.CHAT_MOCK,
        response_schema=ChatResponse,
    )
    generator.log_usage(user.id, "chat", result.cached)
    return success(result.data)
