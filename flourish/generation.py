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

import copy
import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional, Type

from pydantic import BaseModel

from flourish.db import DbClient
from flourish.models.gemini import GeminiClient
from flourish.records import ActivityRecord, AiCacheRecord, ProfileRecord, to_iso, utc_now

logger = logging.getLogger(__name__)

CACHE_TTL = {
    "smart-swap": timedelta(hours=24),
    "meal-plan": timedelta(hours=12),
    "goal": timedelta(hours=48),
    "chat": timedelta(hours=1),
}

SOURCE_CACHE = "cache"
SOURCE_GENERATED = "generated"
SOURCE_MOCK = "mock"

NO_PROFILE_CONTEXT = "No profile data available."
EMPTY_PROFILE_CONTEXT = "No detailed profile data available."


def hash_prompt(prompt: str) -> str:
    return hashlib.sha256(prompt.encode("utf-8")).hexdigest()


def format_amount(value: Any) -> str:
    """Renders whole-number floats without a trailing `.0` (1500.0 -> "1500")."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_user_context(profile: Optional[ProfileRecord]) -> str:
    """
    Summarise the profile fields that are set, one per line.

    Args:
        profile (ProfileRecord | None): The user's profile, if one exists.

    Returns:
        str: A "User context:" block, or a placeholder sentence when nothing
        useful is known.
    """
    if profile is None:
        return NO_PROFILE_CONTEXT

    parts = []
    if profile.display_name:
        parts.append(f"Name: {profile.display_name}")
    if profile.num_kids:
        parts.append(f"Number of kids: {profile.num_kids}")
    if profile.kids_ages:
        parts.append(f"Kids ages: {', '.join(str(age) for age in profile.kids_ages)}")
    if profile.monthly_income:
        parts.append(f"Monthly income: £{format_amount(profile.monthly_income)}")
    if profile.monthly_budget:
        parts.append(f"Monthly budget: £{format_amount(profile.monthly_budget)}")
    if profile.savings_goal:
        parts.append(f"Savings goal: £{format_amount(profile.savings_goal)}")
    if profile.savings_goal_label:
        parts.append(f"Goal: {profile.savings_goal_label}")
    if profile.dietary_preferences:
        parts.append(f"Dietary preferences: {', '.join(profile.dietary_preferences)}")

    if not parts:
        return EMPTY_PROFILE_CONTEXT
    return "User context:\n" + "\n".join(parts)


def assemble_prompt(system_prompt: str, user_context: str, user_prompt: str) -> str:
    return f"{system_prompt}\n\n{user_context}\n\nUser request:\n{user_prompt}"


@dataclass
class GenerationResult:
    data: Any
    source: str

    @property
    def cached(self) -> bool:
        return self.source == SOURCE_CACHE


class AiResponseGenerator:
    """
    Cache-aside wrapper around Gemini.

    Looks up an unexpired cached response for (user, endpoint, prompt hash),
    otherwise calls the model and caches what it returns. Whenever the model
    is unavailable or its output cannot be used, the endpoint's static mock
    response is returned instead. Cache failures never reach the caller.
    """

    def __init__(
        self,
        db: DbClient,
        gemini: Optional[GeminiClient],
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.gemini = gemini
        self.clock = clock

    @property
    def available(self) -> bool:
        return self.gemini is not None

    def generate(
        self,
        *,
        user_id: str,
        endpoint: str,
        system_prompt: str,
        user_prompt: str,
        mock_response: Any,
        profile: Optional[ProfileRecord] = None,
        skip_cache: bool = False,
        response_schema: Optional[Type[BaseModel]] = None,
    ) -> GenerationResult:
        full_prompt = assemble_prompt(
            system_prompt, build_user_context(profile), user_prompt
        )
        prompt_hash = hash_prompt(full_prompt)

        if not skip_cache:
            cached = self._get_cached_response(user_id, endpoint, prompt_hash)
            if cached:
                logger.info("Cache hit for %s", endpoint)
                return GenerationResult(cached, SOURCE_CACHE)

        if self.gemini is None:
            logger.info("No Gemini client; returning mock for %s", endpoint)
            return GenerationResult(copy.deepcopy(mock_response), SOURCE_MOCK)

        try:
            text = self.gemini.generate_json(full_prompt)
            parsed = json.loads(text)
            if response_schema is not None:
                response_schema.model_validate(parsed)
        except Exception as e:
            logger.error("Generation failed for %s, falling back to mock: %s", endpoint, e)
            return GenerationResult(copy.deepcopy(mock_response), SOURCE_MOCK)

        self._cache_response(user_id, endpoint, prompt_hash, parsed)
        logger.info("Fresh response for %s", endpoint)
        return GenerationResult(parsed, SOURCE_GENERATED)

    def log_usage(self, user_id: str, endpoint: str, cached: bool) -> None:
        """Records an `ai_used` activity entry; failures are only logged."""
        try:
            self.db.log_activity(
                ActivityRecord(
                    user_id=user_id,
                    action="ai_used",
                    metadata={"endpoint": endpoint, "cached": cached},
                    created_at=to_iso(self.clock()),
                )
            )
        except Exception as e:
            logger.error("Failed to log AI usage for %s: %s", endpoint, e)

    def _get_cached_response(
        self, user_id: str, endpoint: str, prompt_hash: str
    ) -> Optional[Any]:
        try:
            return self.db.get_cached_response(
                user_id, endpoint, prompt_hash, to_iso(self.clock())
            )
        except Exception as e:
            logger.error("Cache lookup failed for %s: %s", endpoint, e)
            return None

    def _cache_response(
        self, user_id: str, endpoint: str, prompt_hash: str, response: Any
    ) -> None:
        now = self.clock()
        try:
            self.db.save_cached_response(
                AiCacheRecord(
                    user_id=user_id,
                    endpoint=endpoint,
                    prompt_hash=prompt_hash,
                    response=response,
                    created_at=to_iso(now),
                    expires_at=to_iso(now + CACHE_TTL[endpoint]),
                )
            )
        except Exception as e:
            logger.error("Failed to cache response for %s: %s", endpoint, e)
