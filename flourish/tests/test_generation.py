import json
import unittest
from datetime import datetime, timedelta, timezone
from unittest import mock

from flourish.db import InMemoryDbClient
from flourish.generation import (
    AiResponseGenerator,
    assemble_prompt,
    build_user_context,
    hash_prompt,
)
from flourish.models.gemini import create_client
from flourish.models.mock_responses import SMART_SWAP_MOCK
from flourish.records import ProfileRecord
from flourish.schemas import SmartSwapResponse

GENERATED_SWAP = {
    "original": "oat milk",
    "swaps": [
        {
            "name": "Lidl oat drink",
            "estimatedSaving": "£0.60/week",
            "reason": "Same oats, less branding",
            "emoji": "🥛",
        }
    ],
    "totalEstimatedSaving": "£2.60/month",
    "tip": "Buy two when on offer.",
}


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class AiResponseGeneratorTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.gemini = mock.Mock()
        self.gemini.generate_json.return_value = json.dumps(GENERATED_SWAP)
        self.clock = FakeClock(datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc))
        self.generator = AiResponseGenerator(self.db, self.gemini, self.clock)

    def _generate(self, user_id="user-1", **overrides):
        kwargs = dict(
            user_id=user_id,
            endpoint="smart-swap",
            system_prompt="system",
            user_prompt="I usually buy: oat milk.",
            mock_response=SMART_SWAP_MOCK,
            response_schema=SmartSwapResponse,
        )
        kwargs.update(overrides)
        return self.generator.generate(**kwargs)

    def test_second_identical_call_is_served_from_cache(self):
        first = self._generate()
        second = self._generate()

        self.assertEqual(self.gemini.generate_json.call_count, 1)
        self.assertEqual(first.source, "generated")
        self.assertEqual(second.source, "cache")
        self.assertTrue(second.cached)
        self.assertEqual(second.data, first.data)
        self.assertEqual(len(self.db.ai_cache), 1)

    def test_cache_entry_is_ignored_after_ttl(self):
        self._generate()
        self.clock.advance(hours=23, minutes=59)
        self._generate()
        self.assertEqual(self.gemini.generate_json.call_count, 1)

        self.clock.advance(minutes=2)
        result = self._generate()
        self.assertEqual(self.gemini.generate_json.call_count, 2)
        self.assertEqual(result.source, "generated")

    def test_endpoint_ttls_differ(self):
        self._generate(endpoint="chat")
        self.clock.advance(hours=1, seconds=1)
        self._generate(endpoint="chat")
        self.assertEqual(self.gemini.generate_json.call_count, 2)

    def test_cache_is_keyed_by_user(self):
        self._generate(user_id="user-1")
        self._generate(user_id="user-2")
        self.assertEqual(self.gemini.generate_json.call_count, 2)

    def test_cache_is_keyed_by_prompt(self):
        self._generate(user_prompt="I usually buy: oat milk.")
        self._generate(user_prompt="I usually buy: cereal.")
        self.assertEqual(self.gemini.generate_json.call_count, 2)

    def test_skip_cache_always_calls_generator(self):
        self._generate(skip_cache=True)
        self._generate(skip_cache=True)
        self.assertEqual(self.gemini.generate_json.call_count, 2)

    def test_generator_exception_returns_mock(self):
        self.gemini.generate_json.side_effect = RuntimeError("quota exceeded")
        result = self._generate()
        self.assertEqual(result.data, SMART_SWAP_MOCK)
        self.assertEqual(result.source, "mock")
        self.assertEqual(self.db.ai_cache, [])

    def test_invalid_json_returns_mock(self):
        self.gemini.generate_json.return_value = "not json at all"
        result = self._generate()
        self.assertEqual(result.data, SMART_SWAP_MOCK)
        self.assertEqual(result.source, "mock")

    def test_schema_mismatch_returns_mock(self):
        self.gemini.generate_json.return_value = json.dumps({"reply": "hi"})
        result = self._generate()
        self.assertEqual(result.data, SMART_SWAP_MOCK)
        self.assertEqual(self.db.ai_cache, [])

    def test_numeric_display_fields_are_accepted(self):
        numeric = {
            "original": "oat milk",
            "swaps": [
                {"name": "Lidl oat drink", "estimatedSaving": 0.6, "reason": "Cheaper", "emoji": "🥛"}
            ],
            "totalEstimatedSaving": 2.6,
            "tip": "Buy two when on offer.",
        }
        self.gemini.generate_json.return_value = json.dumps(numeric)
        result = self._generate()
        self.assertEqual(result.source, "generated")
        self.assertEqual(result.data, numeric)
        self.assertEqual(len(self.db.ai_cache), 1)

    def test_without_schema_any_json_is_accepted(self):
        self.gemini.generate_json.return_value = json.dumps({"reply": "hi"})
        result = self._generate(response_schema=None)
        self.assertEqual(result.data, {"reply": "hi"})

    def test_no_client_returns_mock_without_caching(self):
        generator = AiResponseGenerator(self.db, None, self.clock)
        result = generator.generate(
            user_id="user-1",
            endpoint="goal",
            system_prompt="system",
            user_prompt="plan",
            mock_response=SMART_SWAP_MOCK,
        )
        self.assertEqual(result.data, SMART_SWAP_MOCK)
        self.assertEqual(result.source, "mock")
        self.assertFalse(generator.available)
        self.assertEqual(self.db.ai_cache, [])

    def test_mock_is_returned_as_a_copy(self):
        self.gemini.generate_json.side_effect = RuntimeError("boom")
        result = self._generate()
        result.data["original"] = "changed"
        self.assertEqual(SMART_SWAP_MOCK["original"], "branded cereal")

    def test_cache_read_failure_is_swallowed(self):
        with mock.patch.object(
            self.db, "get_cached_response", side_effect=RuntimeError("store down")
        ):
            result = self._generate()
        self.assertEqual(result.source, "generated")
        self.assertEqual(result.data, GENERATED_SWAP)

    def test_cache_write_failure_is_swallowed(self):
        with mock.patch.object(
            self.db, "save_cached_response", side_effect=RuntimeError("store down")
        ):
            result = self._generate()
        self.assertEqual(result.data, GENERATED_SWAP)

    def test_prompt_includes_profile_context(self):
        profile = ProfileRecord(id="user-1", display_name="Sam", num_kids=2)
        self._generate(profile=profile, system_prompt="SYS", user_prompt="REQ")
        prompt = self.gemini.generate_json.call_args[0][0]
        self.assertEqual(
            prompt,
            "SYS\n\nUser context:\nName: Sam\nNumber of kids: 2\n\nUser request:\nREQ",
        )

    def test_log_usage_writes_activity(self):
        self.generator.log_usage("user-1", "goal", True)
        activity = self.db.list_activity("user-1")
        self.assertEqual(len(activity), 1)
        self.assertEqual(activity[0].action, "ai_used")
        self.assertEqual(activity[0].metadata, {"endpoint": "goal", "cached": True})

    def test_log_usage_failure_is_swallowed(self):
        with mock.patch.object(self.db, "log_activity", side_effect=RuntimeError("down")):
            self.generator.log_usage("user-1", "goal", False)


class PromptHelpersTests(unittest.TestCase):
    def test_hash_prompt_is_sha256_hex(self):
        digest = hash_prompt("hello")
        self.assertEqual(
            digest, "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
        )

    def test_context_without_profile(self):
        self.assertEqual(build_user_context(None), "No profile data available.")

    def test_context_with_empty_profile(self):
        self.assertEqual(
            build_user_context(ProfileRecord(id="u")),
            "No detailed profile data available.",
        )

    def test_context_lists_set_fields(self):
        profile = ProfileRecord(
            id="u",
            display_name="Jo",
            kids_ages=[3, 7],
            monthly_income=2500.0,
            monthly_budget=1800.5,
            savings_goal_label="Holiday",
            dietary_preferences=["vegetarian"],
        )
        self.assertEqual(
            build_user_context(profile),
            "User context:\n"
            "Name: Jo\n"
            "Kids ages: 3, 7\n"
            "Monthly income: £2500\n"
            "Monthly budget: £1800.5\n"
            "Goal: Holiday\n"
            "Dietary preferences: vegetarian",
        )

    def test_assemble_prompt(self):
        self.assertEqual(
            assemble_prompt("a", "b", "c"), "a\n\nb\n\nUser request:\nc"
        )

    def test_placeholder_key_disables_client(self):
        self.assertIsNone(create_client(None))
        self.assertIsNone(create_client(""))
        self.assertIsNone(create_client("REPLACE_ME"))

    def test_real_key_builds_client(self):
        with mock.patch("flourish.models.gemini.genai.Client") as client_cls:
            client = create_client("abc123", "gemini-1.5-flash")
        self.assertIsNotNone(client)
        client_cls.assert_called_once_with(api_key="abc123")


if __name__ == "__main__":
    unittest.main()
