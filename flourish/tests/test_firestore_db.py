import unittest
from unittest import mock

from google.cloud.firestore_v1 import Increment

from flourish.firestore_db import FirestoreDbClient
from flourish.records import (
    ActivityRecord,
    AiCacheRecord,
    ProfileRecord,
    UserRecord,
    WinRecord,
)


def make_snapshot(doc_id, data, exists=True):
    snapshot = mock.MagicMock()
    snapshot.id = doc_id
    snapshot.exists = exists
    snapshot.to_dict.return_value = data
    return snapshot


class FirestoreDbClientTests(unittest.TestCase):
    def setUp(self):
        self.client = mock.MagicMock()
        self.db = FirestoreDbClient(self.client)
        self.user_ref = self.client.collection.return_value.document.return_value

    def test_get_user_missing(self):
        self.user_ref.get.return_value = make_snapshot("alice", None, exists=False)
        self.assertIsNone(self.db.get_user("alice"))
        self.client.collection.assert_called_with("users")

    def test_get_user_builds_record(self):
        self.user_ref.get.return_value = make_snapshot(
            "alice",
            {
                "email": "alice@example.com",
                "has_premium": True,
                "premium_plan": "annual",
                "streak_days": 3,
                "total_savings": 10,
            },
        )
        user = self.db.get_user("alice")
        self.assertIsInstance(user, UserRecord)
        self.assertEqual(user.id, "alice")
        self.assertTrue(user.has_premium)
        self.assertEqual(user.total_savings, 10)
        self.assertIsNone(user.revenuecat_id)

    def test_create_user_writes_both_documents_in_one_batch(self):
        batch = self.client.batch.return_value
        self.db.create_user(
            UserRecord(id="alice", email="a@example.com"),
            ProfileRecord(id="alice", display_name="Alice"),
        )
        self.assertEqual(batch.set.call_count, 2)
        user_data = batch.set.call_args_list[0][0][1]
        self.assertNotIn("id", user_data)
        self.assertEqual(user_data["email"], "a@example.com")
        batch.commit.assert_called_once_with()

    def test_add_to_user_savings_uses_atomic_increments(self):
        self.db.add_to_user_savings("alice", 4.5, "2025-03-10T09:00:00.000Z")
        fields = self.user_ref.update.call_args[0][0]
        self.assertIsInstance(fields["total_savings"], Increment)
        self.assertEqual(fields["total_savings"].value, 4.5)
        self.assertIsInstance(fields["streak_days"], Increment)
        self.assertEqual(fields["updated_at"], "2025-03-10T09:00:00.000Z")

    def test_update_missing_user(self):
        self.user_ref.get.return_value = make_snapshot("bob", None, exists=False)
        self.assertIsNone(self.db.update_user("bob", {"has_premium": True}))
        self.user_ref.update.assert_not_called()

    def test_add_win_returns_generated_id(self):
        wins = self.user_ref.collection.return_value
        wins.add.return_value = (None, mock.MagicMock(id="win-1"))
        win = self.db.add_win(
            WinRecord(user_id="alice", title="Swap", amount_saved=2.0, category="swap")
        )
        self.assertEqual(win.id, "win-1")
        self.user_ref.collection.assert_called_with("wins")
        stored = wins.add.call_args[0][0]
        self.assertNotIn("user_id", stored)
        self.assertNotIn("id", stored)

    def test_count_wins_reads_aggregation(self):
        aggregation = mock.MagicMock()
        aggregation.value = 4
        wins = self.user_ref.collection.return_value
        wins.where.return_value.count.return_value.get.return_value = [[aggregation]]
        self.assertEqual(self.db.count_wins("alice", "meal"), 4)

    def test_log_activity_keeps_metadata(self):
        activity_log = self.user_ref.collection.return_value
        self.db.log_activity(
            ActivityRecord(
                user_id="alice", action="ai_used", metadata={"cached": True}, created_at="t"
            )
        )
        self.user_ref.collection.assert_called_with("activityLog")
        activity_log.add.assert_called_once_with(
            {"action": "ai_used", "metadata": {"cached": True}, "created_at": "t"}
        )

    def test_cached_response_hit(self):
        query = self.client.collection.return_value
        query.where.return_value = query
        query.order_by.return_value = query
        query.limit.return_value = query
        query.stream.return_value = iter(
            [make_snapshot("c1", {"response": {"reply": "hi"}})]
        )
        response = self.db.get_cached_response("alice", "chat", "hash", "now")
        self.assertEqual(response, {"reply": "hi"})
        self.client.collection.assert_called_with("aiCache")
        self.assertEqual(query.where.call_count, 4)

    def test_cached_response_miss(self):
        query = self.client.collection.return_value
        query.where.return_value = query
        query.order_by.return_value = query
        query.limit.return_value = query
        query.stream.return_value = iter([])
        self.assertIsNone(self.db.get_cached_response("alice", "chat", "hash", "now"))

    def test_save_cached_response(self):
        self.db.save_cached_response(
            AiCacheRecord(
                user_id="alice",
                endpoint="goal",
                prompt_hash="hash",
                response={"plan": 1},
                created_at="a",
                expires_at="b",
            )
        )
        stored = self.client.collection.return_value.add.call_args[0][0]
        self.assertEqual(stored["prompt_hash"], "hash")
        self.assertNotIn("id", stored)


if __name__ == "__main__":
    unittest.main()
