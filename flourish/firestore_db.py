"""
Firestore-backed document store.

Collections mirror the mobile app's layout: top-level `users`, `profiles`,
`challenges` and `aiCache`, with per-user `wins`, `userChallenges`,
`budgetEntries` and `activityLog` subcollections.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Optional, Type, TypeVar

from dacite import Config, from_dict
from google.cloud.firestore_v1 import Increment, Query
from google.cloud.firestore_v1.base_query import FieldFilter

from flourish.records import (
    ActivityRecord,
    AiCacheRecord,
    BudgetEntryRecord,
    ChallengeRecord,
    ProfileRecord,
    UserChallengeRecord,
    UserRecord,
    WinRecord,
)

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
PROFILES_COLLECTION = "profiles"
CHALLENGES_COLLECTION = "challenges"
AI_CACHE_COLLECTION = "aiCache"
WINS_COLLECTION = "wins"
USER_CHALLENGES_COLLECTION = "userChallenges"
BUDGET_ENTRIES_COLLECTION = "budgetEntries"
ACTIVITY_LOG_COLLECTION = "activityLog"

R = TypeVar("R")


def _from_snapshot(data_class: Type[R], snapshot, **extra: Any) -> R:
    data = snapshot.to_dict() or {}
    data.update(extra)
    data["id"] = snapshot.id
    return from_dict(data_class=data_class, data=data, config=Config(check_types=False))


def _without_id(record) -> dict:
    data = record.as_dict()
    data.pop("id", None)
    return data


class FirestoreDbClient:
    def __init__(self, client):
        self.client = client

    def _user_ref(self, user_id: str):
        return self.client.collection(USERS_COLLECTION).document(user_id)

    def _subcollection(self, user_id: str, name: str):
        return self._user_ref(user_id).collection(name)

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        snapshot = self._user_ref(user_id).get()
        if not snapshot.exists:
            return None
        return _from_snapshot(UserRecord, snapshot)

    def create_user(self, user: UserRecord, profile: ProfileRecord) -> None:
        batch = self.client.batch()
        batch.set(self._user_ref(user.id), _without_id(user))
        batch.set(
            self.client.collection(PROFILES_COLLECTION).document(profile.id),
            _without_id(profile),
        )
        batch.commit()

    def update_user(self, user_id: str, fields: dict) -> Optional[UserRecord]:
        doc_ref = self._user_ref(user_id)
        if not doc_ref.get().exists:
            return None
        doc_ref.update(fields)
        return self.get_user(user_id)

    def find_user_by_revenuecat_id(self, revenuecat_id: str) -> Optional[UserRecord]:
        query = (
            self.client.collection(USERS_COLLECTION)
            .where(filter=FieldFilter("revenuecat_id", "==", revenuecat_id))
            .limit(1)
        )
        for snapshot in query.stream():
            return _from_snapshot(UserRecord, snapshot)
        return None

    def add_to_user_savings(
        self, user_id: str, amount: float, updated_at: str
    ) -> None:
        self._user_ref(user_id).update(
            {
                "total_savings": Increment(amount),
                "streak_days": Increment(1),
                "updated_at": updated_at,
            }
        )

    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        snapshot = self.client.collection(PROFILES_COLLECTION).document(user_id).get()
        if not snapshot.exists:
            return None
        return _from_snapshot(ProfileRecord, snapshot)

    def merge_profile(self, user_id: str, fields: dict) -> ProfileRecord:
        doc_ref = self.client.collection(PROFILES_COLLECTION).document(user_id)
        doc_ref.set(fields, merge=True)
        return _from_snapshot(ProfileRecord, doc_ref.get())

    def add_win(self, win: WinRecord) -> WinRecord:
        data = _without_id(win)
        data.pop("user_id")
        _, doc_ref = self._subcollection(win.user_id, WINS_COLLECTION).add(data)
        return replace(win, id=doc_ref.id)

    def _wins_query(self, user_id: str, category: Optional[str]):
        query = self._subcollection(user_id, WINS_COLLECTION)
        if category:
            query = query.where(filter=FieldFilter("category", "==", category))
        return query

    def list_wins(
        self,
        user_id: str,
        *,
        category: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[WinRecord]:
        query = self._wins_query(user_id, category).order_by(
            "created_at", direction=Query.DESCENDING
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [
            _from_snapshot(WinRecord, snapshot, user_id=user_id)
            for snapshot in query.stream()
        ]

    def count_wins(self, user_id: str, category: Optional[str] = None) -> int:
        result = self._wins_query(user_id, category).count().get()
        return int(result[0][0].value)

    def list_challenges(self) -> list[ChallengeRecord]:
        query = self.client.collection(CHALLENGES_COLLECTION).order_by(
            "sort_order", direction=Query.ASCENDING
        )
        return [_from_snapshot(ChallengeRecord, snapshot) for snapshot in query.stream()]

    def get_challenge(self, challenge_id: str) -> Optional[ChallengeRecord]:
        snapshot = self.client.collection(CHALLENGES_COLLECTION).document(challenge_id).get()
        if not snapshot.exists:
            return None
        return _from_snapshot(ChallengeRecord, snapshot)

    def save_challenge(self, challenge: ChallengeRecord) -> None:
        self.client.collection(CHALLENGES_COLLECTION).document(challenge.id).set(
            _without_id(challenge)
        )

    def list_user_challenges(self, user_id: str) -> list[UserChallengeRecord]:
        return [
            _from_snapshot(UserChallengeRecord, snapshot, user_id=user_id)
            for snapshot in self._subcollection(user_id, USER_CHALLENGES_COLLECTION).stream()
        ]

    def get_user_challenge(
        self, user_id: str, user_challenge_id: str
    ) -> Optional[UserChallengeRecord]:
        snapshot = (
            self._subcollection(user_id, USER_CHALLENGES_COLLECTION)
            .document(user_challenge_id)
            .get()
        )
        if not snapshot.exists:
            return None
        return _from_snapshot(UserChallengeRecord, snapshot, user_id=user_id)

    def find_user_challenge(
        self, user_id: str, challenge_id: str
    ) -> Optional[UserChallengeRecord]:
        query = (
            self._subcollection(user_id, USER_CHALLENGES_COLLECTION)
            .where(filter=FieldFilter("challenge_id", "==", challenge_id))
            .limit(1)
        )
        for snapshot in query.stream():
            return _from_snapshot(UserChallengeRecord, snapshot, user_id=user_id)
        return None

    def add_user_challenge(
        self, user_challenge: UserChallengeRecord
    ) -> UserChallengeRecord:
        data = _without_id(user_challenge)
        data.pop("user_id")
        _, doc_ref = self._subcollection(
            user_challenge.user_id, USER_CHALLENGES_COLLECTION
        ).add(data)
        return replace(user_challenge, id=doc_ref.id)

    def update_user_challenge(
        self, user_id: str, user_challenge_id: str, fields: dict
    ) -> None:
        self._subcollection(user_id, USER_CHALLENGES_COLLECTION).document(
            user_challenge_id
        ).update(fields)

    def delete_user_challenge(self, user_id: str, user_challenge_id: str) -> None:
        self._subcollection(user_id, USER_CHALLENGES_COLLECTION).document(
            user_challenge_id
        ).delete()

    def add_budget_entry(self, entry: BudgetEntryRecord) -> BudgetEntryRecord:
        data = _without_id(entry)
        data.pop("user_id")
        _, doc_ref = self._subcollection(entry.user_id, BUDGET_ENTRIES_COLLECTION).add(data)
        return replace(entry, id=doc_ref.id)

    def list_budget_entries(
        self, user_id: str, since_date: str
    ) -> list[BudgetEntryRecord]:
        query = self._subcollection(user_id, BUDGET_ENTRIES_COLLECTION).where(
            filter=FieldFilter("date", ">=", since_date)
        )
        return [
            _from_snapshot(BudgetEntryRecord, snapshot, user_id=user_id)
            for snapshot in query.stream()
        ]

    def log_activity(self, activity: ActivityRecord) -> None:
        self._subcollection(activity.user_id, ACTIVITY_LOG_COLLECTION).add(
            {
                "action": activity.action,
                "metadata": activity.metadata,
                "created_at": activity.created_at,
            }
        )

    def list_activity(self, user_id: str) -> list[ActivityRecord]:
        query = self._subcollection(user_id, ACTIVITY_LOG_COLLECTION).order_by(
            "created_at", direction=Query.DESCENDING
        )
        return [
            _from_snapshot(ActivityRecord, snapshot, user_id=user_id)
            for snapshot in query.stream()
        ]

    def get_cached_response(
        self, user_id: str, endpoint: str, prompt_hash: str, now: str
    ) -> Optional[Any]:
        query = (
            self.client.collection(AI_CACHE_COLLECTION)
            .where(filter=FieldFilter("user_id", "==", user_id))
            .where(filter=FieldFilter("endpoint", "==", endpoint))
            .where(filter=FieldFilter("prompt_hash", "==", prompt_hash))
            .where(filter=FieldFilter("expires_at", ">", now))
            .order_by("expires_at", direction=Query.DESCENDING)
            .limit(1)
        )
        for snapshot in query.stream():
            return (snapshot.to_dict() or {}).get("response")
        return None

    def save_cached_response(self, entry: AiCacheRecord) -> None:
        self.client.collection(AI_CACHE_COLLECTION).add(_without_id(entry))
