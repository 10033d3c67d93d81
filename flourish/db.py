"""
Document store abstraction with in-memory and SQL implementations.

The production Firestore implementation lives in `flourish.firestore_db`.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import replace
from typing import Any, Dict, Optional, Protocol

from sqlalchemy import JSON, Boolean, Column, Float, Integer, String, create_engine, func, select
from sqlalchemy.orm import Session, declarative_base, sessionmaker

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


class DbClient(Protocol):
    """Interface for document store access."""

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        ...

    def create_user(self, user: UserRecord, profile: ProfileRecord) -> None:
        ...

    def update_user(self, user_id: str, fields: dict) -> Optional[UserRecord]:
        ...

    def find_user_by_revenuecat_id(self, revenuecat_id: str) -> Optional[UserRecord]:
        ...

    def add_to_user_savings(
        self, user_id: str, amount: float, updated_at: str
    ) -> None:
        ...

    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        ...

    def merge_profile(self, user_id: str, fields: dict) -> ProfileRecord:
        ...

    def add_win(self, win: WinRecord) -> WinRecord:
        ...

    def list_wins(
        self,
        user_id: str,
        *,
        category: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[WinRecord]:
        ...

    def count_wins(self, user_id: str, category: Optional[str] = None) -> int:
        ...

    def list_challenges(self) -> list[ChallengeRecord]:
        ...

    def get_challenge(self, challenge_id: str) -> Optional[ChallengeRecord]:
        ...

    def save_challenge(self, challenge: ChallengeRecord) -> None:
        ...

    def list_user_challenges(self, user_id: str) -> list[UserChallengeRecord]:
        ...

    def get_user_challenge(
        self, user_id: str, user_challenge_id: str
    ) -> Optional[UserChallengeRecord]:
        ...

    def find_user_challenge(
        self, user_id: str, challenge_id: str
    ) -> Optional[UserChallengeRecord]:
        ...

    def add_user_challenge(
        self, user_challenge: UserChallengeRecord
    ) -> UserChallengeRecord:
        ...

    def update_user_challenge(
        self, user_id: str, user_challenge_id: str, fields: dict
    ) -> None:
        ...

    def delete_user_challenge(self, user_id: str, user_challenge_id: str) -> None:
        ...

    def add_budget_entry(self, entry: BudgetEntryRecord) -> BudgetEntryRecord:
        ...

    def list_budget_entries(
        self, user_id: str, since_date: str
    ) -> list[BudgetEntryRecord]:
        ...

    def log_activity(self, activity: ActivityRecord) -> None:
        ...

    def list_activity(self, user_id: str) -> list[ActivityRecord]:
        ...

    def get_cached_response(
        self, user_id: str, endpoint: str, prompt_hash: str, now: str
    ) -> Optional[Any]:
        ...

    def save_cached_response(self, entry: AiCacheRecord) -> None:
        ...


def _new_id() -> str:
    return uuid.uuid4().hex


def _newest_first(items: list, key: str) -> list:
    # Stable sort over reversed insertion order, so ties favour the latest write.
    ordered = list(reversed(items))
    ordered.sort(key=lambda item: getattr(item, key), reverse=True)
    return ordered


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.users: Dict[str, UserRecord] = {}
        self.profiles: Dict[str, ProfileRecord] = {}
        self.wins: Dict[str, list[WinRecord]] = {}
        self.challenges: Dict[str, ChallengeRecord] = {}
        self.user_challenges: Dict[str, Dict[str, UserChallengeRecord]] = {}
        self.budget_entries: Dict[str, list[BudgetEntryRecord]] = {}
        self.activity: Dict[str, list[ActivityRecord]] = {}
        self.ai_cache: list[AiCacheRecord] = []

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.users.clear()
        self.profiles.clear()
        self.wins.clear()
        self.challenges.clear()
        self.user_challenges.clear()
        self.budget_entries.clear()
        self.activity.clear()
        self.ai_cache.clear()

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        user = self.users.get(user_id)
        return replace(user) if user else None

    def create_user(self, user: UserRecord, profile: ProfileRecord) -> None:
        self.users[user.id] = replace(user)
        self.profiles[profile.id] = replace(profile)

    def update_user(self, user_id: str, fields: dict) -> Optional[UserRecord]:
        user = self.users.get(user_id)
        if not user:
            return None
        for key, value in fields.items():
            setattr(user, key, value)
        return replace(user)

    def find_user_by_revenuecat_id(self, revenuecat_id: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.revenuecat_id == revenuecat_id:
                return replace(user)
        return None

    def add_to_user_savings(
        self, user_id: str, amount: float, updated_at: str
    ) -> None:
        user = self.users.get(user_id)
        if not user:
            return
        user.total_savings = (user.total_savings or 0) + amount
        user.streak_days = (user.streak_days or 0) + 1
        user.updated_at = updated_at

    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        profile = self.profiles.get(user_id)
        return replace(profile) if profile else None

    def merge_profile(self, user_id: str, fields: dict) -> ProfileRecord:
        profile = self.profiles.get(user_id) or ProfileRecord(id=user_id)
        for key, value in fields.items():
            setattr(profile, key, value)
        self.profiles[user_id] = profile
        return replace(profile)

    def add_win(self, win: WinRecord) -> WinRecord:
        stored = replace(win, id=win.id or _new_id())
        self.wins.setdefault(win.user_id, []).append(stored)
        return replace(stored)

    def list_wins(
        self,
        user_id: str,
        *,
        category: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[WinRecord]:
        wins = [
            win
            for win in self.wins.get(user_id, [])
            if category is None or win.category == category
        ]
        wins = _newest_first(wins, "created_at")
        end = None if limit is None else offset + limit
        return [replace(win) for win in wins[offset:end]]

    def count_wins(self, user_id: str, category: Optional[str] = None) -> int:
        return len(
            [
                win
                for win in self.wins.get(user_id, [])
                if category is None or win.category == category
            ]
        )

    def list_challenges(self) -> list[ChallengeRecord]:
        challenges = sorted(self.challenges.values(), key=lambda c: c.sort_order)
        return [replace(challenge) for challenge in challenges]

    def get_challenge(self, challenge_id: str) -> Optional[ChallengeRecord]:
        challenge = self.challenges.get(challenge_id)
        return replace(challenge) if challenge else None

    def save_challenge(self, challenge: ChallengeRecord) -> None:
        self.challenges[challenge.id] = replace(challenge)

    def list_user_challenges(self, user_id: str) -> list[UserChallengeRecord]:
        return [replace(uc) for uc in self.user_challenges.get(user_id, {}).values()]

    def get_user_challenge(
        self, user_id: str, user_challenge_id: str
    ) -> Optional[UserChallengeRecord]:
        uc = self.user_challenges.get(user_id, {}).get(user_challenge_id)
        return replace(uc) if uc else None

    def find_user_challenge(
        self, user_id: str, challenge_id: str
    ) -> Optional[UserChallengeRecord]:
        for uc in self.user_challenges.get(user_id, {}).values():
            if uc.challenge_id == challenge_id:
                return replace(uc)
        return None

    def add_user_challenge(
        self, user_challenge: UserChallengeRecord
    ) -> UserChallengeRecord:
        stored = replace(user_challenge, id=user_challenge.id or _new_id())
        self.user_challenges.setdefault(stored.user_id, {})[stored.id] = stored
        return replace(stored)

    def update_user_challenge(
        self, user_id: str, user_challenge_id: str, fields: dict
    ) -> None:
        uc = self.user_challenges.get(user_id, {}).get(user_challenge_id)
        if not uc:
            return
        for key, value in fields.items():
            setattr(uc, key, value)

    def delete_user_challenge(self, user_id: str, user_challenge_id: str) -> None:
        self.user_challenges.get(user_id, {}).pop(user_challenge_id, None)

    def add_budget_entry(self, entry: BudgetEntryRecord) -> BudgetEntryRecord:
        stored = replace(entry, id=entry.id or _new_id())
        self.budget_entries.setdefault(entry.user_id, []).append(stored)
        return replace(stored)

    def list_budget_entries(
        self, user_id: str, since_date: str
    ) -> list[BudgetEntryRecord]:
        return [
            replace(entry)
            for entry in self.budget_entries.get(user_id, [])
            if entry.date >= since_date
        ]

    def log_activity(self, activity: ActivityRecord) -> None:
        stored = replace(activity, id=activity.id or _new_id())
        self.activity.setdefault(activity.user_id, []).append(stored)

    def list_activity(self, user_id: str) -> list[ActivityRecord]:
        return [replace(a) for a in _newest_first(self.activity.get(user_id, []), "created_at")]

    def get_cached_response(
        self, user_id: str, endpoint: str, prompt_hash: str, now: str
    ) -> Optional[Any]:
        matches = [
            entry
            for entry in self.ai_cache
            if entry.user_id == user_id
            and entry.endpoint == endpoint
            and entry.prompt_hash == prompt_hash
            and entry.expires_at > now
        ]
        if not matches:
            return None
        latest = max(matches, key=lambda entry: entry.expires_at)
        return copy.deepcopy(latest.response)

    def save_cached_response(self, entry: AiCacheRecord) -> None:
        self.ai_cache.append(
            replace(entry, id=entry.id or _new_id(), response=copy.deepcopy(entry.response))
        )


class SqlDbClient:
    """
    SQLAlchemy-backed implementation for self-hosted deployments. Accepts any
    SQLAlchemy URL (e.g., Postgres, or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self.Session() as session:
            row = session.get(UserRow, user_id)
            return _user_record(row) if row else None

    def create_user(self, user: UserRecord, profile: ProfileRecord) -> None:
        with self.Session() as session:
            session.add(UserRow(**user.as_dict()))
            session.add(ProfileRow(**profile.as_dict()))
            session.commit()

    def update_user(self, user_id: str, fields: dict) -> Optional[UserRecord]:
        with self.Session() as session:
            row = session.get(UserRow, user_id)
            if not row:
                return None
            for key, value in fields.items():
                setattr(row, key, value)
            session.commit()
            session.refresh(row)
            return _user_record(row)

    def find_user_by_revenuecat_id(self, revenuecat_id: str) -> Optional[UserRecord]:
        with self.Session() as session:
            stmt = select(UserRow).where(UserRow.revenuecat_id == revenuecat_id).limit(1)
            row = session.execute(stmt).scalar_one_or_none()
            return _user_record(row) if row else None

    def add_to_user_savings(
        self, user_id: str, amount: float, updated_at: str
    ) -> None:
        with self.Session() as session:
            session.query(UserRow).filter(UserRow.id == user_id).update(
                {
                    UserRow.total_savings: UserRow.total_savings + amount,
                    UserRow.streak_days: UserRow.streak_days + 1,
                    UserRow.updated_at: updated_at,
                },
                synchronize_session=False,
            )
            session.commit()

    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        with self.Session() as session:
            row = session.get(ProfileRow, user_id)
            return _profile_record(row) if row else None

    def merge_profile(self, user_id: str, fields: dict) -> ProfileRecord:
        with self.Session() as session:
            row = session.get(ProfileRow, user_id)
            if not row:
                row = ProfileRow(**ProfileRecord(id=user_id).as_dict())
                session.add(row)
            for key, value in fields.items():
                setattr(row, key, value)
            session.commit()
            session.refresh(row)
            return _profile_record(row)

    def add_win(self, win: WinRecord) -> WinRecord:
        stored = replace(win, id=win.id or _new_id())
        with self.Session() as session:
            session.add(WinRow(**stored.as_dict()))
            session.commit()
        return stored

    def list_wins(
        self,
        user_id: str,
        *,
        category: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[WinRecord]:
        with self.Session() as session:
            stmt = select(WinRow).where(WinRow.user_id == user_id)
            if category:
                stmt = stmt.where(WinRow.category == category)
            stmt = stmt.order_by(WinRow.created_at.desc()).offset(offset)
            if limit is not None:
                stmt = stmt.limit(limit)
            return [_win_record(row) for row in session.execute(stmt).scalars()]

    def count_wins(self, user_id: str, category: Optional[str] = None) -> int:
        with self.Session() as session:
            query = session.query(func.count(WinRow.id)).filter(
                WinRow.user_id == user_id
            )
            if category:
                query = query.filter(WinRow.category == category)
            return query.scalar() or 0

    def list_challenges(self) -> list[ChallengeRecord]:
        with self.Session() as session:
            stmt = select(ChallengeRow).order_by(ChallengeRow.sort_order.asc())
            return [_challenge_record(row) for row in session.execute(stmt).scalars()]

    def get_challenge(self, challenge_id: str) -> Optional[ChallengeRecord]:
        with self.Session() as session:
            row = session.get(ChallengeRow, challenge_id)
            return _challenge_record(row) if row else None

    def save_challenge(self, challenge: ChallengeRecord) -> None:
        with self.Session() as session:
            session.merge(ChallengeRow(**challenge.as_dict()))
            session.commit()

    def list_user_challenges(self, user_id: str) -> list[UserChallengeRecord]:
        with self.Session() as session:
            stmt = select(UserChallengeRow).where(UserChallengeRow.user_id == user_id)
            return [
                _user_challenge_record(row) for row in session.execute(stmt).scalars()
            ]

    def get_user_challenge(
        self, user_id: str, user_challenge_id: str
    ) -> Optional[UserChallengeRecord]:
        with self.Session() as session:
            row = session.get(UserChallengeRow, user_challenge_id)
            if not row or row.user_id != user_id:
                return None
            return _user_challenge_record(row)

    def find_user_challenge(
        self, user_id: str, challenge_id: str
    ) -> Optional[UserChallengeRecord]:
        with self.Session() as session:
            stmt = (
                select(UserChallengeRow)
                .where(
                    UserChallengeRow.user_id == user_id,
                    UserChallengeRow.challenge_id == challenge_id,
                )
                .limit(1)
            )
            row = session.execute(stmt).scalar_one_or_none()
            return _user_challenge_record(row) if row else None

    def add_user_challenge(
        self, user_challenge: UserChallengeRecord
    ) -> UserChallengeRecord:
        stored = replace(user_challenge, id=user_challenge.id or _new_id())
        with self.Session() as session:
            session.add(UserChallengeRow(**stored.as_dict()))
            session.commit()
        return stored

    def update_user_challenge(
        self, user_id: str, user_challenge_id: str, fields: dict
    ) -> None:
        with self.Session() as session:
            row = session.get(UserChallengeRow, user_challenge_id)
            if not row or row.user_id != user_id:
                return
            for key, value in fields.items():
                setattr(row, key, value)
            session.commit()

    def delete_user_challenge(self, user_id: str, user_challenge_id: str) -> None:
        with self.Session() as session:
            session.query(UserChallengeRow).filter(
                UserChallengeRow.id == user_challenge_id,
                UserChallengeRow.user_id == user_id,
            ).delete(synchronize_session=False)
            session.commit()

    def add_budget_entry(self, entry: BudgetEntryRecord) -> BudgetEntryRecord:
        stored = replace(entry, id=entry.id or _new_id())
        with self.Session() as session:
            session.add(BudgetEntryRow(**stored.as_dict()))
            session.commit()
        return stored

    def list_budget_entries(
        self, user_id: str, since_date: str
    ) -> list[BudgetEntryRecord]:
        with self.Session() as session:
            stmt = select(BudgetEntryRow).where(
                BudgetEntryRow.user_id == user_id,
                BudgetEntryRow.date >= since_date,
            )
            return [
                _budget_entry_record(row) for row in session.execute(stmt).scalars()
            ]

    def log_activity(self, activity: ActivityRecord) -> None:
        with self.Session() as session:
            session.add(
                ActivityRow(
                    id=activity.id or _new_id(),
                    user_id=activity.user_id,
                    action=activity.action,
                    data=activity.metadata,
                    created_at=activity.created_at,
                )
            )
            session.commit()

    def list_activity(self, user_id: str) -> list[ActivityRecord]:
        with self.Session() as session:
            stmt = (
                select(ActivityRow)
                .where(ActivityRow.user_id == user_id)
                .order_by(ActivityRow.created_at.desc())
            )
            return [
                ActivityRecord(
                    id=row.id,
                    user_id=row.user_id,
                    action=row.action,
                    metadata=row.data or {},
                    created_at=row.created_at,
                )
                for row in session.execute(stmt).scalars()
            ]

    def get_cached_response(
        self, user_id: str, endpoint: str, prompt_hash: str, now: str
    ) -> Optional[Any]:
        with self.Session() as session:
            stmt = (
                select(AiCacheRow)
                .where(
                    AiCacheRow.user_id == user_id,
                    AiCacheRow.endpoint == endpoint,
                    AiCacheRow.prompt_hash == prompt_hash,
                    AiCacheRow.expires_at > now,
                )
                .order_by(AiCacheRow.expires_at.desc())
                .limit(1)
            )
            row = session.execute(stmt).scalar_one_or_none()
            return row.response if row else None

    def save_cached_response(self, entry: AiCacheRecord) -> None:
        with self.Session() as session:
            session.add(AiCacheRow(**replace(entry, id=entry.id or _new_id()).as_dict()))
            session.commit()


Base = declarative_base()


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, default="")
    has_premium = Column(Boolean, nullable=False, default=False)
    premium_plan = Column(String, nullable=False, default="free")
    revenuecat_id = Column(String, nullable=True, index=True)
    streak_days = Column(Integer, nullable=False, default=0)
    total_savings = Column(Float, nullable=False, default=0.0)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)


class ProfileRow(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True)
    display_name = Column(String, nullable=True)
    num_kids = Column(Integer, nullable=False, default=0)
    kids_ages = Column(JSON, nullable=True)
    monthly_income = Column(Float, nullable=True)
    monthly_budget = Column(Float, nullable=True)
    savings_goal = Column(Float, nullable=True)
    savings_goal_label = Column(String, nullable=True)
    bio = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    onboarding_complete = Column(Boolean, nullable=False, default=False)
    dietary_preferences = Column(JSON, nullable=True)
    created_at = Column(String, nullable=False, default="")
    updated_at = Column(String, nullable=False, default="")


class WinRow(Base):
    __tablename__ = "wins"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    amount_saved = Column(Float, nullable=False)
    category = Column(String, nullable=False, index=True)
    emoji = Column(String, nullable=False)
    created_at = Column(String, nullable=False)


class ChallengeRow(Base):
    __tablename__ = "challenges"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    duration_days = Column(Integer, nullable=False, default=0)
    category = Column(String, nullable=False)
    difficulty = Column(String, nullable=False)
    reward_description = Column(String, nullable=True)
    reward_emoji = Column(String, nullable=False)
    is_premium = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(String, nullable=False, default="")


class UserChallengeRow(Base):
    __tablename__ = "user_challenges"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    challenge_id = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False)
    progress = Column(Integer, nullable=False, default=0)
    started_at = Column(String, nullable=False)
    completed_at = Column(String, nullable=True)


class BudgetEntryRow(Base):
    __tablename__ = "budget_entries"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False)
    description = Column(String, nullable=True)
    amount = Column(Float, nullable=False)
    type = Column(String, nullable=False)
    date = Column(String, nullable=False)
    created_at = Column(String, nullable=False, default="")


class ActivityRow(Base):
    __tablename__ = "activity_log"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    action = Column(String, nullable=False)
    data = Column("metadata", JSON, nullable=False)
    created_at = Column(String, nullable=False)


class AiCacheRow(Base):
    __tablename__ = "ai_cache"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    endpoint = Column(String, nullable=False)
    prompt_hash = Column(String, nullable=False, index=True)
    response = Column(JSON, nullable=False)
    created_at = Column(String, nullable=False)
    expires_at = Column(String, nullable=False)


def _user_record(row: UserRow) -> UserRecord:
    return UserRecord(
        id=row.id,
        email=row.email,
        has_premium=row.has_premium,
        premium_plan=row.premium_plan,
        revenuecat_id=row.revenuecat_id,
        streak_days=row.streak_days,
        total_savings=row.total_savings,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _profile_record(row: ProfileRow) -> ProfileRecord:
    return ProfileRecord(
        id=row.id,
        display_name=row.display_name,
        num_kids=row.num_kids,
        kids_ages=row.kids_ages,
        monthly_income=row.monthly_income,
        monthly_budget=row.monthly_budget,
        savings_goal=row.savings_goal,
        savings_goal_label=row.savings_goal_label,
        bio=row.bio,
        avatar_url=row.avatar_url,
        onboarding_complete=row.onboarding_complete,
        dietary_preferences=row.dietary_preferences,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _win_record(row: WinRow) -> WinRecord:
    return WinRecord(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        description=row.description,
        amount_saved=row.amount_saved,
        category=row.category,
        emoji=row.emoji,
        created_at=row.created_at,
    )


def _challenge_record(row: ChallengeRow) -> ChallengeRecord:
    return ChallengeRecord(
        id=row.id,
        title=row.title,
        description=row.description,
        duration_days=row.duration_days,
        category=row.category,
        difficulty=row.difficulty,
        reward_description=row.reward_description,
        reward_emoji=row.reward_emoji,
        is_premium=row.is_premium,
        sort_order=row.sort_order,
        created_at=row.created_at,
    )


def _user_challenge_record(row: UserChallengeRow) -> UserChallengeRecord:
    return UserChallengeRecord(
        id=row.id,
        user_id=row.user_id,
        challenge_id=row.challenge_id,
        status=row.status,
        progress=row.progress,
        started_at=row.started_at,
        completed_at=row.completed_at,
    )


def _budget_entry_record(row: BudgetEntryRow) -> BudgetEntryRecord:
    return BudgetEntryRecord(
        id=row.id,
        user_id=row.user_id,
        category=row.category,
        description=row.description,
        amount=row.amount,
        type=row.type,
        date=row.date,
        created_at=row.created_at,
    )
