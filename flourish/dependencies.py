"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from fastapi import Depends

from flourish.billing import RevenueCatClient, create_revenuecat_client
from flourish.catalog import seed_challenges
from flourish.config import get_settings
from flourish.db import DbClient, InMemoryDbClient, SqlDbClient
from flourish.firebase import FirebaseTokenVerifier, TokenVerifier, create_firestore_client
from flourish.firestore_db import FirestoreDbClient
from flourish.generation import AiResponseGenerator
from flourish.models.gemini import GeminiClient, create_client
from flourish.records import utc_now

_db_client: DbClient | None = None
_gemini_client: GeminiClient | None = None
_gemini_resolved = False
_token_verifier: TokenVerifier | None = None
_billing_client: RevenueCatClient | None = None
_billing_resolved = False


def get_db_client() -> DbClient:
    """
    Return a singleton document store client, chosen from settings: in-memory
    when requested, SQL when DATABASE_URL is set, Firestore otherwise.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends:
        _db_client = InMemoryDbClient()
        # The in-memory store starts with the default catalogue.
        seed_challenges(_db_client, utc_now())
    elif settings.database_url:
        _db_client = SqlDbClient(settings.database_url)
    else:
        _db_client = FirestoreDbClient(
            create_firestore_client(settings.firebase_service_account_key)
        )
    return _db_client


def get_gemini_client() -> Optional[GeminiClient]:
    """None when no usable API key is configured."""
    global _gemini_client, _gemini_resolved
    if _gemini_resolved:
        return _gemini_client

    settings = get_settings()
    _gemini_client = create_client(settings.gemini_api_key, settings.gemini_model)
    _gemini_resolved = True
    return _gemini_client


def get_clock() -> Callable[[], datetime]:
    return utc_now


def get_generator(
    db: DbClient = Depends(get_db_client),
    gemini: Optional[GeminiClient] = Depends(get_gemini_client),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AiResponseGenerator:
    return AiResponseGenerator(db=db, gemini=gemini, clock=clock)


def get_token_verifier() -> TokenVerifier:
    global _token_verifier
    if _token_verifier:
        return _token_verifier

    settings = get_settings()
    _token_verifier = FirebaseTokenVerifier(settings.firebase_service_account_key)
    return _token_verifier


def get_billing_client() -> Optional[RevenueCatClient]:
    """None when no RevenueCat REST API key is configured."""
    global _billing_client, _billing_resolved
    if _billing_resolved:
        return _billing_client

    settings = get_settings()
    _billing_client = create_revenuecat_client(settings.revenuecat_api_key)
    _billing_resolved = True
    return _billing_client
