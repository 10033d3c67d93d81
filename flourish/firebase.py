"""
Firebase Admin initialisation and ID token verification.
"""

from __future__ import annotations

import json
import logging
from typing import Optional, Protocol

import firebase_admin
from firebase_admin import auth, credentials, firestore

logger = logging.getLogger(__name__)


class TokenVerificationError(Exception):
    pass


class TokenVerifier(Protocol):
    def verify(self, id_token: str) -> dict:
        """Return the decoded claims or raise TokenVerificationError."""
        ...


def initialize_firebase(service_account_key: Optional[str] = None) -> firebase_admin.App:
    """
    Initialise the default Firebase app once per process.

    A service-account JSON string is used when given; otherwise application
    default credentials apply (Cloud Run, emulator, gcloud login).
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    if service_account_key:
        cred = credentials.Certificate(json.loads(service_account_key))
        return firebase_admin.initialize_app(cred)

    logger.info("No service account key configured; using default credentials")
    return firebase_admin.initialize_app()


def create_firestore_client(service_account_key: Optional[str] = None):
    app = initialize_firebase(service_account_key)
    return firestore.client(app)


class FirebaseTokenVerifier:
    def __init__(self, service_account_key: Optional[str] = None):
        self.app = initialize_firebase(service_account_key)

    def verify(self, id_token: str) -> dict:
        try:
            return auth.verify_id_token(id_token, app=self.app)
        except (
            ValueError,
            auth.InvalidIdTokenError,
            auth.UserDisabledError,
            auth.CertificateFetchError,
        ) as e:
            raise TokenVerificationError(str(e)) from e
