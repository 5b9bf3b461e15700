"""Identity verification collaborator for the calendar sync gate."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, FrozenSet, Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from dayflow.core.config import settings
from dayflow.core.errors import AuthRequired

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifiedIdentity:
    uid: str
    providers: FrozenSet[str] = field(default_factory=frozenset)

    def has_provider(self, provider: str) -> bool:
        return provider in self.providers


class IdentityVerifier:
    def verify(self, token: str) -> VerifiedIdentity:
        raise NotImplementedError


class FirebaseIdentityVerifier(IdentityVerifier):
    """Verifies Firebase ID tokens and reads the linked sign-in providers."""

    def __init__(self, project_id: str) -> None:
        self._project_id = project_id
        self._request = google_requests.Request()

    def verify(self, token: str) -> VerifiedIdentity:
        try:
            claims = id_token.verify_firebase_token(token, self._request, audience=self._project_id)
        except (ValueError, GoogleAuthError) as exc:
            logger.info("Rejected identity token: %s", exc)
            raise AuthRequired("Your session could not be verified. Please sign in again.") from exc
        if not claims:
            raise AuthRequired("Your session could not be verified. Please sign in again.")
        return identity_from_claims(claims)


def identity_from_claims(claims: Dict[str, Any]) -> VerifiedIdentity:
    firebase_claims = claims.get("firebase") or {}
    identities = firebase_claims.get("identities") or {}
    providers = frozenset(name for name, linked in identities.items() if linked)
    return VerifiedIdentity(uid=str(claims.get("user_id") or claims.get("sub") or ""), providers=providers)


@lru_cache
def get_identity_verifier() -> Optional[IdentityVerifier]:
    """Return the configured verifier, or None when no Firebase project is set."""
    if not settings.firebase_project_id:
        return None
    return FirebaseIdentityVerifier(settings.firebase_project_id)
