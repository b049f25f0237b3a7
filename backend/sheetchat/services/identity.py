"""
Identity resolution

Two strategies, picked once at startup from AUTH_MODE: Firebase ID token
verification for multi-tenant deployments, and a fixed identity for demos.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import google.auth.transport.requests
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import id_token

from sheetchat.config import Settings
from sheetchat.core.exceptions import AuthError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Resolved caller: user id plus the Google access token used as write credential"""
    user_id: str
    google_access_token: Optional[str] = None


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith('Bearer '):
        return None
    return authorization[len('Bearer '):].strip() or None


class IdentityResolver:
    """Resolve request credentials into an Identity"""

    def resolve(self, authorization: Optional[str], google_access_token: Optional[str] = None) -> Identity:
        raise NotImplementedError


class FirebaseIdentityResolver(IdentityResolver):
    """Verify a Firebase ID token sent as "Authorization: Bearer <token>" """

    def __init__(self, project_id: Optional[str]):
        self.project_id = project_id
        self._request = google.auth.transport.requests.Request()

    def resolve(self, authorization: Optional[str], google_access_token: Optional[str] = None) -> Identity:
        token = _bearer_token(authorization)
        if not token:
            raise AuthError("Unauthorized")

        try:
            claims = id_token.verify_firebase_token(token, self._request, audience=self.project_id)
        except (ValueError, GoogleAuthError) as e:
            logger.warning(f"Rejected ID token: {e}")
            raise AuthError("Unauthorized: Invalid or expired token")

        claims = claims or {}
        user_id = claims.get('user_id') or claims.get('sub')
        if not user_id:
            raise AuthError("Unauthorized: Token has no subject")

        return Identity(user_id=user_id, google_access_token=google_access_token)


class DemoIdentityResolver(IdentityResolver):
    """Every request acts as one fixed development user"""

    def __init__(self, user_id: str, google_access_token: Optional[str] = None):
        self.user_id = user_id
        self.google_access_token = google_access_token

    def resolve(self, authorization: Optional[str], google_access_token: Optional[str] = None) -> Identity:
        return Identity(
            user_id=self.user_id,
            google_access_token=google_access_token or self.google_access_token,
        )


def build_identity_resolver(settings: Settings) -> IdentityResolver:
    """Pick the resolver for the configured AUTH_MODE"""
    if settings.AUTH_MODE == "authenticated":
        if not settings.FIREBASE_PROJECT_ID:
            raise ValueError("FIREBASE_PROJECT_ID must be set when AUTH_MODE=authenticated")
        logger.info(f"Authenticated mode: verifying ID tokens for project {settings.FIREBASE_PROJECT_ID}")
        return FirebaseIdentityResolver(settings.FIREBASE_PROJECT_ID)

    logger.warning(f"Demo mode: all requests act as {settings.DEMO_USER_ID}")
    return DemoIdentityResolver(settings.DEMO_USER_ID, settings.DEMO_GOOGLE_ACCESS_TOKEN)
