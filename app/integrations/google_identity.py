"""Google ID token verification for "Sign in with Google"."""

import logging
from typing import Any

from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token

from app.core.config import settings
from app.utils.exceptions import InvalidTokenException, ValidationException

logger = logging.getLogger(__name__)

_GOOGLE_ISSUERS = {"accounts.google.com", "https://accounts.google.com"}


class GoogleIdentityVerifier:
    def __init__(self, client_id: str) -> None:
        self.client_id = client_id

    @classmethod
    def from_settings(cls) -> "GoogleIdentityVerifier":
        return cls(settings.GOOGLE_CLIENT_ID)

    def verify(self, token: str) -> dict[str, Any]:
        """Verify an ID token and return its claims. Blocking: fetches Google's certificates."""
        if not self.client_id:
            raise ValidationException("Google client ID not configured")

        try:
            claims = google_id_token.verify_oauth2_token(token, google_requests.Request(), audience=self.client_id)
        except ValueError as exc:
            logger.warning("Google token verification failed: %s", exc)
            raise InvalidTokenException("Invalid Google token") from exc

        if claims.get("iss") not in _GOOGLE_ISSUERS:
            raise InvalidTokenException("Invalid Google token issuer")
        if not claims.get("email"):
            raise InvalidTokenException("Invalid Google token payload")

        logger.info("Google token verified for sub=%s", claims.get("sub"))
        return claims
