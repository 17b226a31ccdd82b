"""Google OAuth2 authorization-code flow helpers."""
import logging
import secrets
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx

from config import GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_CALLBACK_URL

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


class GoogleOAuthError(Exception):
    """Raised when the code exchange or profile fetch fails."""


@dataclass
class GoogleProfile:
    google_id: str
    name: str
    email: str = ""
    picture: str = ""


class GoogleOAuth:
    """Builds the consent redirect and turns a callback code into a profile."""

    def __init__(
        self,
        client_id: Optional[str] = GOOGLE_CLIENT_ID,
        client_secret: Optional[str] = GOOGLE_CLIENT_SECRET,
        redirect_uri: str = GOOGLE_CALLBACK_URL,
        timeout: float = 10.0
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @staticmethod
    def new_state() -> str:
        return secrets.token_urlsafe(24)

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": "openid profile email",
            "state": state,
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    def fetch_profile(self, code: str) -> GoogleProfile:
        """
        Exchange an authorization code and fetch the account profile.

        Raises:
            GoogleOAuthError: If either request fails
        """
        try:
            with httpx.Client(timeout=self.timeout) as client:
                token_response = client.post(TOKEN_URL, data={
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": self.redirect_uri,
                    "grant_type": "authorization_code",
                })
                token_response.raise_for_status()
                access_token = token_response.json()["access_token"]

                profile_response = client.get(
                    USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"}
                )
                profile_response.raise_for_status()
                info = profile_response.json()
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error(f"Google login error: {e}")
            raise GoogleOAuthError(str(e)) from e

        google_id = info.get("sub")
        if not google_id:
            raise GoogleOAuthError("Google profile has no subject id")

        return GoogleProfile(
            google_id=google_id,
            name=info.get("name") or info.get("email") or "Google user",
            email=info.get("email", ""),
            picture=info.get("picture", ""),
        )
