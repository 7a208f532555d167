"""
GitHub OAuth web flow helper.
"""

import logging
import secrets
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests

from ..sessions import session_scope
from .client import UpstreamError


logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
ACCESS_TOKEN_URL = "https://github.com/login/oauth/access_token"


class OAuthClient:
    """Builds authorize redirects and exchanges callback codes."""

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.client_id = client_id or ''
        self.client_secret = client_secret or ''
        self.timeout = timeout
        self.session = session

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @staticmethod
    def new_state() -> str:
        return secrets.token_urlsafe(16)

    def authorize_url(self, state: str, scope: str = 'repo') -> str:
        query = urlencode({'client_id': self.client_id, 'state': state, 'scope': scope})
        return f"{AUTHORIZE_URL}?{query}"

    def exchange_code(self, code: str) -> Dict[str, Any]:
        """
        Exchange an OAuth callback code for a user access token.

        Raises:
            UpstreamError: If GitHub rejects the code or the call fails
        """
        try:
            with session_scope(self.session) as session:
                response = session.post(
                    ACCESS_TOKEN_URL,
                    data={
                        'client_id': self.client_id,
                        'client_secret': self.client_secret,
                        'code': code,
                    },
                    headers={'Accept': 'application/json'},
                    timeout=self.timeout,
                )
        except requests.RequestException as e:
            raise UpstreamError(f"OAuth token exchange failed: {e}") from e

        if response.status_code != 200:
            raise UpstreamError(
                f"OAuth token exchange returned {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError("Malformed OAuth token response", response_body=response.text) from e

        # GitHub reports bad codes with 200 and an "error" field
        if not isinstance(data, dict) or 'access_token' not in data:
            error = (data.get('error_description') or data.get('error')) if isinstance(data, dict) else None
            raise UpstreamError(f"OAuth token exchange rejected: {error or 'no access token'}")

        return data
