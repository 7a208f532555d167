"""
GitHub App Authentication

Mints the short-lived app JWT and exchanges it for an installation
access token scoped to a single installation.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

import jwt
import requests
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.serialization import load_pem_private_key

from ..sessions import session_scope
from .client import DEFAULT_API_BASE_URL, UpstreamError


logger = logging.getLogger(__name__)

# GitHub rejects app JWTs valid for more than ten minutes
JWT_BACKDATE_SECONDS = 60
JWT_LIFETIME_SECONDS = 9 * 60


class AuthConfigError(Exception):
    """GitHub App credentials are missing or unusable"""


class KeyParseError(AuthConfigError):
    """GitHub App private key could not be parsed"""


@dataclass(frozen=True)
class InstallationToken:
    """Installation access token returned by GitHub"""
    token: str
    expires_at: Optional[datetime]


class InstallationAuthenticator:
    """
    Exchanges GitHub App credentials for installation access tokens.

    Tokens are neither cached nor refreshed; every call mints a new one.
    """

    def __init__(
        self,
        app_id: Union[str, int, None],
        private_key_pem: Optional[str],
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.app_id = str(app_id) if app_id else ''
        self.private_key_pem = private_key_pem or ''
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session

    @property
    def is_configured(self) -> bool:
        return bool(self.app_id and self.private_key_pem)

    def create_app_jwt(self, now: Optional[float] = None) -> str:
        """
        Build the RS256-signed JWT that identifies the app.

        Args:
            now: Current UNIX time (defaults to time.time())

        Raises:
            AuthConfigError: If app id or private key is missing
            KeyParseError: If the private key cannot be parsed
        """
        if not self.is_configured:
            raise AuthConfigError("Missing GitHub App credentials (app id and private key)")

        try:
            private_key = load_pem_private_key(self.private_key_pem.encode('utf-8'), password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise KeyParseError(f"Cannot parse GitHub App private key: {e}") from e

        issued = int(now if now is not None else time.time())
        claims = {
            'iat': issued - JWT_BACKDATE_SECONDS,
            'exp': issued + JWT_LIFETIME_SECONDS,
            'iss': self.app_id,
        }
        try:
            return jwt.encode(claims, private_key, algorithm='RS256')
        except (ValueError, TypeError, jwt.PyJWTError) as e:
            raise KeyParseError(f"GitHub App private key cannot sign RS256 tokens: {e}") from e

    def mint_installation_token(self, installation_id: int) -> InstallationToken:
        """
        Exchange the app JWT for an installation access token.

        Args:
            installation_id: GitHub App installation id

        Returns:
            InstallationToken with its expiry

        Raises:
            AuthConfigError: If credentials or installation id are missing
            KeyParseError: If the private key cannot be parsed
            UpstreamError: If the exchange fails
        """
        if not installation_id or installation_id <= 0:
            raise AuthConfigError("A positive installation id is required")

        app_jwt = self.create_app_jwt()
        url = f"{self.base_url}/app/installations/{installation_id}/access_tokens"

        logger.info(f"Requesting installation token for installation {installation_id}")
        try:
            with session_scope(self.session) as session:
                response = session.post(
                    url,
                    headers={
                        'Authorization': f'Bearer {app_jwt}',
                        'Accept': 'application/vnd.github+json',
                    },
                    timeout=self.timeout,
                )
        except requests.RequestException as e:
            raise UpstreamError(f"Installation token request failed: {e}") from e

        if response.status_code != 201:
            raise UpstreamError(
                f"Failed to get installation token: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            data = response.json()
            token = data['token']
        except (ValueError, KeyError, TypeError) as e:
            raise UpstreamError(
                "Malformed installation token response",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

        if not isinstance(token, str) or not token:
            raise UpstreamError("Installation token response has no token", status_code=response.status_code)

        return InstallationToken(token=token, expires_at=_parse_timestamp(data.get('expires_at')))


def _parse_timestamp(value) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        logger.warning(f"Unparseable installation token expiry: {value}")
        return None
