"""
Review Clients

Sends a pull request diff to an inference provider and returns the
generated review text. Every provider implements the same ReviewClient
contract so callers never depend on a concrete backend.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from ..sessions import session_scope
from .prompts import PromptBuilder, truncate_diff


logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Base class for inference provider failures"""
    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class ProviderAuthError(ProviderError):
    """Provider credential is not configured"""


class ProviderCallError(ProviderError):
    """Provider could not be reached or returned an unreadable body"""


class ProviderStatusError(ProviderError):
    """Provider answered with a non-success HTTP status"""
    def __init__(self, provider: str, status_code: int, body: str = ''):
        super().__init__(f"{provider} API returned status {status_code}: {body[:500]}", provider)
        self.status_code = status_code
        self.body = body


class ProviderEmptyResponseError(ProviderError):
    """Provider response contained no generated text"""


class ReviewClient(ABC):
    """
    Generates a free-text review for a pull request diff.

    Subclasses supply the provider request and response shapes; the
    credential check, truncation, prompt building and error mapping are
    shared.
    """

    provider_name = 'provider'
    prompt_style = 'markdown'

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        base_url: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session
        self.prompt_builder = PromptBuilder(style=self.prompt_style)

    def review(self, diff_text: str, pr_title: str) -> str:
        """
        Review a diff.

        Args:
            diff_text: Aggregated diff, truncated here if too long
            pr_title: Pull request title

        Returns:
            Review text with surrounding whitespace removed

        Raises:
            ProviderAuthError: If no API key is configured
            ProviderCallError: On transport failure or an unparseable body
            ProviderStatusError: On a non-success HTTP status
            ProviderEmptyResponseError: If no text was generated
        """
        if not self.api_key:
            raise ProviderAuthError(f"{self.provider_name} API key missing", self.provider_name)

        prompt = self.prompt_builder.build_review_prompt(pr_title, truncate_diff(diff_text))

        logger.info(f"Requesting review from {self.provider_name} model {self.model}")
        try:
            with session_scope(self.session) as session:
                response = self._send(session, prompt)
        except requests.RequestException as e:
            raise ProviderCallError(
                f"Failed to call {self.provider_name} API: {e}", self.provider_name
            ) from e

        if not 200 <= response.status_code < 300:
            raise ProviderStatusError(self.provider_name, response.status_code, response.text)

        try:
            body = response.json()
        except ValueError as e:
            raise ProviderCallError(
                f"Failed to decode {self.provider_name} response", self.provider_name
            ) from e

        text = self._extract_text(body)
        if not text or not text.strip():
            raise ProviderEmptyResponseError(
                f"No response from {self.provider_name}", self.provider_name
            )

        return text.strip()

    @abstractmethod
    def _send(self, session: requests.Session, prompt: str) -> requests.Response:
        """Issue the provider request."""

    @abstractmethod
    def _extract_text(self, body: Any) -> Optional[str]:
        """Pull the generated text out of a decoded response body."""


class GeminiReviewClient(ReviewClient):
    """Google Gemini ``generateContent`` backend (API key as query parameter)."""

    provider_name = 'Gemini'
    prompt_style = 'markdown'

    DEFAULT_MODEL = 'gemini-2.0-flash'
    DEFAULT_BASE_URL = 'https://generativelanguage.googleapis.com/v1beta'

    def _send(self, session: requests.Session, prompt: str) -> requests.Response:
        payload = {'contents': [{'parts': [{'text': prompt}]}]}
        return session.post(
            f"{self.base_url}/models/{self.model}:generateContent",
            params={'key': self.api_key},
            json=payload,
            timeout=self.timeout,
        )

    def _extract_text(self, body: Any) -> Optional[str]:
        if not isinstance(body, dict):
            return None
        candidates = body.get('candidates') or []
        if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
            return None
        content = candidates[0].get('content') or {}
        parts = content.get('parts') if isinstance(content, dict) else None
        if not isinstance(parts, list):
            return None
        texts = [part['text'] for part in parts if isinstance(part, dict) and isinstance(part.get('text'), str)]
        return ''.join(texts) or None


class HuggingFaceReviewClient(ReviewClient):
    """Hugging Face Inference API backend (bearer token)."""

    provider_name = 'Hugging Face'
    prompt_style = 'plain'

    DEFAULT_MODEL = 'meta-llama/CodeLlama-7b-Instruct-hf'
    DEFAULT_BASE_URL = 'https://api-inference.huggingface.co'

    def _send(self, session: requests.Session, prompt: str) -> requests.Response:
        payload = {'inputs': prompt, 'parameters': {'return_full_text': False}}
        return session.post(
            f"{self.base_url}/models/{self.model}",
            headers={
                'Authorization': f'Bearer {self.api_key}',
                'Content-Type': 'application/json',
            },
            json=payload,
            timeout=self.timeout,
        )

    def _extract_text(self, body: Any) -> Optional[str]:
        # Text-generation models answer [{"generated_text": ...}]; some return a bare object
        if isinstance(body, list):
            body = body[0] if body else None
        if isinstance(body, dict) and isinstance(body.get('generated_text'), str):
            return body['generated_text']
        return None


PROVIDERS: Dict[str, type] = {
    'gemini': GeminiReviewClient,
    'huggingface': HuggingFaceReviewClient,
}


def create_review_client(provider_config, session: Optional[requests.Session] = None) -> ReviewClient:
    """
    Build the ReviewClient selected by configuration.

    Args:
        provider_config: ProviderConfig section of the app configuration
        session: Optional caller-owned requests session (a new one per call otherwise)

    Returns:
        Configured ReviewClient
    """
    name = provider_config.name.lower()
    if name == 'gemini':
        return GeminiReviewClient(
            api_key=provider_config.gemini_api_key,
            model=provider_config.gemini_model or GeminiReviewClient.DEFAULT_MODEL,
            base_url=provider_config.gemini_api_url or GeminiReviewClient.DEFAULT_BASE_URL,
            timeout=provider_config.timeout_seconds,
            session=session,
        )
    if name == 'huggingface':
        return HuggingFaceReviewClient(
            api_key=provider_config.huggingface_api_key,
            model=provider_config.huggingface_model or HuggingFaceReviewClient.DEFAULT_MODEL,
            base_url=provider_config.huggingface_api_url or HuggingFaceReviewClient.DEFAULT_BASE_URL,
            timeout=provider_config.timeout_seconds,
            session=session,
        )
    raise ValueError(f"Unknown AI provider: {provider_config.name} (expected one of {', '.join(PROVIDERS)})")
