"""
Integration tests for the review pipeline against the GitHub API.

Covers token resolution (GitHub App installation tokens versus a static
token) with the real GitHubClient and InstallationAuthenticator.
"""

from unittest.mock import Mock, patch

import jwt
import pytest

from codesage.api import ReviewPipeline, WebhookHandler
from codesage.config import AppConfig, GitHubConfig, ProviderConfig
from codesage.events import RecordingEventSink
from codesage.github.app_auth import AuthConfigError, InstallationAuthenticator
from codesage.github.client import GitHubClient, UpstreamError
from codesage.llm.providers import ProviderCallError, ReviewClient
from codesage.models.webhook import PullRequestAction, PullRequestContext


def make_context(installation_id=None):
    return PullRequestContext(
        owner="octo-org",
        repo="hello-world",
        number=42,
        title="Add login endpoint",
        author_login="octocat",
        action=PullRequestAction.OPENED,
        installation_id=installation_id,
    )


@pytest.fixture
def review_client():
    client = Mock(spec=ReviewClient)
    client.provider_name = "Gemini"
    client.review.return_value = "Looks fine."
    return client


class GitHubApi:
    """Answers GitHub REST calls and records the bearer token each one used."""

    def __init__(self, response_factory, token_status=201):
        self.response_factory = response_factory
        self.token_status = token_status
        self.files = [{"filename": "a.py", "status": "modified", "patch": "+x"}]
        self.calls = []

    def __call__(self, session, method, url, **kwargs):
        headers = dict(session.headers)
        headers.update(kwargs.get("headers") or {})
        self.calls.append((method, url, headers))

        if url.endswith("/access_tokens"):
            if self.token_status != 201:
                return self.response_factory(self.token_status, text='{"message": "Bad credentials"}')
            return self.response_factory(201, {"token": "ghs_installation", "expires_at": "2030-01-01T00:00:00Z"})
        if url.endswith("/files"):
            return self.response_factory(200, self.files)
        if url.endswith("/comments"):
            return self.response_factory(201, {"id": 1})
        raise AssertionError(f"Unexpected request: {method} {url}")

    def tokens_for(self, suffix):
        return [headers["Authorization"] for _, url, headers in self.calls if url.endswith(suffix)]


@pytest.fixture
def github_api(response_factory):
    api = GitHubApi(response_factory)
    with patch("requests.Session.request", autospec=True, side_effect=api):
        yield api


class TestTokenResolution:
    """ReviewPipeline token selection with real clients."""

    def test_installation_token_used_for_app_deliveries(
        self, github_api, review_client, rsa_private_key, rsa_private_key_pem
    ):
        sink = RecordingEventSink()
        pipeline = ReviewPipeline(
            review_client=review_client,
            github_client_factory=GitHubClient,
            static_token="ghp_static",
            authenticator=InstallationAuthenticator("4242", rsa_private_key_pem),
            event_sink=sink,
        )

        outcome = pipeline.run(make_context(installation_id=987))

        assert outcome.status == "success"
        assert github_api.calls[0][1] == "https://api.github.com/app/installations/987/access_tokens"
        app_jwt = github_api.tokens_for("/access_tokens")[0].split(" ", 1)[1]
        assert jwt.decode(app_jwt, rsa_private_key.public_key(), algorithms=["RS256"])["iss"] == "4242"
        assert github_api.tokens_for("/files") == ["Bearer ghs_installation"]
        assert github_api.tokens_for("/comments") == ["Bearer ghs_installation"]
        assert sink.events[0].details == {"source": "installation"}

    def test_static_token_used_without_installation(self, github_api, review_client, rsa_private_key_pem):
        pipeline = ReviewPipeline(
            review_client=review_client,
            github_client_factory=GitHubClient,
            static_token="ghp_static",
            authenticator=InstallationAuthenticator("4242", rsa_private_key_pem),
        )

        pipeline.run(make_context())

        assert github_api.tokens_for("/access_tokens") == []
        assert github_api.tokens_for("/files") == ["Bearer ghp_static"]

    def test_static_token_used_when_app_not_configured(self, github_api, review_client):
        pipeline = ReviewPipeline(
            review_client=review_client,
            github_client_factory=GitHubClient,
            static_token="ghp_static",
            authenticator=InstallationAuthenticator(None, None),
        )

        pipeline.run(make_context(installation_id=987))

        assert github_api.tokens_for("/access_tokens") == []
        assert github_api.tokens_for("/comments") == ["Bearer ghp_static"]

    def test_no_credentials(self, github_api, review_client):
        pipeline = ReviewPipeline(review_client=review_client, github_client_factory=GitHubClient)

        with pytest.raises(AuthConfigError):
            pipeline.run(make_context(installation_id=987))

        assert github_api.calls == []
        review_client.review.assert_not_called()

    def test_failed_token_exchange_stops_pipeline(self, github_api, review_client, rsa_private_key_pem):
        github_api.token_status = 401
        pipeline = ReviewPipeline(
            review_client=review_client,
            github_client_factory=GitHubClient,
            static_token="ghp_static",
            authenticator=InstallationAuthenticator("4242", rsa_private_key_pem),
        )

        with pytest.raises(UpstreamError):
            pipeline.run(make_context(installation_id=987))

        assert github_api.tokens_for("/files") == []
        review_client.review.assert_not_called()

    def test_review_text_reaches_comment(self, github_api, review_client):
        pipeline = ReviewPipeline(
            review_client=review_client,
            github_client_factory=GitHubClient,
            static_token="ghp_static",
        )

        pipeline.run(make_context())

        review_client.review.assert_called_once_with("\n--- a.py ---\n+x\n", "Add login endpoint")


class TestClientCleanup:
    """The per-delivery GitHubClient session is closed however the run ends."""

    @pytest.fixture
    def session_close(self, github_api):
        with patch("requests.Session.close", autospec=True) as close:
            yield close

    def make_pipeline(self, review_client):
        return ReviewPipeline(
            review_client=review_client,
            github_client_factory=GitHubClient,
            static_token="ghp_static",
        )

    def test_closed_after_success(self, session_close, review_client):
        outcome = self.make_pipeline(review_client).run(make_context())

        assert outcome.status == "success"
        session_close.assert_called_once()

    def test_closed_when_review_fails(self, session_close, review_client):
        review_client.review.side_effect = ProviderCallError("Gemini unreachable", "Gemini")

        with pytest.raises(ProviderCallError):
            self.make_pipeline(review_client).run(make_context())

        session_close.assert_called_once()

    def test_closed_when_nothing_to_review(self, session_close, github_api, review_client):
        github_api.files = []

        outcome = self.make_pipeline(review_client).run(make_context())

        assert outcome.message == "No files to analyze"
        session_close.assert_called_once()


class TestHandlerWiring:
    """WebhookHandler.from_config with GitHub App credentials."""

    def test_app_credentials_enable_installation_tokens(self, rsa_private_key_pem):
        config = AppConfig(
            github=GitHubConfig(app_id="4242", app_private_key=rsa_private_key_pem, webhook_secret="s"),
            provider=ProviderConfig(gemini_api_key="k"),
        )

        handler = WebhookHandler.from_config(config)

        assert handler.webhook_secret == "s"
        assert handler.pipeline.authenticator.is_configured
        assert handler.pipeline.static_token is None

    def test_token_only_configuration(self):
        config = AppConfig(github=GitHubConfig(token="ghp_static"), provider=ProviderConfig(name="huggingface"))

        handler = WebhookHandler.from_config(config)

        assert handler.pipeline.authenticator is None
        assert handler.pipeline.review_client.provider_name == "Hugging Face"
