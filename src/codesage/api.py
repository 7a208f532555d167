"""
Webhook Handling and Review Pipeline

Routes inbound GitHub webhooks by event type and runs the review
pipeline for pull requests that gained new code:
token resolution, file retrieval, diff aggregation, AI review and
comment posting.
"""

import logging
from typing import Callable, Optional, Tuple

from .config import AppConfig
from .events import EventSink, LoggingEventSink, stage
from .formatting.github import CommentFormatter
from .github.app_auth import AuthConfigError, InstallationAuthenticator
from .github.client import GitHubClient, UpstreamError
from .github.parser import PayloadValidationError, PullRequestFilter, aggregate_diff
from .github.webhook import DecodeError, decode_payload, verify_signature
from .llm.providers import ProviderError, ReviewClient, create_review_client
from .models.review import WebhookOutcome
from .models.webhook import PullRequestContext, WebhookEnvelope


logger = logging.getLogger(__name__)

# Errors caused by the caller's input versus failures talking to upstream services
CLIENT_ERRORS = (DecodeError, PayloadValidationError)
SERVER_ERRORS = (UpstreamError, ProviderError, AuthConfigError)

GitHubClientFactory = Callable[[str], GitHubClient]


class ReviewPipeline:
    """
    Runs one pull request through the review stages, strictly in order.

    A failing stage raises; later stages never run, so no comment is
    posted unless the review succeeded.
    """

    def __init__(
        self,
        review_client: ReviewClient,
        github_client_factory: GitHubClientFactory,
        static_token: Optional[str] = None,
        authenticator: Optional[InstallationAuthenticator] = None,
        formatter: Optional[CommentFormatter] = None,
        event_sink: Optional[EventSink] = None,
    ):
        """
        Initialize review pipeline.

        Args:
            review_client: Inference provider client
            github_client_factory: Builds a GitHubClient for a bearer token
            static_token: Personal access token used when App auth does not apply
            authenticator: GitHub App installation token minter
            formatter: Comment formatter
            event_sink: Receiver of stage events
        """
        self.review_client = review_client
        self.github_client_factory = github_client_factory
        self.static_token = static_token
        self.authenticator = authenticator
        self.formatter = formatter or CommentFormatter()
        self.events = event_sink or LoggingEventSink()

    def run(self, context: PullRequestContext) -> WebhookOutcome:
        """
        Review a pull request and post the result as a comment.

        Args:
            context: Validated pull request context

        Returns:
            WebhookOutcome for the HTTP caller

        Raises:
            AuthConfigError: If no GitHub credential is available
            UpstreamError: If a GitHub call fails
            ProviderError: If the inference call fails
        """
        with stage(self.events, 'resolve_token') as timer:
            token, source = self._resolve_token(context)
            timer.note(source=source)

        with self.github_client_factory(token) as github:
            return self._review_and_publish(github, context)

    def _review_and_publish(self, github: GitHubClient, context: PullRequestContext) -> WebhookOutcome:
        with stage(self.events, 'fetch_files') as timer:
            files = github.get_pull_request_files(context.owner, context.repo, context.number)
            timer.note(pr=f"{context.full_name}#{context.number}", files=len(files))
            if not files:
                timer.skip(reason='no files')
        if not files:
            return WebhookOutcome.received("No files to analyze")

        with stage(self.events, 'aggregate') as timer:
            diff_text = aggregate_diff(files)
            timer.note(chars=len(diff_text))
            if not diff_text:
                timer.skip(reason='no patches')
        if not diff_text:
            return WebhookOutcome.received("No code changes to analyze")

        with stage(self.events, 'review') as timer:
            review_text = self.review_client.review(diff_text, context.title)
            timer.note(provider=self.review_client.provider_name, chars=len(review_text))

        with stage(self.events, 'publish'):
            comment = self.formatter.format_review(review_text)
            github.create_issue_comment(context.owner, context.repo, context.number, comment)

        return WebhookOutcome(status='success', message='AI review posted')

    @property
    def _uses_app_auth(self) -> bool:
        return self.authenticator is not None and self.authenticator.is_configured

    def _resolve_token(self, context: PullRequestContext) -> Tuple[str, str]:
        if self._uses_app_auth and context.installation_id:
            return self.authenticator.mint_installation_token(context.installation_id).token, 'installation'
        if self.static_token:
            return self.static_token, 'static'
        raise AuthConfigError("No GitHub credentials configured (set GITHUB_TOKEN or GitHub App credentials)")


class WebhookHandler:
    """
    Entry point for inbound webhooks.

    Verifies the signature when a secret is configured, routes on the
    event type and converts pipeline errors into HTTP outcomes.
    """

    def __init__(
        self,
        pipeline: ReviewPipeline,
        webhook_secret: Optional[str] = None,
        pr_filter: Optional[PullRequestFilter] = None,
    ):
        self.pipeline = pipeline
        self.webhook_secret = webhook_secret
        self.pr_filter = pr_filter or PullRequestFilter()

    @classmethod
    def from_config(cls, config: AppConfig, event_sink: Optional[EventSink] = None) -> "WebhookHandler":
        """Wire the handler and its pipeline from application configuration."""
        github_config = config.github

        def github_client_factory(token: str) -> GitHubClient:
            return GitHubClient(token, base_url=github_config.api_base_url, timeout=github_config.timeout_seconds)

        authenticator = None
        if github_config.app_auth_enabled:
            authenticator = InstallationAuthenticator(
                github_config.app_id,
                github_config.app_private_key,
                base_url=github_config.api_base_url,
                timeout=github_config.timeout_seconds,
            )

        pipeline = ReviewPipeline(
            review_client=create_review_client(config.provider),
            github_client_factory=github_client_factory,
            static_token=github_config.token,
            authenticator=authenticator,
            event_sink=event_sink,
        )
        return cls(pipeline, webhook_secret=github_config.webhook_secret)

    def handle(self, envelope: WebhookEnvelope) -> WebhookOutcome:
        """
        Handle one webhook delivery.

        Args:
            envelope: Inbound request

        Returns:
            WebhookOutcome carrying the HTTP status and JSON body
        """
        if self.webhook_secret and not verify_signature(
            self.webhook_secret, envelope.raw_body, envelope.signature_header
        ):
            logger.warning(f"Rejected {envelope.event_type or 'unknown'} webhook: invalid signature")
            return WebhookOutcome.error("Invalid webhook signature", 401)

        return self.route(envelope)

    def route(self, envelope: WebhookEnvelope) -> WebhookOutcome:
        """Dispatch on the X-GitHub-Event type. Unknown events are acknowledged, never errors."""
        event_type = envelope.event_type

        if event_type == 'pull_request':
            return self._handle_pull_request(envelope.raw_body)
        if event_type == 'ping':
            logger.info("Ping event received - webhook setup successful")
            return WebhookOutcome(status='pong')
        if event_type == 'push':
            return WebhookOutcome.received("Push events ignored; CodeSage only analyzes pull requests")

        logger.info(f"Unhandled event: {event_type}")
        return WebhookOutcome.received(event=event_type)

    def _handle_pull_request(self, raw_body: bytes) -> WebhookOutcome:
        try:
            decision = self.pr_filter.filter(decode_payload(raw_body))
            if not decision.proceed:
                return WebhookOutcome.received(decision.reason)

            logger.info(
                f"Analyzing PR #{decision.context.number}: \"{decision.context.title}\" "
                f"by {decision.context.author_login} in {decision.context.full_name}"
            )
            return self.pipeline.run(decision.context)

        except CLIENT_ERRORS as e:
            details = getattr(e, 'errors', None)
            logger.warning(f"Rejected pull_request payload: {e}" + (f" ({'; '.join(details)})" if details else ''))
            return WebhookOutcome.error(str(e), 400)
        except SERVER_ERRORS as e:
            logger.error(f"Pull request analysis failed: {e}")
            return WebhookOutcome.error(str(e), 500)
