"""
HTTP Server

Flask application exposing the webhook endpoints, health checks and
the GitHub OAuth login flow.
"""

import logging
from typing import Optional

from flask import Flask, jsonify, redirect, request, session
from flask_cors import CORS

from . import __version__
from .api import WebhookHandler
from .config import AppConfig
from .github.client import UpstreamError
from .github.oauth import OAuthClient
from .models.webhook import WebhookEnvelope


logger = logging.getLogger(__name__)

WEBHOOK_ROUTES = ('/webhook', '/github/webhook')


def create_app(
    config: Optional[AppConfig] = None,
    handler: Optional[WebhookHandler] = None,
    oauth_client: Optional[OAuthClient] = None,
) -> Flask:
    """
    Build the Flask application.

    Args:
        config: Application configuration (loaded from the environment if omitted)
        handler: Webhook handler (wired from config if omitted)
        oauth_client: GitHub OAuth helper (wired from config if omitted)

    Returns:
        Configured Flask app
    """
    config = config or AppConfig.from_env()
    handler = handler or WebhookHandler.from_config(config)
    oauth_client = oauth_client or OAuthClient(
        config.github.oauth_client_id,
        config.github.oauth_client_secret,
        timeout=config.github.timeout_seconds,
    )

    app = Flask(__name__)
    # Signs the session cookie that carries the OAuth state
    app.secret_key = config.github.oauth_client_secret or config.github.webhook_secret or OAuthClient.new_state()
    CORS(app)

    def github_webhook():
        envelope = WebhookEnvelope(
            event_type=request.headers.get('X-GitHub-Event', ''),
            raw_body=request.get_data(cache=False),
            signature_header=request.headers.get('X-Hub-Signature-256'),
        )
        logger.info(f"GitHub webhook received: {envelope.event_type or 'unknown'}")
        outcome = handler.handle(envelope)
        return jsonify(outcome.to_dict()), outcome.http_status

    for rule in WEBHOOK_ROUTES:
        app.add_url_rule(rule, endpoint=f"webhook_{rule.strip('/').replace('/', '_')}",
                         view_func=github_webhook, methods=['POST'])

    @app.route('/', methods=['GET'])
    def index():
        return jsonify({'message': 'CodeSage is running'})

    @app.route('/api/v1/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'service': 'codesage',
            'version': __version__,
        })

    @app.route('/auth/github/login', methods=['GET'])
    def github_login():
        if not oauth_client.is_configured:
            return jsonify({'status': 'error', 'message': 'GitHub OAuth is not configured'}), 503
        state = OAuthClient.new_state()
        session['oauth_state'] = state
        return redirect(oauth_client.authorize_url(state))

    @app.route('/auth/github/callback', methods=['GET'])
    def github_callback():
        if not oauth_client.is_configured:
            return jsonify({'status': 'error', 'message': 'GitHub OAuth is not configured'}), 503

        code = request.args.get('code')
        if not code:
            return jsonify({'status': 'error', 'message': 'Missing OAuth code'}), 400

        expected_state = session.pop('oauth_state', None)
        if expected_state is None or request.args.get('state') != expected_state:
            return jsonify({'status': 'error', 'message': 'Invalid OAuth state'}), 400

        try:
            token_data = oauth_client.exchange_code(code)
        except UpstreamError as e:
            logger.error(f"OAuth callback failed: {e}")
            return jsonify({'status': 'error', 'message': 'OAuth token exchange failed'}), 502

        return jsonify({'status': 'authorized', 'scope': token_data.get('scope', '')})

    return app
