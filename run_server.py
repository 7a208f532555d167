#!/usr/bin/env python3
"""
CodeSage Webhook Server

Runs the CodeSage GitHub webhook receiver with Flask's server.
"""

import argparse

from codesage.config import AppConfig, ConfigManager
from codesage.server import create_app


def main():
    parser = argparse.ArgumentParser(description="Run the CodeSage webhook server")
    parser.add_argument('--config', help="YAML config file (defaults to environment variables)")
    args = parser.parse_args()

    config = AppConfig.from_yaml(args.config) if args.config else AppConfig.from_env()
    manager = ConfigManager(config)
    config = manager.config

    app = create_app(config)

    print("🚀 Starting CodeSage webhook server...")
    print(f"📍 Server will be available at: http://localhost:{config.server.port}")
    print("📋 Endpoints:")
    print("   - Webhook: POST /webhook, POST /github/webhook")
    print("   - Health Check: GET /api/v1/health")
    print("   - OAuth: GET /auth/github/login")

    if not config.github.token and not config.github.app_auth_enabled:
        print("⚠️  No GitHub credentials configured - pull request reviews will fail")

    app.run(
        host=config.server.host,
        port=config.server.port,
        debug=config.server.debug,
    )


if __name__ == '__main__':
    main()
