"""
GitHub Integration Layer

This module provides webhook intake, pull request event parsing,
GitHub API access and GitHub App authentication.
"""

from .client import GitHubClient, UpstreamError
from .parser import PullRequestFilter, aggregate_diff
from .webhook import verify_signature, decode_payload, DecodeError
from .app_auth import InstallationAuthenticator

__all__ = [
    'GitHubClient',
    'UpstreamError',
    'PullRequestFilter',
    'aggregate_diff',
    'verify_signature',
    'decode_payload',
    'DecodeError',
    'InstallationAuthenticator',
]
