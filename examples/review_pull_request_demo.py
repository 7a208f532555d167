#!/usr/bin/env python3
"""
Pull Request Review Demo

Runs the review stages against a live pull request without a webhook:
fetches the changed files, aggregates the diff, asks the configured
provider for a review and prints the comment that would be posted.

Usage:
    python examples/review_pull_request_demo.py <owner> <repo> <pr_number> [--post]

Example:
    GITHUB_TOKEN=... GEMINI_API_KEY=... python examples/review_pull_request_demo.py octo-org hello-world 42
"""

import os
import sys
import logging

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from codesage.config import AppConfig
from codesage.formatting import CommentFormatter
from codesage.github.client import GitHubClient, UpstreamError
from codesage.github.parser import aggregate_diff
from codesage.llm.providers import ProviderError, create_review_client


def setup_logging():
    """Set up logging configuration."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def main():
    """Main demo function."""
    setup_logging()
    logger = logging.getLogger(__name__)

    args = [arg for arg in sys.argv[1:] if arg != '--post']
    post_comment = '--post' in sys.argv[1:]
    if len(args) != 3:
        print("Usage: python review_pull_request_demo.py <owner> <repo> <pr_number> [--post]")
        sys.exit(1)

    owner, repo = args[0], args[1]
    try:
        pr_number = int(args[2])
    except ValueError:
        print("Error: PR number must be an integer")
        sys.exit(1)

    config = AppConfig.from_env()
    if not config.github.token:
        print("Error: GitHub token not found. Set GITHUB_TOKEN environment variable.")
        sys.exit(1)

    try:
        with GitHubClient(config.github.token, base_url=config.github.api_base_url) as client:
            review_client = create_review_client(config.provider)

            logger.info(f"Fetching PR files for {owner}/{repo}#{pr_number}...")
            files = client.get_pull_request_files(owner, repo, pr_number)
            print(f"\n📁 Files Changed: {len(files)}")
            for changed in files[:10]:
                marker = '' if changed.has_patch else ' (no patch)'
                print(f"   - {changed.filename} [{changed.status}]{marker}")

            diff_text = aggregate_diff(files)
            if not diff_text:
                print("\nNo code changes to analyze")
                return

            print(f"\n🤖 Requesting review from {review_client.provider_name} ({len(diff_text)} chars of diff)...")
            comment = CommentFormatter().format_review(review_client.review(diff_text, f"{owner}/{repo}#{pr_number}"))

            print("\n" + comment)

            if post_comment:
                client.create_issue_comment(owner, repo, pr_number, comment)
                print("\n✅ Review posted")

    except (UpstreamError, ProviderError) as e:
        logger.error(f"Review failed: {e}")
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
