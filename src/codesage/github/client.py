"""
GitHub API Client

Handles authenticated communication with the GitHub REST API.
Provides methods for PR file retrieval and issue comment posting.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from ..models.pr_diff import ChangedFile


logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.github.com"


class UpstreamError(Exception):
    """GitHub API call failed or returned an unexpected response"""
    def __init__(self, message: str, status_code: Optional[int] = None, response_body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class GitHubClient:
    """
    GitHub API client authenticated with a bearer token.

    The token may be a personal access token or a short-lived GitHub App
    installation token. Requests are not retried.
    """

    FILES_PER_PAGE = 100

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: Optional[float] = None,
    ):
        """
        Initialize GitHub client.

        Args:
            token: Bearer token for the GitHub API
            base_url: GitHub API base URL (default: https://api.github.com)
            timeout: Per-request timeout in seconds, None for no timeout
        """
        if not token:
            raise ValueError("GitHub token is required")

        self.token = token
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = self._create_session()

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self.session.headers)

    def _create_session(self) -> requests.Session:
        """Create requests session with authentication headers."""
        session = requests.Session()
        session.headers.update({
            'Authorization': f'Bearer {self.token}',
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': 'CodeSage/1.0',
        })
        return session

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def _make_request(self, method: str, endpoint: str, expected_status: int, **kwargs) -> requests.Response:
        """
        Make authenticated request to the GitHub API.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (without base URL)
            expected_status: The only status code treated as success
            **kwargs: Additional arguments for requests

        Returns:
            Response object

        Raises:
            UpstreamError: On transport failure or an unexpected status
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Request failed: {method} {url}: {e}")
            raise UpstreamError(f"Request to GitHub failed: {e}") from e

        if response.status_code != expected_status:
            body = response.text
            logger.error(f"GitHub API error: {method} {url} -> {response.status_code}: {body[:500]}")
            raise UpstreamError(
                f"GitHub API error: {response.status_code} for {method} {endpoint}",
                status_code=response.status_code,
                response_body=body,
            )

        return response

    @staticmethod
    def _json_body(response: requests.Response, endpoint: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                f"Malformed JSON from GitHub for {endpoint}",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

    def get_pull_request_files(self, owner: str, repo: str, pr_number: int) -> List[ChangedFile]:
        """
        Get files changed in a pull request.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
            Changed files in the order the API returned them
        """
        logger.info(f"Fetching PR files for {owner}/{repo}#{pr_number}")

        endpoint = f'/repos/{owner}/{repo}/pulls/{pr_number}/files'
        files: List[ChangedFile] = []
        page = 1

        while True:
            response = self._make_request(
                'GET',
                endpoint,
                expected_status=200,
                params={'page': page, 'per_page': self.FILES_PER_PAGE},
            )

            page_files = self._json_body(response, endpoint)
            if not isinstance(page_files, list):
                raise UpstreamError(
                    f"Expected a list of files from {endpoint}",
                    status_code=response.status_code,
                    response_body=response.text,
                )

            for file_data in page_files:
                if not isinstance(file_data, dict) or not isinstance(file_data.get('filename'), str) \
                        or not file_data['filename']:
                    raise UpstreamError(
                        f"Malformed file entry from {endpoint}",
                        status_code=response.status_code,
                        response_body=response.text,
                    )
                files.append(ChangedFile.from_api(file_data))

            if len(page_files) < self.FILES_PER_PAGE:
                break

            page += 1

        logger.info(f"Found {len(files)} changed files")
        return files

    def create_issue_comment(self, owner: str, repo: str, issue_number: int, body: str) -> Dict[str, Any]:
        """
        Post a comment to an issue or pull request conversation.

        Args:
            owner: Repository owner
            repo: Repository name
            issue_number: Issue or pull request number
            body: Markdown comment body

        Returns:
            Created comment data (empty dict if the response had no JSON body)
        """
        logger.info(f"Posting comment to {owner}/{repo}#{issue_number}")

        response = self._make_request(
            'POST',
            f'/repos/{owner}/{repo}/issues/{issue_number}/comments',
            expected_status=201,
            json={'body': body},
        )

        try:
            created = response.json()
        except ValueError:
            return {}
        return created if isinstance(created, dict) else {}
