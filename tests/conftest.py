"""
Shared test fixtures.
"""

from unittest.mock import Mock

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa


def make_response(status_code=200, json_data=None, text=None):
    """Build a requests.Response stand-in."""
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    if json_data is None and text is not None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_data
    response.text = text if text is not None else ('' if json_data is None else repr(json_data))
    response.headers = {}
    return response


def make_pr_payload(action="opened", number=42, title="Add login endpoint",
                    author="octocat", owner="octo-org", repo="hello-world", installation_id=None):
    """Build a pull_request webhook document."""
    payload = {
        "action": action,
        "number": number,
        "pull_request": {
            "number": number,
            "title": title,
            "state": "open",
            "user": {"login": author},
        },
        "repository": {
            "name": repo,
            "full_name": f"{owner}/{repo}",
            "owner": {"login": owner},
        },
    }
    if installation_id is not None:
        payload["installation"] = {"id": installation_id}
    return payload


@pytest.fixture
def pr_payload():
    return make_pr_payload


@pytest.fixture
def response_factory():
    return make_response


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_private_key_pem(rsa_private_key):
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
