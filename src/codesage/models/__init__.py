"""
Data Models

CodeSage 리뷰 파이프라인의 핵심 데이터 모델들
"""

from .pr_diff import ChangedFile
from .webhook import (
    WebhookEnvelope,
    PullRequestAction,
    PullRequestContext,
    PullRequestEventPayload,
)
from .review import WebhookOutcome

__all__ = [
    "ChangedFile",
    "WebhookEnvelope",
    "PullRequestAction",
    "PullRequestContext",
    "PullRequestEventPayload",
    "WebhookOutcome",
]
