"""
LLM Review Engine

This module provides prompt building and interchangeable inference
provider clients that turn a pull request diff into review text.
"""

from .prompts import PromptBuilder, truncate_diff
from .providers import (
    ReviewClient,
    GeminiReviewClient,
    HuggingFaceReviewClient,
    create_review_client,
)

__all__ = [
    'PromptBuilder',
    'truncate_diff',
    'ReviewClient',
    'GeminiReviewClient',
    'HuggingFaceReviewClient',
    'create_review_client',
]
