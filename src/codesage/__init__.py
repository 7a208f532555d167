"""
CodeSage

GitHub Pull Request 자동 AI 코드 리뷰 웹훅 서비스
"""

__version__ = "1.0.0"

from .api import WebhookHandler, ReviewPipeline

__all__ = ["WebhookHandler", "ReviewPipeline"]
