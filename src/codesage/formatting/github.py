"""
GitHub Comment Formatter

Formats generated review text into the Markdown comment posted on the
pull request conversation.
"""

import logging


logger = logging.getLogger(__name__)


class CommentFormatter:
    """
    Formats review text for a GitHub PR comment.

    The comment is a fixed heading, the review text as returned by the
    provider, and an attribution footer.
    """

    HEADER = "## 🤖 CodeSage AI Review"
    FOOTER = (
        "*This review was automatically generated by CodeSage. "
        "Please review the suggestions and apply them as appropriate.*"
    )
    TRUNCATION_NOTICE = "\n\n*⚠️ Review truncated due to GitHub comment length limit.*"

    def __init__(self, max_comment_length: int = 65536):
        """
        Initialize comment formatter.

        Args:
            max_comment_length: GitHub's comment body limit in characters
        """
        self.max_comment_length = max_comment_length

    def format_review(self, review_text: str) -> str:
        """
        Render the PR comment body.

        Args:
            review_text: Review text from the inference provider

        Returns:
            Markdown comment body
        """
        body = self._render(review_text)
        if len(body) <= self.max_comment_length:
            return body

        logger.warning(f"Review comment too long ({len(body)} chars), truncating")
        return self._render(self._truncate_review(review_text, len(body) - self.max_comment_length))

    def _render(self, review_text: str) -> str:
        return f"{self.HEADER}\n\n{review_text}\n\n---\n{self.FOOTER}"

    def _truncate_review(self, review_text: str, overflow: int) -> str:
        """Cut the review so the whole comment fits, preferring a line break."""
        truncate_at = max(len(review_text) - overflow - len(self.TRUNCATION_NOTICE), 0)
        truncated = review_text[:truncate_at]

        last_newline = truncated.rfind('\n')
        if last_newline > 0 and last_newline > truncate_at - 500:
            truncated = truncated[:last_newline]

        return truncated + self.TRUNCATION_NOTICE
