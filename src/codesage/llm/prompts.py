"""
Prompt Builder

Builds the review prompt sent to the inference provider and bounds
the size of the diff it carries.
"""

import logging
from typing import Dict


logger = logging.getLogger(__name__)

MAX_DIFF_CHARS = 8000
TRUNCATION_MARKER = "\n... (truncated for analysis)"


def truncate_diff(diff_text: str, limit: int = MAX_DIFF_CHARS) -> str:
    """
    Cut a diff to ``limit`` characters, marking the cut visibly.

    Diffs at or under the limit are returned unchanged.
    """
    if len(diff_text) <= limit:
        return diff_text
    logger.info(f"Truncating diff from {len(diff_text)} to {limit} characters")
    return diff_text[:limit] + TRUNCATION_MARKER


class PromptBuilder:
    """
    Builds structured review prompts.

    Two styles are available: ``markdown`` asks for headed sections and
    suits chat-tuned models; ``plain`` lists the sections as bullets for
    smaller instruction models.
    """

    STYLES = ('markdown', 'plain')

    def __init__(self, style: str = 'markdown'):
        if style not in self.STYLES:
            raise ValueError(f"Unknown prompt style: {style}")
        self.style = style
        self.templates = self._load_templates()

    def build_review_prompt(self, pr_title: str, diff_text: str) -> str:
        """
        Build the review prompt.

        Args:
            pr_title: Pull request title
            diff_text: Aggregated (already truncated) diff

        Returns:
            Complete prompt string
        """
        return self.templates[self.style].format(title=pr_title, diff=diff_text)

    def _load_templates(self) -> Dict[str, str]:
        return {
            'markdown': (
                "You are CodeSage AI, a helpful code review assistant. "
                "Analyze this Pull Request and provide constructive feedback.\n"
                "\n"
                "**PR Title:** {title}\n"
                "\n"
                "**Code Changes:**\n"
                "{diff}\n"
                "\n"
                "Please provide a structured review covering:\n"
                "\n"
                "### 🔍 Summary\n"
                "Brief overview of what this PR does.\n"
                "\n"
                "### ✅ What's Good\n"
                "Highlight positive aspects of the code.\n"
                "\n"
                "### 🐛 Potential Issues\n"
                "- Any bugs or logical errors you spot\n"
                "- Edge cases that might not be handled\n"
                "\n"
                "### 🔒 Security Considerations\n"
                "- Any security vulnerabilities or concerns\n"
                "- Authentication/authorization issues\n"
                "\n"
                "### ⚡ Performance & Best Practices\n"
                "- Performance improvements or concerns\n"
                "- Code quality and maintainability suggestions\n"
                "\n"
                "### 💡 Suggestions\n"
                "Specific, actionable recommendations for improvement.\n"
                "\n"
                "Keep your feedback constructive, educational, and focus on "
                "the most important issues first."
            ),
            'plain': (
                "You are CodeSage AI, a helpful code review assistant.\n"
                "\n"
                "PR Title: {title}\n"
                "\n"
                "Code Changes:\n"
                "{diff}\n"
                "\n"
                "Please provide:\n"
                "- Summary\n"
                "- What's Good\n"
                "- Potential Issues\n"
                "- Security Considerations\n"
                "- Performance & Best Practices\n"
                "- Suggestions"
            ),
        }
