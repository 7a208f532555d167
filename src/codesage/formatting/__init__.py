"""
Review Formatter

This module formats generated reviews as GitHub PR comments.
"""

from .github import CommentFormatter

__all__ = ['CommentFormatter']
