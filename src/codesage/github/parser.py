"""
Pull Request Event Parser

Turns a decoded ``pull_request`` webhook document into a typed
PullRequestContext and decides whether the event warrants a review.
Also aggregates per-file patches into one review-ready diff.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from ..models.pr_diff import ChangedFile
from ..models.webhook import PullRequestAction, PullRequestContext, PullRequestEventPayload


logger = logging.getLogger(__name__)


class PayloadValidationError(Exception):
    """Webhook payload is incomplete or malformed"""
    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class MissingFieldError(PayloadValidationError):
    """Required top-level webhook field is absent"""
    def __init__(self, fields: List[str]):
        super().__init__(
            f"Missing required field(s): {', '.join(fields)}",
            errors=[f"{name}: field required" for name in fields],
        )
        self.fields = fields


@dataclass(frozen=True)
class FilterDecision:
    """Result of filtering a pull_request event."""
    context: Optional[PullRequestContext]
    proceed: bool
    action: str
    reason: Optional[str] = None


class PullRequestFilter:
    """
    Validates pull_request events and selects the ones to review.

    Only ``opened`` and ``synchronize`` actions carry new code; every other
    action (closed, reopened, labeled, ...) is skipped without error.
    """

    REQUIRED_KEYS = ('action', 'pull_request')

    def filter(self, payload: Any) -> FilterDecision:
        """
        Filter a decoded pull_request event.

        Args:
            payload: Decoded webhook document

        Returns:
            FilterDecision with a context when the event should be reviewed

        Raises:
            MissingFieldError: If ``action`` or ``pull_request`` is absent
            PayloadValidationError: If a required field is missing or mistyped
        """
        if not isinstance(payload, dict):
            raise PayloadValidationError("Payload must be a JSON object")

        missing = [key for key in self.REQUIRED_KEYS if payload.get(key) is None]
        if missing:
            raise MissingFieldError(missing)

        action = payload['action']
        if not isinstance(action, str):
            raise PayloadValidationError("Invalid action field type", ["action: must be a string"])
        if not isinstance(payload['pull_request'], dict):
            raise PayloadValidationError(
                "Invalid pull_request field", ["pull_request: must be an object"]
            )

        if not PullRequestAction.from_raw(action).triggers_review:
            logger.info(f"Skipping pull_request action: {action}")
            return FilterDecision(
                context=None,
                proceed=False,
                action=action,
                reason=f"Action ignored: {action}",
            )

        context = self._parse_context(payload)
        return FilterDecision(context=context, proceed=True, action=action)

    def _parse_context(self, payload: dict) -> PullRequestContext:
        try:
            event = PullRequestEventPayload.model_validate(payload)
        except ValidationError as e:
            errors = [self._describe_error(err) for err in e.errors()]
            raise PayloadValidationError("Missing required PR data", errors) from e
        return event.to_context()

    @staticmethod
    def _describe_error(error: dict) -> str:
        location = '.'.join(str(part) for part in error.get('loc', ()))
        return f"{location}: {error.get('msg', 'invalid value')}"


def aggregate_diff(files: Iterable[ChangedFile]) -> str:
    """
    Concatenate per-file patches into one diff, tagging each with its filename.

    Files without a patch (binary files, pure renames) are skipped; order is
    preserved.
    """
    sections = [
        f"\n--- {changed.filename} ---\n{changed.patch}\n"
        for changed in files
        if changed.has_patch
    ]
    return ''.join(sections)
