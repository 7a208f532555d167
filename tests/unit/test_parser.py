"""
Unit tests for pull request event filtering and diff aggregation.
"""

import pytest

from codesage.github.parser import (
    MissingFieldError,
    PayloadValidationError,
    PullRequestFilter,
    aggregate_diff,
)
from codesage.models.pr_diff import ChangedFile
from codesage.models.webhook import PullRequestAction


class TestPullRequestFilter:
    """Unit tests for PullRequestFilter."""

    def setup_method(self):
        self.pr_filter = PullRequestFilter()

    @pytest.mark.parametrize("action", ["opened", "synchronize"])
    def test_reviewable_actions_proceed(self, pr_payload, action):
        decision = self.pr_filter.filter(pr_payload(action=action))

        assert decision.proceed is True
        assert decision.action == action
        context = decision.context
        assert context.owner == "octo-org"
        assert context.repo == "hello-world"
        assert context.number == 42
        assert context.title == "Add login endpoint"
        assert context.author_login == "octocat"
        assert context.action == PullRequestAction.from_raw(action)
        assert context.installation_id is None

    @pytest.mark.parametrize("action", ["closed", "reopened", "labeled", "edited", ""])
    def test_other_actions_ignored_without_error(self, pr_payload, action):
        decision = self.pr_filter.filter(pr_payload(action=action))

        assert decision.proceed is False
        assert decision.context is None
        assert action in decision.reason

    def test_ignored_action_skips_field_validation(self, pr_payload):
        payload = pr_payload(action="closed")
        del payload["repository"]

        decision = self.pr_filter.filter(payload)

        assert decision.proceed is False

    def test_installation_id_extracted(self, pr_payload):
        decision = self.pr_filter.filter(pr_payload(installation_id=777))
        assert decision.context.installation_id == 777

    def test_float_number_accepted(self, pr_payload):
        payload = pr_payload()
        payload["pull_request"]["number"] = 42.0

        decision = self.pr_filter.filter(payload)

        assert decision.context.number == 42
        assert isinstance(decision.context.number, int)

    @pytest.mark.parametrize("missing", ["action", "pull_request"])
    def test_missing_top_level_field(self, pr_payload, missing):
        payload = pr_payload()
        del payload[missing]

        with pytest.raises(MissingFieldError) as exc_info:
            self.pr_filter.filter(payload)

        assert exc_info.value.fields == [missing]

    def test_both_top_level_fields_missing(self):
        with pytest.raises(MissingFieldError) as exc_info:
            self.pr_filter.filter({"repository": {}})

        assert exc_info.value.fields == ["action", "pull_request"]

    def test_null_action_treated_as_missing(self, pr_payload):
        payload = pr_payload()
        payload["action"] = None

        with pytest.raises(MissingFieldError):
            self.pr_filter.filter(payload)

    @pytest.mark.parametrize("payload", [[], "text", 42, None])
    def test_non_object_payload(self, payload):
        with pytest.raises(PayloadValidationError):
            self.pr_filter.filter(payload)

    def test_non_string_action(self, pr_payload):
        payload = pr_payload()
        payload["action"] = 5

        with pytest.raises(PayloadValidationError):
            self.pr_filter.filter(payload)

    def test_non_object_pull_request(self, pr_payload):
        payload = pr_payload()
        payload["pull_request"] = "not an object"

        with pytest.raises(PayloadValidationError):
            self.pr_filter.filter(payload)

    def test_all_field_errors_reported_together(self, pr_payload):
        payload = pr_payload()
        del payload["pull_request"]["title"]
        payload["pull_request"]["user"] = {}
        payload["repository"]["name"] = 12

        with pytest.raises(PayloadValidationError) as exc_info:
            self.pr_filter.filter(payload)

        joined = "\n".join(exc_info.value.errors)
        assert "pull_request.title" in joined
        assert "pull_request.user.login" in joined
        assert "repository.name" in joined
        assert not isinstance(exc_info.value, MissingFieldError)

    @pytest.mark.parametrize("field,value", [
        ("title", ""),
        ("number", 0),
        ("number", -3),
        ("number", "42"),
        ("number", True),
        ("number", 4.5),
    ])
    def test_invalid_pull_request_fields(self, pr_payload, field, value):
        payload = pr_payload()
        payload["pull_request"][field] = value

        with pytest.raises(PayloadValidationError):
            self.pr_filter.filter(payload)

    def test_empty_owner_login(self, pr_payload):
        with pytest.raises(PayloadValidationError):
            self.pr_filter.filter(pr_payload(owner=""))

    def test_missing_repository(self, pr_payload):
        payload = pr_payload()
        del payload["repository"]

        with pytest.raises(PayloadValidationError) as exc_info:
            self.pr_filter.filter(payload)

        assert any(error.startswith("repository") for error in exc_info.value.errors)


class TestAggregateDiff:
    """Unit tests for aggregate_diff."""

    def test_order_preserved_and_empty_patches_skipped(self):
        files = [
            ChangedFile(filename="a", status="modified", patch="patchA"),
            ChangedFile(filename="b", status="modified", patch=""),
            ChangedFile(filename="c", status="added", patch="patchC"),
        ]

        assert aggregate_diff(files) == "\n--- a ---\npatchA\n\n--- c ---\npatchC\n"

    def test_missing_patch_skipped(self):
        files = [
            ChangedFile(filename="logo.png", status="added", patch=None),
            ChangedFile(filename="src/app.py", status="modified", patch="@@ -1 +1 @@\n-a\n+b"),
        ]

        assert aggregate_diff(files) == "\n--- src/app.py ---\n@@ -1 +1 @@\n-a\n+b\n"

    def test_no_patches_gives_empty_diff(self):
        files = [ChangedFile(filename="renamed.txt", status="renamed")]
        assert aggregate_diff(files) == ""

    def test_empty_file_list(self):
        assert aggregate_diff([]) == ""
