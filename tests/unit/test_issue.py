"""Tests for issue payload parsing, validation and derived names."""

import io
import json

import pytest
from pydantic import ValidationError

from ralph.core.issue import (
    Issue,
    artifact_name,
    branch_name,
    parse_issue_payload,
    read_issue_payload,
    topic_name,
    worktree_name,
)
from ralph.errors import PayloadError


def _payload(**overrides):
    data = {"id": "HLN-123", "title": "Add feature", "description": "Details"}
    data.update(overrides)
    return json.dumps(data)


class TestIssueIdValidation:
    """Issue ids become branch and directory names, so they are strict."""

    @pytest.mark.parametrize("issue_id", ["HLN-123", "abc", "A_B-9", "x" * 100, "1"])
    def test_accepts_safe_ids(self, issue_id):
        assert parse_issue_payload(_payload(id=issue_id)).id == issue_id

    @pytest.mark.parametrize("issue_id", ["../etc", "a/b", "a\\b", "..", "x..y"])
    def test_rejects_path_traversal(self, issue_id):
        with pytest.raises(PayloadError, match="path traversal"):
            parse_issue_payload(_payload(id=issue_id))

    def test_rejects_too_long(self):
        with pytest.raises(PayloadError, match="too long"):
            parse_issue_payload(_payload(id="x" * 101))

    @pytest.mark.parametrize("issue_id", ["HLN 123", "id!", "tab\tid", "émoji"])
    def test_rejects_special_characters(self, issue_id):
        with pytest.raises(PayloadError, match="special characters"):
            parse_issue_payload(_payload(id=issue_id))

    @pytest.mark.parametrize("issue_id", ["main", "MAIN", "Head", "master", "git"])
    def test_rejects_reserved_names(self, issue_id):
        with pytest.raises(PayloadError, match="reserved name"):
            parse_issue_payload(_payload(id=issue_id))

    def test_dot_git_is_rejected(self):
        # Fails the charset check before the reserved-name check
        with pytest.raises(PayloadError):
            parse_issue_payload(_payload(id=".git"))

    def test_whitespace_only_id_rejected(self):
        with pytest.raises(PayloadError, match="empty or whitespace-only"):
            parse_issue_payload(_payload(id="   "))

    def test_id_is_trimmed(self):
        assert parse_issue_payload(_payload(id="  HLN-1  ")).id == "HLN-1"


class TestIssueFields:
    def test_title_must_not_be_blank(self):
        with pytest.raises(PayloadError, match="title"):
            parse_issue_payload(_payload(title="   "))

    def test_title_length_limit(self):
        parse_issue_payload(_payload(title="t" * 500))
        with pytest.raises(PayloadError, match="too long"):
            parse_issue_payload(_payload(title="t" * 501))

    def test_empty_description_allowed(self):
        assert parse_issue_payload(_payload(description="")).description == ""

    def test_non_string_description_rejected(self):
        with pytest.raises(PayloadError, match="'description'"):
            parse_issue_payload(json.dumps({"id": "A", "title": "T", "description": 3}))

    def test_missing_id_rejected(self):
        with pytest.raises(PayloadError, match="'id'"):
            parse_issue_payload(json.dumps({"title": "T", "description": ""}))

    def test_malformed_json(self):
        with pytest.raises(PayloadError, match="Invalid JSON payload"):
            parse_issue_payload("{not json")

    def test_non_object_payload(self):
        with pytest.raises(PayloadError):
            parse_issue_payload("[1, 2]")

    def test_issue_is_immutable(self):
        issue = Issue(id="A", title="T", description="")
        with pytest.raises(ValidationError):
            issue.title = "changed"


class TestReadIssuePayload:
    def test_reads_file(self, tmp_path):
        path = tmp_path / "issue.json"
        path.write_text("\n  " + _payload(id="TRIM-123") + "\n\n")
        assert read_issue_payload(path).id == "TRIM-123"

    def test_missing_file(self, tmp_path):
        missing = tmp_path / "nope.json"
        with pytest.raises(PayloadError, match="Input file not found"):
            read_issue_payload(missing)

    def test_reads_stdin_when_no_file(self):
        assert read_issue_payload(stdin=io.StringIO(_payload())).id == "HLN-123"

    def test_non_utf8_file(self, tmp_path):
        path = tmp_path / "issue.json"
        path.write_bytes(b"\xff\xfe{}")
        with pytest.raises(PayloadError, match="Issue payload is not valid UTF-8"):
            read_issue_payload(path)

    def test_non_utf8_stdin(self):
        stdin = io.TextIOWrapper(io.BytesIO(b"\xff"), encoding="utf-8")
        with pytest.raises(PayloadError, match="Issue payload is not valid UTF-8"):
            read_issue_payload(stdin=stdin)


class TestDerivedNames:
    @pytest.mark.parametrize("issue_id", ["HLN-9793", "abc", "Mixed_Case-1"])
    def test_names_are_pure_and_idempotent(self, issue_id):
        assert worktree_name(issue_id) == issue_id.lower()
        assert worktree_name(worktree_name(issue_id)) == worktree_name(issue_id)
        assert branch_name(issue_id) == "ralph-" + issue_id
        assert branch_name(issue_id) == branch_name(issue_id)

    def test_topic_name(self):
        assert topic_name("Upgrade to Node v24!") == "upgrade_to_node_v24"
        assert topic_name("  Fix   the\tbug ") == "_fix_the_bug_"

    def test_topic_name_truncated(self):
        assert len(topic_name("word " * 30)) == 50

    def test_artifact_name(self):
        issue = Issue(id="HLN-9793", title="Upgrade to Node v24", description="")
        assert artifact_name(issue) == "HLN-9793_upgrade_to_node_v24.md"
