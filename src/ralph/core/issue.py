"""Issue payload parsing, validation and the names derived from an issue."""

import json
import logging
import re
import sys
from pathlib import Path
from typing import Optional, TextIO

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..errors import PayloadError

logger = logging.getLogger(__name__)

MAX_ID_LENGTH = 100
MAX_TITLE_LENGTH = 500
RESERVED_IDS = frozenset({"head", "master", "main", ".git", "git"})
BRANCH_PREFIX = "ralph-"
TOPIC_MAX_LENGTH = 50

_SAFE_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class Issue(BaseModel):
    """Issue the workflow is run for. Immutable once parsed."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Issue ID cannot be empty or whitespace-only")
        # Checked before the charset so traversal attempts get a precise error
        if ".." in v or "/" in v or "\\" in v:
            raise ValueError(f"Issue ID contains path traversal characters: {v}")
        if not _SAFE_ID_RE.match(v):
            raise ValueError(f"Issue ID contains invalid special characters: {v}")
        if len(v) > MAX_ID_LENGTH:
            raise ValueError(
                f"Issue ID is too long (max {MAX_ID_LENGTH} characters): {len(v)}"
            )
        if v.lower() in RESERVED_IDS:
            raise ValueError(f"Issue ID is a reserved name: {v}")
        return v

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Issue title cannot be empty or whitespace-only")
        if len(v) > MAX_TITLE_LENGTH:
            raise ValueError(
                f"Issue title is too long (max {MAX_TITLE_LENGTH} characters): {len(v)}"
            )
        return v


def parse_issue_payload(text: str) -> Issue:
    """Parse a JSON issue payload.

    Raises:
        PayloadError: On malformed JSON, a missing or non-string field, or an
            unsafe/invalid field value.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise PayloadError(f"Invalid JSON payload: {e}") from e

    if not isinstance(data, dict):
        raise PayloadError("Issue payload must be a JSON object")

    for field in ("id", "title", "description"):
        if not isinstance(data.get(field), str):
            raise PayloadError(f"Issue payload must have a string '{field}' field")
    if not data["id"] or not data["title"]:
        missing = "id" if not data["id"] else "title"
        raise PayloadError(f"Issue payload must have a string '{missing}' field")

    try:
        return Issue(id=data["id"], title=data["title"], description=data["description"])
    except ValidationError as e:
        # Surface the validator's own message, not pydantic's wrapper
        first = e.errors()[0]
        message = str(first.get("ctx", {}).get("error") or first["msg"])
        raise PayloadError(message) from e


def read_issue_payload(
    input_file: Optional[Path] = None,
    stdin: Optional[TextIO] = None,
) -> Issue:
    """Read an issue payload from a file, or from stdin when no file is given."""
    try:
        if input_file is not None:
            input_file = Path(input_file)
            if not input_file.is_file():
                raise PayloadError(f"Input file not found: {input_file}")
            content = input_file.read_text(encoding="utf-8")
            logger.debug(f"Read issue payload from {input_file}")
        else:
            content = (stdin or sys.stdin).read()
            logger.debug("Read issue payload from stdin")
    except UnicodeDecodeError as e:
        raise PayloadError(f"Issue payload is not valid UTF-8: {e}") from e

    return parse_issue_payload(content.strip())


def branch_name(issue_id: str) -> str:
    return f"{BRANCH_PREFIX}{issue_id}"


def worktree_name(issue_id: str) -> str:
    return issue_id.lower()


def topic_name(title: str) -> str:
    """Snake-case topic derived from an issue title, used in artifact names."""
    topic = re.sub(r"[^a-z0-9\s]", "", title.lower())
    topic = re.sub(r"\s+", "_", topic)
    return topic[:TOPIC_MAX_LENGTH]


def artifact_name(issue: Issue) -> str:
    return f"{issue.id}_{topic_name(issue.title)}.md"
