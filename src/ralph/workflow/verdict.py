"""Classify judge agent output.

Judges answer in free text, so verdicts are literal, case-insensitive
substring matches. Known limitation: unrelated prose containing a keyword
(e.g. "critical path") reads as "needs changes". Classifiers sit behind a
small protocol so a structured verdict format can replace them.
"""

from typing import Iterable, Protocol, Tuple

VALIDATE_KEYWORDS: Tuple[str, ...] = (
    "needs changes",
    "requires changes",
    "does not meet",
    "problematic",
    "issues found",
    "must be fixed",
    "should be revised",
)

REVIEW_KEYWORDS: Tuple[str, ...] = VALIDATE_KEYWORDS + ("critical",)

# Matched inside the review artifact written by the judge
REVIEW_FILE_KEYWORDS: Tuple[str, ...] = (
    "critical",
    "must fix",
    "blocking",
    "needs changes",
)

COMPLETE_KEYWORDS: Tuple[str, ...] = (
    "complete",
    "all items implemented",
    "ready for pr",
    "meets quality bar",
)
INCOMPLETE_KEYWORDS: Tuple[str, ...] = ("incomplete", "missing")

FEEDBACK_LINE_MARKERS: Tuple[str, ...] = (
    "issue",
    "problem",
    "change",
    "fix",
    "missing",
    "incomplete",
)
MAX_FEEDBACK_LINES = 5
FEEDBACK_FALLBACK_CHARS = 500


class VerdictClassifier(Protocol):
    def needs_changes(self, text: str) -> bool:
        ...


class KeywordVerdictClassifier:
    """Needs changes if any keyword occurs, ignoring case."""

    def __init__(self, keywords: Iterable[str]):
        self.keywords = tuple(k.lower() for k in keywords)

    def matched(self, text: str) -> Tuple[str, ...]:
        lowered = text.lower()
        return tuple(k for k in self.keywords if k in lowered)

    def needs_changes(self, text: str) -> bool:
        return bool(self.matched(text))


class CompletenessClassifier:
    """Publish gate: complete unless incompleteness is reported and not overridden.

    Any "complete" keyword wins, so "incomplete" alone still counts as
    complete because it contains "complete".
    """

    def is_complete(self, text: str) -> bool:
        lowered = text.lower()
        if any(k in lowered for k in COMPLETE_KEYWORDS):
            return True
        return not any(k in lowered for k in INCOMPLETE_KEYWORDS)


def validation_classifier() -> KeywordVerdictClassifier:
    return KeywordVerdictClassifier(VALIDATE_KEYWORDS)


def review_classifier() -> KeywordVerdictClassifier:
    return KeywordVerdictClassifier(REVIEW_KEYWORDS)


def review_file_classifier() -> KeywordVerdictClassifier:
    return KeywordVerdictClassifier(REVIEW_FILE_KEYWORDS)


def extract_validation_feedback(output: str) -> str:
    """First few lines that look like findings, else the head of the output."""
    relevant = [
        line for line in output.split("\n")
        if any(marker in line for marker in FEEDBACK_LINE_MARKERS)
    ]
    return "\n".join(relevant[:MAX_FEEDBACK_LINES]) or output[:FEEDBACK_FALLBACK_CHARS]
