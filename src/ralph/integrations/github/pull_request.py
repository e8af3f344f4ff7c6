"""Pull request creation through the gh CLI."""

import logging
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ...core.issue import Issue
from ...utils.subprocess_utils import run_command

logger = logging.getLogger(__name__)

PR_URL_RE = re.compile(r"https://github\.com/[^\s]+")


@dataclass
class PullRequestResult:
    success: bool
    url: Optional[str] = None
    error: Optional[str] = None


def build_pr_title(issue: Issue) -> str:
    return f"[{issue.id}] {issue.title}"


def build_pr_body(issue: Issue) -> str:
    return (
        "## Issue\n\n"
        f"**ID:** {issue.id}\n"
        f"**Title:** {issue.title}\n\n"
        "## Description\n\n"
        f"{issue.description}\n\n"
        "---\n"
        "*Automated PR created by Ralph*"
    )


def create_pull_request(
    issue: Issue,
    base_branch: str,
    cwd: Path,
    gh_executable: str = "gh",
) -> PullRequestResult:
    """Open a PR for the worktree's current branch against `base_branch`."""
    logger.info(f"Creating pull request for {issue.id} against {base_branch}")
    try:
        result = run_command(
            [gh_executable, "pr", "create",
             "--title", build_pr_title(issue),
             "--body", build_pr_body(issue),
             "--base", base_branch],
            cwd=cwd, check=False, timeout=60,
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        return PullRequestResult(success=False, error=str(e))

    if result.returncode != 0:
        return PullRequestResult(success=False, error=result.stderr.strip() or result.stdout.strip())

    output = result.stdout.strip()
    match = PR_URL_RE.search(output)
    url = match.group(0) if match else output
    logger.info(f"Created PR: {url}")
    return PullRequestResult(success=True, url=url)
