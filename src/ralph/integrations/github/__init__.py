"""GitHub integration via the gh CLI."""

from .pull_request import PullRequestResult, create_pull_request

__all__ = ["PullRequestResult", "create_pull_request"]
