"""Stage template loading: front-matter parsing, issue substitution, skill checks.

A stage template is a markdown file with YAML front-matter::

    ---
    command: claude
    args:
      - "-p"
      - "--allowedTools=Read,Grep"
    ---
    Research ${issue.id}: ${issue.title}

The front-matter must declare ``command``. ``args`` entries and the body (the
prompt) have ``${issue.id}``, ``${issue.title}`` and ``${issue.description}``
replaced in a single pass.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

import yaml

from ..errors import (
    ConfigError,
    ConfigNotFoundError,
    MissingCommandError,
    MissingFrontMatterError,
    MissingSkillFileError,
)
from .config import RALPH_DIR
from .issue import Issue
from .models import StepConfig

logger = logging.getLogger(__name__)

_FRONT_MATTER_RE = re.compile(r"^---\n(.*?)\n---\n?(.*)$", re.DOTALL)
_PLACEHOLDER_RE = re.compile(r"\$\{issue\.(id|title|description)\}")
_SKILL_PATH_RE = re.compile(
    r"(?:" + re.escape(RALPH_DIR) + r"/)?(_agents/skills/[A-Za-z0-9_-]+/skill\.md)"
)


def parse_front_matter(content: str) -> Tuple[str, str]:
    """Split a template into (front-matter, trimmed body)."""
    match = _FRONT_MATTER_RE.match(content)
    if not match:
        raise MissingFrontMatterError()
    return match.group(1), match.group(2).strip()


def substitute_variables(template: str, issue: Issue) -> str:
    """Replace issue placeholders. Substituted values are never re-scanned."""
    values = {"id": issue.id, "title": issue.title, "description": issue.description}
    return _PLACEHOLDER_RE.sub(lambda m: values[m.group(1)], template)


def extract_skill_paths(text: str) -> List[str]:
    """Skill file references in `text`, in order of first appearance."""
    seen: List[str] = []
    for match in _SKILL_PATH_RE.finditer(text):
        path = match.group(0)
        if path not in seen:
            seen.append(path)
    return seen


def skill_file_path(reference: str, worktree_dir: Path) -> Path:
    """Resolve a skill reference to its file under the worktree's hidden directory."""
    relative = _SKILL_PATH_RE.fullmatch(reference).group(1)
    return Path(worktree_dir) / RALPH_DIR / relative


def validate_skill_paths(prompt: str, worktree_dir: Path) -> None:
    """Raise MissingSkillFileError naming every referenced skill file that is absent."""
    missing = [
        ref for ref in extract_skill_paths(prompt)
        if not skill_file_path(ref, worktree_dir).is_file()
    ]
    if missing:
        raise MissingSkillFileError(missing, Path(worktree_dir))


def load_step_config(
    template_path: Path,
    issue: Issue,
    worktree_dir: Optional[Path] = None,
) -> StepConfig:
    """Render a stage template for an issue.

    Args:
        template_path: Stage template file
        issue: Issue whose fields fill the placeholders
        worktree_dir: When given, skill files referenced by the prompt must exist

    Returns:
        Rendered StepConfig

    Raises:
        ConfigNotFoundError, MissingFrontMatterError, MissingCommandError,
        MissingSkillFileError
    """
    template_path = Path(template_path)
    if not template_path.is_file():
        raise ConfigNotFoundError(template_path)

    front_matter, body = parse_front_matter(template_path.read_text())
    try:
        data = yaml.safe_load(front_matter) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML front-matter in {template_path}: {e}") from e

    command = data.get("command") if isinstance(data, dict) else None
    if not command or not isinstance(command, str):
        raise MissingCommandError(template_path)

    raw_args = data.get("args")
    if raw_args is None:
        raw_args = []
    if not isinstance(raw_args, list):
        raise ConfigError(f"'args' must be a list of strings in {template_path}")

    args = tuple(substitute_variables(str(arg), issue) for arg in raw_args)
    prompt = substitute_variables(body, issue)

    if worktree_dir is not None:
        validate_skill_paths(prompt, worktree_dir)

    logger.debug(f"Loaded {template_path.name}: {command} with {len(args)} args")
    return StepConfig(command=command, args=args, prompt=prompt)
