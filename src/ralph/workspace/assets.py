"""Bundled stage templates and skill files, and their sync into worktrees.

Agents run with the worktree as their cwd and read skill instructions from
``.ralph/_agents/skills/<name>/skill.md``. The files ship inside the package
and are re-extracted only when their content hash changes.
"""

import hashlib
import shutil
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Dict, Optional

from ..core.config import RALPH_DIR
from ..utils.rich_logging import ContextLogger, get_logger

AGENTS_PREFIX = "_agents"
HASH_FILE = ".assets-hash"


def _asset_root() -> Traversable:
    return resources.files("ralph") / "assets"


def _walk(node: Traversable, prefix: str, out: Dict[str, str]) -> None:
    for child in node.iterdir():
        relative = f"{prefix}/{child.name}" if prefix else child.name
        if child.is_dir():
            _walk(child, relative, out)
        elif child.name.endswith(".md"):
            out[relative] = child.read_text(encoding="utf-8")


def bundled_assets(prefix: Optional[str] = None) -> Dict[str, str]:
    """Map of relative path (e.g. ``config/plan.md``) to content."""
    assets: Dict[str, str] = {}
    _walk(_asset_root(), "", assets)
    if prefix:
        assets = {k: v for k, v in assets.items() if k.startswith(f"{prefix}/")}
    return assets


def get_bundled_asset(relative_path: str) -> Optional[str]:
    return bundled_assets().get(relative_path)


def assets_hash(prefix: Optional[str] = None) -> str:
    digest = hashlib.sha256()
    for path, content in sorted(bundled_assets(prefix).items()):
        digest.update(path.encode())
        digest.update(b"\0")
        digest.update(content.encode())
    return digest.hexdigest()[:16]


def needs_extraction(target_dir: Path, prefix: Optional[str] = None) -> bool:
    hash_file = Path(target_dir) / HASH_FILE
    try:
        return hash_file.read_text().strip() != assets_hash(prefix)
    except OSError:
        return True


def extract_assets(target_dir: Path, prefix: Optional[str] = None) -> int:
    """Write bundled assets under `target_dir`. Returns the number of files written."""
    target_dir = Path(target_dir)
    count = 0
    for relative_path, content in bundled_assets(prefix).items():
        destination = target_dir / relative_path
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(content, encoding="utf-8")
        count += 1
    return count


def sync_agents_to_worktree(worktree_dir: Path, logger: Optional[ContextLogger] = None) -> Path:
    """Ensure ``<worktree>/.ralph/_agents`` matches the bundled skills.

    Only the ``_agents`` subtree is replaced; the lock and session files that
    share ``.ralph/`` are left alone.

    Returns:
        The worktree's ``.ralph`` directory
    """
    log = get_logger(__name__, logger)
    ralph_dir = Path(worktree_dir) / RALPH_DIR

    if not needs_extraction(ralph_dir, AGENTS_PREFIX):
        log.debug(f"Agents already up to date in {ralph_dir}")
        return ralph_dir

    shutil.rmtree(ralph_dir / AGENTS_PREFIX, ignore_errors=True)
    ralph_dir.mkdir(parents=True, exist_ok=True)
    written = extract_assets(ralph_dir, AGENTS_PREFIX)
    (ralph_dir / HASH_FILE).write_text(assets_hash(AGENTS_PREFIX))

    log.debug(f"Extracted {written} agent files to {ralph_dir}")
    return ralph_dir
