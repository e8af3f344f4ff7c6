"""Discover install/build/test commands from a worktree README."""

import re
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

_FENCE = r"```(?:bash|sh)?\n({cmd}[^\n]*)\n```"
_PACKAGE_MANAGER = r"(?:npm|yarn|pnpm|bun)\s+"

INSTALL_RE = re.compile(_FENCE.format(cmd=_PACKAGE_MANAGER + r"install"), re.IGNORECASE)
BUILD_RE = re.compile(_FENCE.format(cmd=_PACKAGE_MANAGER + r"run\s+build"), re.IGNORECASE)
TEST_RE = re.compile(_FENCE.format(cmd=_PACKAGE_MANAGER + r"(?:run\s+)?test"), re.IGNORECASE)


@dataclass
class SetupCommands:
    install: Optional[str] = None
    build: Optional[str] = None
    test: Optional[str] = None

    def in_order(self) -> Iterator[Tuple[str, str]]:
        """(kind, command) pairs for the commands that were found."""
        for kind in ("install", "build", "test"):
            command = getattr(self, kind)
            if command:
                yield kind, command


def extract_setup_commands(readme: str) -> SetupCommands:
    """Single-line fenced code blocks running a JS package manager."""

    def first(pattern: re.Pattern) -> Optional[str]:
        match = pattern.search(readme)
        return match.group(1).strip() if match else None

    return SetupCommands(install=first(INSTALL_RE), build=first(BUILD_RE), test=first(TEST_RE))
