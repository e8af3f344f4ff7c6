"""Atomic file I/O operations."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def atomic_write_text(file_path: Path, content: str, max_retries: int = 3) -> None:
    """
    Atomically write content to a file using temp file + rename.

    The file is either fully written or left untouched, so a reader never
    sees a partial session handle.

    Args:
        file_path: Target file path
        content: Content to write
        max_retries: Maximum number of retry attempts on failure

    Raises:
        OSError: If write fails after all retries
    """
    # Use PID to avoid temp file collisions between processes
    tmp_file = file_path.with_suffix(f"{file_path.suffix}.tmp.{os.getpid()}")

    last_error = None
    for attempt in range(max_retries):
        try:
            tmp_file.write_text(content)
            os.replace(tmp_file, file_path)
            return
        except OSError as e:
            last_error = e
            if attempt < max_retries - 1:
                logger.warning(
                    f"Failed to write {file_path} (attempt {attempt + 1}/{max_retries}): {e}"
                )
        finally:
            if tmp_file.exists():
                try:
                    tmp_file.unlink()
                except OSError:
                    pass

    raise last_error


def atomic_create_text(file_path: Path, content: str) -> bool:
    """
    Create a file with content unless it already exists.

    The content goes to a temp file that is hard-linked into place, so the
    target never exists empty or half-written.

    Returns:
        True if the file was created, False if it already existed
    """
    tmp_file = file_path.with_suffix(f"{file_path.suffix}.tmp.{os.getpid()}")
    try:
        tmp_file.write_text(content)
        os.link(tmp_file, file_path)
        return True
    except FileExistsError:
        return False
    finally:
        try:
            tmp_file.unlink()
        except FileNotFoundError:
            pass
