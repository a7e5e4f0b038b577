"""
Blueprintgen Writer - Local filesystem output

The generator only needs a handful of filesystem capabilities; this module
implements them on the local disk and turns OSError into OutputError.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from blueprintgen.errors import OutputError

logger = logging.getLogger(__name__)


class LocalFileSystem:
    """Output writer backed by the local filesystem."""

    def mkdir(self, path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(f"cannot create directory {path}: {e}", str(path)) from e

    def write_file(self, path: Path, content: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise OutputError(f"cannot write {path}: {e}", str(path)) from e

    def copy_file(self, src: Path, dst: Path) -> None:
        try:
            shutil.copyfile(src, dst)
        except OSError as e:
            raise OutputError(f"cannot copy {src} to {dst}: {e}", str(dst)) from e

    def chmod(self, path: Path, mode: int) -> None:
        try:
            os.chmod(path, mode)
        except OSError as e:
            raise OutputError(f"cannot chmod {path}: {e}", str(path)) from e

    def remove_all(self, path: Path) -> None:
        """Remove a file or directory tree; missing paths are ignored."""
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            elif path.exists() or path.is_symlink():
                path.unlink()
        except OSError as e:
            raise OutputError(f"cannot remove {path}: {e}", str(path)) from e

    def move(self, src: Path, dst: Path) -> None:
        try:
            os.replace(src, dst)
        except OSError as e:
            raise OutputError(f"cannot move {src} to {dst}: {e}", str(dst)) from e

    def exists(self, path: Path) -> bool:
        return path.exists()
