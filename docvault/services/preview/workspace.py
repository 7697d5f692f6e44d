from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from uuid import uuid4

logger = logging.getLogger(__name__)


class TempWorkspace:
    """
    Private scratch directory for one conversion call.

    Use as a context manager: the directory is created on enter and removed on
    every exit path. Removal failures are logged and never replace the outcome
    of the block.
    """

    def __init__(self, *, prefix: str = "docvault", base_dir: str | Path | None = None):
        self.prefix = prefix
        self.base_dir = Path(base_dir) if base_dir is not None else Path(tempfile.gettempdir())
        self.path: Path | None = None

    def __enter__(self) -> Path:
        # Explicit mkdir under gettempdir() rather than mkdtemp(): some hosts deny writes to
        # mkdtemp() directories while allowing them under the temp root.
        path = self.base_dir / f"{self.prefix}_{uuid4().hex}"
        path.mkdir(parents=True, exist_ok=False)
        path.chmod(0o700)
        self.path = path
        return path

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.cleanup()
        return False

    def cleanup(self) -> None:
        if self.path is None:
            return
        path, self.path = self.path, None
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error("Error cleaning up temp workspace %s: %s", path, e)
