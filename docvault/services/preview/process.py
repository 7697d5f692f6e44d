from __future__ import annotations

import logging
import os
import signal
import subprocess
from dataclasses import dataclass
from pathlib import Path

from docvault.services.documents.errors import ConversionFailed, TimeoutExceeded

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolResult:
    returncode: int
    stdout: str
    stderr: str


def _kill_tree(proc: subprocess.Popen) -> None:
    try:
        if os.name == "nt":
            proc.kill()
        else:
            os.killpg(proc.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError, OSError):
        try:
            proc.kill()
        except OSError:
            pass


def run_tool(cmd: list[str], *, timeout_s: float, cwd: Path | None = None, env: dict | None = None) -> ToolResult:
    """
    Run an external converter with a hard timeout.

    The child gets its own session so a timeout kills the whole process group
    (soffice forks soffice.bin). Raises `TimeoutExceeded` on timeout and
    `ConversionFailed` when the executable cannot be started.
    """
    logger.debug("Running %s (timeout=%ss)", cmd, timeout_s)
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=str(cwd) if cwd else None,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            shell=False,
            start_new_session=(os.name != "nt"),
        )
    except OSError as e:
        raise ConversionFailed(f"failed to start {cmd[0]}: {e}") from e

    try:
        out, err = proc.communicate(timeout=timeout_s)
    except subprocess.TimeoutExpired as e:
        _kill_tree(proc)
        proc.communicate()
        raise TimeoutExceeded(f"{Path(cmd[0]).name} exceeded {timeout_s}s") from e

    return ToolResult(returncode=int(proc.returncode), stdout=out or "", stderr=err or "")
