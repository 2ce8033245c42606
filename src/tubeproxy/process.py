"""PID file helpers shared by the CLI and the mitm process manager."""

import logging
import os
import signal
import time
from pathlib import Path

logger = logging.getLogger(__name__)


def write_pid(pid_file: Path, pid: int) -> None:
    pid_file.parent.mkdir(parents=True, exist_ok=True)
    pid_file.write_text(str(pid))


def read_pid(pid_file: Path) -> int | None:
    """Read a PID file; None if it is missing or does not hold a number."""
    try:
        return int(pid_file.read_text().strip())
    except (OSError, ValueError):
        return None


def is_process_running(pid_file: Path) -> tuple[bool, int | None]:
    """Check whether the process recorded in ``pid_file`` is alive.

    A stale PID file (process gone) is removed.

    Returns:
        Tuple of (is_running, pid or None)
    """
    pid = read_pid(pid_file)
    if pid is None:
        return False, None

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        pid_file.unlink(missing_ok=True)
        return False, None
    except PermissionError:
        # Exists but owned by another user
        return True, pid
    return True, pid


def stop_process(pid_file: Path, timeout: float = 0.5) -> bool:
    """Stop the process recorded in ``pid_file``: SIGTERM, then SIGKILL.

    Returns:
        True if the process was stopped
    """
    pid = read_pid(pid_file)
    if pid is None:
        logger.error(f"Error reading PID file {pid_file}")
        return False

    running, _ = is_process_running(pid_file)
    if not running:
        logger.warning(f"Process was not running (stale PID: {pid})")
        return False

    try:
        os.kill(pid, signal.SIGTERM)
        time.sleep(timeout)
        try:
            os.kill(pid, 0)
            os.kill(pid, signal.SIGKILL)
            logger.info(f"Force killed process (PID: {pid})")
        except ProcessLookupError:
            logger.info(f"Process stopped (PID: {pid})")
        pid_file.unlink(missing_ok=True)
        return True
    except OSError as e:
        logger.error(f"Error stopping process: {e}")
        return False
