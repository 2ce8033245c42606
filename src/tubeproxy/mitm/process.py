"""Process management for the mitmdump filtering proxy."""

import logging
import os
import subprocess
import sys
from pathlib import Path

from tubeproxy.config import MitmConfig
from tubeproxy.process import is_process_running as shared_is_process_running
from tubeproxy.process import stop_process as shared_stop_process
from tubeproxy.process import write_pid

logger = logging.getLogger(__name__)


def get_pid_file(config_dir: Path) -> Path:
    """Get the path to the mitmproxy PID file."""
    return config_dir / ".mitm.lock"


def get_log_file(config_dir: Path) -> Path:
    """Get the path to the mitmproxy log file."""
    return config_dir / "mitm.log"


def is_running(config_dir: Path) -> tuple[bool, int | None]:
    """Check if mitmproxy is currently running.

    Returns:
        Tuple of (is_running, pid or None)
    """
    return shared_is_process_running(get_pid_file(config_dir))


def build_command(mitmdump_path: Path, script_path: Path, config: MitmConfig) -> list[str]:
    """Build the mitmdump command line for ``config``."""
    cmd = [
        str(mitmdump_path),
        "--listen-host",
        config.listen_host,
        "--listen-port",
        str(config.port),
        "--set",
        "stream_large_bodies=10m",
    ]
    if config.mode and config.mode != "regular":
        cmd.extend(["--mode", config.mode])
    cmd.extend(["-s", str(script_path)])
    return cmd


def start_mitm(config_dir: Path, config: MitmConfig, detach: bool = False) -> None:
    """Start the filtering proxy.

    Args:
        config_dir: Configuration directory for PID and log files
        config: Mitmproxy configuration
        detach: Run in background mode
    """
    running, pid = is_running(config_dir)
    if running:
        logger.error(f"Mitmproxy is already running with PID {pid}")
        sys.exit(1)

    pid_file = get_pid_file(config_dir)
    log_file = get_log_file(config_dir)

    # Get the bin directory from the current Python interpreter's location
    venv_bin = Path(sys.executable).parent
    mitmdump_path = venv_bin / "mitmdump"

    if not mitmdump_path.exists():
        logger.error(f"mitmdump not found at {mitmdump_path}")
        logger.error("Make sure mitmproxy is installed: pip install mitmproxy")
        sys.exit(1)

    script_path = Path(__file__).parent / "script.py"
    if not script_path.exists():
        logger.error(f"Addon script not found at {script_path}")
        sys.exit(1)

    cmd = build_command(mitmdump_path, script_path, config)

    env = os.environ.copy()
    env["TUBEPROXY_CONFIG_DIR"] = str(config_dir)
    if config.debug:
        env["TUBEPROXY_DEBUG"] = "true"

    logger.info(f"Starting mitmproxy ({config.mode} mode) on {config.listen_host}:{config.port}")

    if detach:
        logger.info(f"Log file: {log_file}")
        config_dir.mkdir(parents=True, exist_ok=True)
        try:
            with log_file.open("w") as log:
                # S603: Command construction is safe - we control the mitmdump path
                process = subprocess.Popen(  # noqa: S603
                    cmd,
                    stdout=log,
                    stderr=subprocess.STDOUT,
                    start_new_session=True,  # Detach from parent process group
                    env=env,
                )

            write_pid(pid_file, process.pid)
            logger.info(f"Mitmproxy started with PID {process.pid}")

        except FileNotFoundError:
            logger.error("mitmdump command not found")
            sys.exit(1)

    else:
        try:
            # S603: Command construction is safe - we control the mitmdump path
            result = subprocess.run(cmd, env=env)  # noqa: S603
            sys.exit(result.returncode)
        except FileNotFoundError:
            logger.error("mitmdump command not found")
            sys.exit(1)
        except KeyboardInterrupt:
            sys.exit(130)


def stop_mitm(config_dir: Path) -> bool:
    """Stop the filtering proxy.

    Returns:
        True if the proxy was stopped successfully, False otherwise
    """
    pid_file = get_pid_file(config_dir)
    if not pid_file.exists():
        logger.error("No mitmproxy server is running (PID file not found)")
        return False
    return shared_stop_process(pid_file)


def get_mitm_status(config_dir: Path) -> dict[str, bool | int | str | None]:
    """Get the status of the filtering proxy."""
    running, pid = is_running(config_dir)
    status: dict[str, bool | int | str | None] = {"running": running, "pid": pid}
    if running:
        log_file = get_log_file(config_dir)
        status["pid_file"] = str(get_pid_file(config_dir))
        status["log_file"] = str(log_file) if log_file.exists() else None
    return status
