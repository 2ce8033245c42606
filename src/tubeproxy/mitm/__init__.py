"""Mitmproxy integration: response filtering addon and process management."""

from tubeproxy.mitm.process import get_mitm_status, is_running, start_mitm, stop_mitm

__all__ = ["get_mitm_status", "is_running", "start_mitm", "stop_mitm"]
