"""
takeoff_bridge: fabrication takeoff attributes kept inside DXF drawings.

Command-line entry point: main.py.
"""

from takeoff_bridge.logging_config import (
    setup_logging,
    get_logger,
    configure_default_logging,
    log_timing,
    timed,
    LogContext,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "configure_default_logging",
    "log_timing",
    "timed",
    "LogContext",
]
