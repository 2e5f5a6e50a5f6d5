"""
@file logging.py
@brief Centralized logging configuration
@details
Configures application logging with support for file and stdout output.
Safely handles log directory creation and falls back to stdout when the
log directory cannot be written.

@author RainSafe Project
@date 2026-10-19
@version 1.0
@license AGPL-3.0
"""

import logging
import sys
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _resolve_log_dir() -> Optional[str]:
    """
    @brief Pick a writable log directory
    @details
    LOG_DIR wins when set. Otherwise /app/logs (container) is tried first,
    then a local logs/ directory next to the package.
    """
    log_dir = os.getenv("LOG_DIR")
    if log_dir:
        return log_dir

    try:
        container_logs = "/app/logs"
        if os.path.exists(container_logs) and os.access(container_logs, os.W_OK):
            return container_logs
    except (OSError, PermissionError):
        pass

    # this file is in app/core/, so back 2 levels is the project root
    base_dir = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
    local_logs = os.path.join(base_dir, "logs")
    try:
        os.makedirs(local_logs, exist_ok=True)
    except (OSError, PermissionError):
        return None
    return local_logs


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    @brief Configure and return the application logger
    @details
    Sets up logging based on LOG_OUTPUT env var:
    - 'file': Write to <log dir>/app.log
    - 'stdout': Write to console
    - 'both': Write to both (default)
    """
    log_output = os.getenv("LOG_OUTPUT", "both").lower()
    handlers = []

    if log_output in ("stdout", "both"):
        handlers.append(logging.StreamHandler(sys.stdout))

    if log_output in ("file", "both"):
        log_dir = _resolve_log_dir()
        if log_dir:
            try:
                handlers.append(logging.FileHandler(os.path.join(log_dir, "app.log")))
            except (OSError, PermissionError):
                if not any(isinstance(h, logging.StreamHandler) for h in handlers):
                    handlers.append(logging.StreamHandler(sys.stdout))

    # Safety net
    if not handlers:
        handlers.append(logging.StreamHandler(sys.stdout))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logging.getLogger("rainsafe")
