"""Logging configuration for the Soft Brain package.

Outside of tests every brain event is written to a timestamped file under
``./logs`` (or ``$SOFTBRAIN_LOG_DIR``). Under pytest nothing is written to
disk and only warnings reach stderr.
"""

import logging
import os
import sys
from datetime import UTC, datetime
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_LEVEL_NONE = "NONE"

# Env vars may not be set yet at import time, so also look at sys.modules and argv
_is_testing = (
    "PYTEST_CURRENT_TEST" in os.environ
    or os.environ.get("TESTING") == "1"
    or "pytest" in sys.modules
    or (sys.argv and sys.argv[0].endswith("pytest"))
)

if not _is_testing:
    log_dir = Path(os.environ.get("SOFTBRAIN_LOG_DIR", Path.cwd() / "logs"))
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"brain_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S')}.log"

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.basicConfig(format=LOG_FORMAT, handlers=[file_handler])
    except OSError as exc:
        # Unwritable log directory: stderr only
        logging.basicConfig(format=LOG_FORMAT, level=logging.WARNING)
        logging.getLogger(__name__).warning(
            "Failed to initialize file logging in %s: %s. Falling back to stderr logging.",
            log_dir,
            exc,
        )
else:
    logging.basicConfig(format=LOG_FORMAT, level=logging.WARNING)

logger = logging.getLogger(__name__)


def configure_log_level(level: str) -> None:
    """
    Apply a command-line log level to the brain logger and its file handlers.

    Args:
        level: A standard level name, or ``"NONE"`` to silence the logger.
    """
    level = level.upper()
    if level == LOG_LEVEL_NONE:
        logger.disabled = True
        return
    logger.disabled = False
    logger.setLevel(level)
    for handler in logging.getLogger().handlers + logger.handlers:
        if isinstance(handler, logging.FileHandler):
            handler.setLevel(level)
