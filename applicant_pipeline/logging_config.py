"""
Logging setup for the pipeline process.

Console output uses the same format as the API server. When a log directory
is configured, two rotating files are added: application.log (everything at
the active level) and errors.log (ERROR and above).
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from applicant_pipeline.config import Settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_MAX_BYTES = 10 * 1024 * 1024


def configure_logging(settings: Settings, log_to_files: bool = True) -> None:
    level = logging.DEBUG if settings.debug_mode else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)

    if not log_to_files or not settings.log_dir:
        return

    os.makedirs(settings.log_dir, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT)
    root = logging.getLogger()

    app_handler = RotatingFileHandler(
        os.path.join(settings.log_dir, "application.log"),
        maxBytes=_MAX_BYTES,
        backupCount=5,
        encoding="utf-8",
    )
    app_handler.setFormatter(formatter)
    app_handler.setLevel(level)
    root.addHandler(app_handler)

    error_handler = RotatingFileHandler(
        os.path.join(settings.log_dir, "errors.log"),
        maxBytes=_MAX_BYTES,
        backupCount=3,
        encoding="utf-8",
    )
    error_handler.setFormatter(formatter)
    error_handler.setLevel(logging.ERROR)
    root.addHandler(error_handler)

    # googleapiclient logs every discovery-cache miss at WARNING
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
