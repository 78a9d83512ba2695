"""
Logging configuration.

Rotating file log (LOG_DIR/posadmin.log, 5MB x 5) plus stdout, both attached
to app.logger so handlers keep using current_app.logger.
"""
import logging
import os
from logging.handlers import RotatingFileHandler

from flask import has_request_context, request


class RequestFormatter(logging.Formatter):
    """Adds the request URL and client address when a request is active."""

    def format(self, record):
        if has_request_context():
            record.url = request.url
            record.remote_addr = request.remote_addr
        else:
            record.url = None
            record.remote_addr = None
        return super().format(record)


def setup_logging(app) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)

    # create_app may run many times per process (tests); app.logger is shared by name
    for handler in list(app.logger.handlers):
        if getattr(handler, "_posadmin", False):
            app.logger.removeHandler(handler)
            handler.close()

    if not app.config.get("TESTING"):
        log_dir = app.config.get("LOG_DIR")
        try:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                os.path.join(log_dir, "posadmin.log"),
                maxBytes=5 * 1024 * 1024,
                backupCount=5,
            )
        except OSError:
            # Read-only filesystem: stdout only
            app.logger.warning("File logging disabled; cannot write to %s", log_dir)
        else:
            file_handler.setFormatter(RequestFormatter(
                "%(asctime)s | %(levelname)s | %(name)s | %(remote_addr)s | %(url)s | %(message)s"
            ))
            file_handler.setLevel(level)
            file_handler._posadmin = True
            app.logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
    stream_handler.setLevel(level)
    stream_handler._posadmin = True
    app.logger.addHandler(stream_handler)

    app.logger.setLevel(level)
