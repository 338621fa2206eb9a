import logging
import sys
import uuid
from logging.handlers import RotatingFileHandler
from pathlib import Path

from flask import Flask, g, has_request_context


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        request_id = None
        if has_request_context():
            request_id = getattr(g, "request_id", None)
        record.request_id = request_id or "-"
        return True


def configure_logging(app: Flask, log_dir: str, level: str = "INFO") -> None:
    """Send application logs to stdout and a rotating file under ``log_dir``."""

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] [req=%(request_id)s] %(name)s: %(message)s"
    )
    request_filter = RequestIdFilter()

    if not any(getattr(h, "_workshop", False) for h in root_logger.handlers):
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(formatter)
        stream_handler.addFilter(request_filter)
        stream_handler._workshop = True
        root_logger.addHandler(stream_handler)

        if not app.config.get("TESTING"):
            logs_path = Path(log_dir)
            logs_path.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                logs_path / "workshop.log",
                maxBytes=5 * 1024 * 1024,
                backupCount=5,
            )
            file_handler.setFormatter(formatter)
            file_handler.addFilter(request_filter)
            file_handler._workshop = True
            root_logger.addHandler(file_handler)

    app.logger.setLevel(level)

    @app.before_request
    def assign_request_id():
        g.request_id = uuid.uuid4().hex[:12]
