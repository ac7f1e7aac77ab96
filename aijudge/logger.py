"""Logging setup shared by the API server and the CLI."""
import json
import logging
import sys
from datetime import datetime
from typing import Optional

CONTEXT_FIELDS = ("case_id", "side")


class StructuredFormatter(logging.Formatter):
    """Human-readable lines in development, one JSON object per line otherwise."""

    def __init__(self, include_json: bool = False):
        super().__init__()
        self.include_json = include_json

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

        if self.include_json:
            log_data = {
                "timestamp": timestamp,
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
                "module": record.module,
                "function": record.funcName,
                "line": record.lineno,
            }
            for field in CONTEXT_FIELDS:
                if hasattr(record, field):
                    log_data[field] = getattr(record, field)
            if record.exc_info:
                log_data["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_data, ensure_ascii=False)

        prefix = f"[{timestamp}] [{record.levelname}] [{record.name}]"
        context = [f"{field}={getattr(record, field)}" for field in CONTEXT_FIELDS if hasattr(record, field)]
        context_str = f" ({', '.join(context)})" if context else ""
        result = f"{prefix}{context_str} {record.getMessage()}"
        if record.exc_info:
            result += "\n" + self.formatException(record.exc_info)
        return result


class ContextLogger:
    """Thin wrapper that turns keyword arguments into record attributes.

    ``logger.info("Parsed file", case_id=case_id, side="A")``
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _log(self, level: int, msg: str, **kwargs):
        exc_info = kwargs.pop("exc_info", False)
        extra = {k: v for k, v in kwargs.items() if v is not None}
        self.logger.log(level, msg, extra=extra, exc_info=exc_info)

    def debug(self, msg: str, **kwargs):
        self._log(logging.DEBUG, msg, **kwargs)

    def info(self, msg: str, **kwargs):
        self._log(logging.INFO, msg, **kwargs)

    def warning(self, msg: str, **kwargs):
        self._log(logging.WARNING, msg, **kwargs)

    def error(self, msg: str, **kwargs):
        self._log(logging.ERROR, msg, **kwargs)

    def exception(self, msg: str, **kwargs):
        kwargs["exc_info"] = True
        self._log(logging.ERROR, msg, **kwargs)


def setup_logging(log_level: str = "INFO", environment: str = "development",
                  stream: Optional[object] = None):
    """Configure the root logger. Safe to call more than once."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(StructuredFormatter(include_json=environment == "production"))
    root_logger.addHandler(handler)

    for noisy in ("urllib3", "pdfminer", "multipart", "python_multipart", "PIL"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger("aijudge").setLevel(level)
    ContextLogger(__name__).info(f"Logging configured: level={log_level.upper()}, env={environment}")


def get_logger(name: str) -> ContextLogger:
    return ContextLogger(name)
