"""
Logging utilities for redacting sensitive data from logs and error messages.

Example:
    from llu_uploader.utils.logging_utils import redact_sensitive_data
    safe = redact_sensitive_data({'password': 'abc', 'email': 'bob@example.com'})
    # safe == {'password': '***REDACTED***', 'email': 'bob@example.com'}
"""

import logging
import json
from datetime import datetime, timezone

SENSITIVE_KEYS = {
    'password', 'api_key', 'token', 'secret', 'access_token', 'refresh_token', 'key',
    'authorization', 'api-secret', 'account-id', 'cookie', 'set-cookie', 'authticket',
}

REDACTED = '***REDACTED***'

# Attributes every LogRecord carries; anything else came in through `extra`
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def redact_sensitive_data(obj):
    """
    Recursively redacts sensitive fields in dicts/lists.
    Keys are matched case-insensitively against SENSITIVE_KEYS.
    """
    if isinstance(obj, dict):
        return {
            k: (REDACTED if str(k).lower() in SENSITIVE_KEYS else redact_sensitive_data(v))
            for k, v in obj.items()
        }
    elif isinstance(obj, list):
        return [redact_sensitive_data(i) for i in obj]
    else:
        return obj


class JSONFormatter(logging.Formatter):
    """
    Formats log records as JSON with standard fields.
    """
    def format(self, record):
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_record:
                log_record[key] = redact_sensitive_data(value)
        return json.dumps(log_record, default=str)


def setup_json_logging(level=logging.INFO, output='stdout', file_path=None):
    """
    Set up structured JSON logging for the app.
    Args:
        level: Logging level name or number (default: INFO)
        output: 'stdout' or 'file'
        file_path: Path to log file if output is 'file'
    """
    if isinstance(level, str):
        level = level.upper()
    logger = logging.getLogger()
    logger.setLevel(level)
    # Remove existing handlers
    for h in list(logger.handlers):
        logger.removeHandler(h)
    if output == 'file' and file_path:
        handler = logging.FileHandler(file_path)
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    # httpx logs every request URL at INFO, including the v3 token parameter
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logger
