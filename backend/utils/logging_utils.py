import json
import logging
import uuid
import inspect
import os
from datetime import datetime, timezone
from functools import wraps
from google.cloud import logging as cloud_logging

# Configure the standard logger
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger('chat-notifications')

GCP_ENABLED = False


def configure_logging(enable_cloud_logging=False, log_level='INFO'):
    """Set the log level and attach GCP Cloud Logging when requested.

    Returns True when the Cloud Logging handler was installed.
    """
    global GCP_ENABLED

    level = logging.getLevelName(str(log_level).upper())
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)

    if not enable_cloud_logging or GCP_ENABLED:
        return GCP_ENABLED

    try:
        client = cloud_logging.Client()
        client.setup_logging(log_level=level)
        GCP_ENABLED = True
    except Exception:
        GCP_ENABLED = False
        logger.warning("GCP Cloud Logging could not be initialized. Using standard logging.")

    return GCP_ENABLED


def generate_request_id():
    """Generate a unique request ID for tracing."""
    return str(uuid.uuid4())


class StructuredLogger:
    """Structured logger that formats logs consistently."""

    sensitive_fields = ('password', 'secret', 'private_key', 'credential', 'auth')

    def __init__(self, service_name, request_id=None, user_id=None):
        self.service_name = service_name
        self.request_id = request_id
        self.user_id = user_id

    def with_context(self, request_id=None, user_id=None):
        """Return a copy of this logger bound to one request."""
        return StructuredLogger(
            self.service_name,
            request_id=request_id or generate_request_id(),
            user_id=user_id,
        )

    def _format_log(self, message, additional_data=None):
        """Format log message as structured data."""
        caller_frame = inspect.currentframe().f_back.f_back
        function_name = caller_frame.f_code.co_name
        file_name = os.path.basename(caller_frame.f_code.co_filename)

        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "service": self.service_name,
            "request_id": self.request_id,
            "location": f"{file_name}:{function_name}",
            "message": message
        }

        if self.user_id:
            log_data["user_id"] = self.user_id

        if additional_data:
            log_data["data"] = self._sanitize_data(additional_data)

        return log_data

    def _sanitize_data(self, data):
        """Remove sensitive fields from data before logging."""
        if isinstance(data, list):
            return [self._sanitize_data(item) for item in data]
        if not isinstance(data, dict):
            return data

        sanitized = {}
        for key, value in data.items():
            if any(sensitive in str(key).lower() for sensitive in self.sensitive_fields):
                sanitized[key] = "[REDACTED]"
            else:
                sanitized[key] = self._sanitize_data(value)

        return sanitized

    def debug(self, message, data=None):
        """Log a debug message."""
        log_data = self._format_log(message, data)
        logger.debug(json.dumps(log_data, default=str))
        return log_data

    def info(self, message, data=None):
        """Log an info message."""
        log_data = self._format_log(message, data)
        logger.info(json.dumps(log_data, default=str))
        return log_data

    def warning(self, message, data=None):
        """Log a warning message."""
        log_data = self._format_log(message, data)
        logger.warning(json.dumps(log_data, default=str))
        return log_data

    def error(self, message, data=None, exc_info=None):
        """Log an error message."""
        log_data = self._format_log(message, data)
        logger.error(json.dumps(log_data, default=str), exc_info=exc_info)
        return log_data


def create_logger(service_name):
    """Create a structured logger for a service."""
    return StructuredLogger(service_name)


def _event_id(event):
    # firebase-functions events carry .id, CloudEvents are subscriptable
    event_id = getattr(event, 'id', None)
    if event_id:
        return event_id
    try:
        return event['id']
    except (KeyError, TypeError):
        return None


def log_function_call(log):
    """Decorator to log trigger entry, completion and failure.

    The wrapped function receives a logger bound to the triggering event id
    as the ``log`` keyword argument. Exceptions are logged and re-raised so
    the platform can apply its retry policy.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(event, *args, **kwargs):
            call_log = log.with_context(request_id=_event_id(event))
            call_log.info(f"Function {func.__name__} called", {
                "event_type": type(event).__name__
            })

            try:
                result = func(event, *args, log=call_log, **kwargs)
                call_log.info(f"Function {func.__name__} completed successfully")
                return result

            except Exception as e:
                call_log.error(f"Function {func.__name__} failed: {str(e)}", exc_info=True)
                raise

        return wrapper
    return decorator
