"""
Structured logging for the hub.
Carries the HTTP request id or the Socket.IO session id of the event being
handled into every log line.
"""
import logging
import uuid
import time
import json
from contextvars import ContextVar
from typing import Optional, Any, Dict

from relay_hub.core.config import settings

# Context variables for request/event-scoped data
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
request_start_var: ContextVar[Optional[float]] = ContextVar('request_start', default=None)
socket_id_var: ContextVar[Optional[str]] = ContextVar('socket_id', default=None)


def get_request_id() -> Optional[str]:
    """Get current request ID from context."""
    return request_id_var.get()


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid.uuid4())[:8]


def configure_logging(level: Optional[str] = None) -> None:
    """Set up the root handler once, at the level from settings."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format='%(asctime)s %(levelname)s %(name)s %(message)s',
    )


class StructuredLogger:
    """
    Structured JSON logger with request/socket context support.
    Logs in JSON format for production, human-readable for development.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.name = name

    @property
    def _is_json(self) -> bool:
        return settings.APP_ENV == 'production'

    def _build_log_record(
        self,
        level: str,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        error: Optional[Exception] = None,
    ) -> Dict[str, Any]:
        """Build a structured log record."""
        record = {
            'timestamp': time.strftime('%Y-%m-%dT%H:%M:%S%z'),
            'level': level,
            'logger': self.name,
            'message': message,
            'env': settings.APP_ENV,
        }

        request_id = get_request_id()
        if request_id:
            record['request_id'] = request_id

        socket_id = socket_id_var.get()
        if socket_id:
            record['sid'] = socket_id

        start = request_start_var.get()
        if start:
            record['duration_ms'] = round((time.time() - start) * 1000, 2)

        if extra:
            record['context'] = extra

        if error:
            record['error'] = {
                'type': type(error).__name__,
                'message': str(error),
            }

        return record

    def _format_message(self, record: Dict[str, Any]) -> str:
        """Format log record for output."""
        if self._is_json:
            return json.dumps(record, default=str)

        # Human-readable format for development
        parts = [
            f"[{record.get('request_id') or record.get('sid') or '-'}]",
            f"[{record['env']}]",
            record['message'],
        ]

        if 'context' in record:
            parts.append(f"| {record['context']}")

        if 'error' in record:
            parts.append(f"| error={record['error']['type']}: {record['error']['message']}")

        if 'duration_ms' in record:
            parts.append(f"| {record['duration_ms']}ms")

        return ' '.join(parts)

    def debug(self, message: str, **extra):
        """Log debug message."""
        if not self.logger.isEnabledFor(logging.DEBUG):
            return
        record = self._build_log_record('DEBUG', message, extra if extra else None)
        self.logger.debug(self._format_message(record))

    def info(self, message: str, **extra):
        """Log info message."""
        record = self._build_log_record('INFO', message, extra if extra else None)
        self.logger.info(self._format_message(record))

    def warning(self, message: str, error: Optional[Exception] = None, **extra):
        """Log warning message."""
        record = self._build_log_record('WARNING', message, extra if extra else None, error)
        self.logger.warning(self._format_message(record))

    def error(self, message: str, error: Optional[Exception] = None, **extra):
        """Log error message."""
        record = self._build_log_record('ERROR', message, extra if extra else None, error)
        self.logger.error(self._format_message(record))


def get_logger(name: str = 'relay-hub') -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name)


# Pre-configured loggers for different domains
api_logger = get_logger('relay-hub.api')
ws_logger = get_logger('relay-hub.realtime')
presence_logger = get_logger('relay-hub.presence')
relay_logger = get_logger('relay-hub.relay')
