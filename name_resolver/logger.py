"""
Structured logging utilities for the name resolver
Entries are JSON documents handed to a sink callback (stdout by default)
"""
import json
import traceback
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from .config import config


def stdout_sink(log_entry: Dict[str, Any]):
    """Default sink: one JSON line per entry (CloudWatch captures stdout)"""
    print(json.dumps(log_entry, default=str, ensure_ascii=False))


class ResolverLogger:
    """
    Structured logger for the name resolver with a pluggable sink
    """

    def __init__(self, service_name: str = "name-resolver",
                 sink: Optional[Callable[[Dict[str, Any]], None]] = None,
                 debug_enabled: Optional[bool] = None):
        self.service_name = service_name
        self.environment = config.environment
        self.sink = sink or stdout_sink
        self._debug_enabled = debug_enabled

    @property
    def debug_enabled(self) -> bool:
        """Resolved lazily so importing the package never touches Parameter Store"""
        if self._debug_enabled is None:
            self._debug_enabled = config.enable_debug_logging
        return self._debug_enabled

    def _log(self, level: str, message: str, **kwargs):
        """Internal log method with structured format"""
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': level.upper(),
            'service': self.service_name,
            'environment': self.environment,
            'message': message
        }

        if kwargs:
            log_entry.update(kwargs)

        self.sink(log_entry)

    def debug(self, message: str, **kwargs):
        """Log debug message (only if debug enabled)"""
        if self.debug_enabled:
            self._log('debug', message, **kwargs)

    def info(self, message: str, **kwargs):
        """Log info message"""
        self._log('info', message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message"""
        self._log('warning', message, **kwargs)

    def warn(self, message: str, **kwargs):
        """Alias for warning"""
        self.warning(message, **kwargs)

    def error(self, message: str, error: Exception = None, **kwargs):
        """Log error message with optional exception details"""
        log_data = kwargs.copy()

        if error:
            log_data['error_type'] = type(error).__name__
            log_data['error_message'] = str(error)
            log_data['traceback'] = traceback.format_exc()

        self._log('error', message, **log_data)

    def critical(self, message: str, error: Exception = None, **kwargs):
        """Log critical message"""
        log_data = kwargs.copy()

        if error:
            log_data['error_type'] = type(error).__name__
            log_data['error_message'] = str(error)
            log_data['traceback'] = traceback.format_exc()

        self._log('critical', message, **log_data)

    def log_lambda_start(self, function_name: str, event: dict, context = None):
        """Log Lambda function start"""
        log_data = {
            'function_name': function_name,
            'request_id': getattr(context, 'aws_request_id', 'unknown') if context else 'unknown',
            'event_keys': list(event.keys()) if isinstance(event, dict) else 'non-dict',
        }

        # Only scalar values and list sizes, raw names may be personal data
        if isinstance(event, dict):
            safe_event = {}
            for key, value in event.items():
                if isinstance(value, (str, int, float, bool)):
                    safe_event[key] = value
                elif isinstance(value, list):
                    safe_event[key] = f"list[{len(value)}]"
                else:
                    safe_event[key] = str(type(value).__name__)
            log_data['event'] = safe_event

        self._log('info', f"Lambda function {function_name} started", **log_data)

    def log_lambda_end(self, function_name: str, success: bool = True, duration_ms: float = None, **kwargs):
        """Log Lambda function completion"""
        log_data = {
            'function_name': function_name,
            'success': success,
        }

        if duration_ms is not None:
            log_data['duration_ms'] = round(duration_ms, 2)

        log_data.update(kwargs)

        level = 'info' if success else 'error'
        message = f"Lambda function {function_name} {'completed' if success else 'failed'}"

        self._log(level, message, **log_data)

    def log_resolution(self, kind: str, original: str, resolved: str, attempts: int = 0, **kwargs):
        """Log the outcome of one name resolution (debug level)"""
        if not self.debug_enabled:
            return

        log_data = {
            'kind': kind,
            'original': original,
            'resolved': resolved,
            'renamed': original != resolved,
            'attempts': attempts
        }
        log_data.update(kwargs)

        self._log('debug', f"Resolved {kind}", **log_data)

    def log_registry_operation(self, store: str, operation: str, success: bool = True, **kwargs):
        """Log registry store operation"""
        log_data = {
            'store': store,
            'operation': operation,
            'success': success
        }

        log_data.update(kwargs)

        level = 'info' if success else 'error'
        message = f"Registry {operation} on {store} {'succeeded' if success else 'failed'}"

        self._log(level, message, **log_data)


# Global logger instances
logger = ResolverLogger("name-resolver")
resolver_logger = ResolverLogger("name-resolution-service")
registry_logger = ResolverLogger("used-name-registry")


def get_logger(service_name: str = "name-resolver",
               sink: Optional[Callable[[Dict[str, Any]], None]] = None) -> ResolverLogger:
    """Get logger instance for specific service"""
    return ResolverLogger(service_name, sink=sink)
