"""
Lambda validation decorators for the name resolver
"""
import time
from functools import wraps
from typing import List, Callable
from .constants import HTTPConstants, NameKinds
from .exceptions import NameResolverError, ValidationError
from .text_utils import validate_required_fields, validate_name_kind
from .utils import create_error_response
from .logger import logger


def direct_lambda_handler(
    required_fields: List[str] = None,
    kind_validation: bool = False,
    valid_kinds: List[str] = None,
    log_requests: bool = True
):
    """
    Decorator for direct Lambda invocation handlers with request validation

    Args:
        required_fields: List of required fields in the event
        kind_validation: Whether to validate the kind field
        valid_kinds: List of valid name kinds (default from constants)
        log_requests: Whether to log request start/end
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(event, context):
            start_time = time.time()
            function_name = getattr(func, '__name__', 'unknown')

            if log_requests:
                logger.log_lambda_start(function_name, event, context)

            def log_end(success: bool, **kwargs):
                if log_requests:
                    duration_ms = (time.time() - start_time) * 1000
                    logger.log_lambda_end(function_name, success, duration_ms, **kwargs)

            try:
                if not isinstance(event, dict):
                    raise ValidationError('Event must be a JSON object')

                if required_fields:
                    missing_fields = validate_required_fields(event, required_fields)
                    if missing_fields:
                        log_end(False, error='missing fields')
                        return create_error_response(
                            HTTPConstants.BAD_REQUEST,
                            f'Missing required fields: {", ".join(missing_fields)}',
                            {'missing_fields': missing_fields}
                        )

                if kind_validation and 'kind' in event:
                    kinds = valid_kinds or NameKinds.ALL_KINDS

                    if not validate_name_kind(event.get('kind'), kinds):
                        log_end(False, error='invalid kind')
                        return create_error_response(
                            HTTPConstants.BAD_REQUEST,
                            f'Invalid kind. Must be one of: {", ".join(kinds)}',
                            {'valid_kinds': kinds}
                        )

                result = func(event, context)

                log_end(True)
                return result

            except ValidationError as e:
                log_end(False, error=e.message)
                return create_error_response(
                    HTTPConstants.BAD_REQUEST,
                    e.message,
                    e.details
                )

            except ValueError as e:
                # Validation or parsing errors
                log_end(False, error=str(e))
                return create_error_response(
                    HTTPConstants.BAD_REQUEST,
                    str(e)
                )

            except NameResolverError as e:
                log_end(False, error=e.message)
                logger.error(f"Name resolver error in {function_name}", error=e, error_code=e.error_code)
                return create_error_response(
                    HTTPConstants.INTERNAL_SERVER_ERROR,
                    e.message,
                    {'error_code': e.error_code}
                )

            except Exception as e:
                log_end(False, error=str(e))
                logger.error(f"Unexpected error in {function_name}", error=e)

                return create_error_response(
                    HTTPConstants.INTERNAL_SERVER_ERROR,
                    'Internal server error occurred'
                )

        return wrapper
    return decorator
