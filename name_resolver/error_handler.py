"""
AWS error handling utilities for the name resolver
"""
from typing import Dict, Any
from botocore.exceptions import ClientError, BotoCoreError
from pynamodb.exceptions import (
    PynamoDBException, DoesNotExist, QueryError, ScanError,
    UpdateError, DeleteError, PutError, GetError
)
from .constants import HTTPConstants, DatabaseConstants
from .exceptions import DynamoDBError
from .logger import registry_logger as logger


def is_conditional_check_failure(error: Exception) -> bool:
    """True if a conditional write lost against an existing item"""
    if isinstance(error, PynamoDBException):
        return getattr(error, 'cause_response_code', None) == DatabaseConstants.CONDITIONAL_CHECK_FAILED
    if isinstance(error, ClientError):
        return error.response.get('Error', {}).get('Code') == DatabaseConstants.CONDITIONAL_CHECK_FAILED
    return False


class AWSErrorHandler:
    """
    Centralized AWS error handling for registry stores
    """

    @staticmethod
    def handle_dynamodb_error(error: Exception, operation: str, table_name: str = None) -> Dict[str, Any]:
        """
        Handle DynamoDB-related errors

        Args:
            error: The exception that occurred
            operation: The operation being performed
            table_name: Optional table name for context

        Returns:
            Standardized error response
        """
        error_context = {
            'operation': operation,
            'table_name': table_name or 'unknown',
            'error_type': type(error).__name__,
            'error_message': str(error)
        }

        if isinstance(error, DoesNotExist):
            logger.warning("DynamoDB item not found", **error_context)
            return {
                'success': False,
                'error_type': 'NotFound',
                'error_message': 'The requested item was not found',
                'status_code': HTTPConstants.NOT_FOUND,
                'retryable': False
            }

        elif is_conditional_check_failure(error):
            logger.debug("DynamoDB conditional check failed", **error_context)
            return {
                'success': False,
                'error_type': 'ConditionalCheckFailed',
                'error_message': 'The item already exists',
                'status_code': HTTPConstants.CONFLICT,
                'retryable': False
            }

        elif isinstance(error, (GetError, QueryError, ScanError, UpdateError, DeleteError, PutError)):
            cause = getattr(error, 'cause_response_code', None)
            if cause in DatabaseConstants.THROTTLING_ERRORS:
                logger.warning("DynamoDB throttled", aws_error_code=cause, **error_context)
                return {
                    'success': False,
                    'error_type': 'ThrottlingError',
                    'error_message': 'Database is temporarily busy. Please try again.',
                    'status_code': HTTPConstants.TOO_MANY_REQUESTS,
                    'retryable': True
                }

            logger.error(f"DynamoDB operation failed: {operation}", error=error, **error_context)
            return {
                'success': False,
                'error_type': 'DatabaseError',
                'error_message': f'Database operation failed: {operation}',
                'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                'retryable': True
            }

        elif isinstance(error, PynamoDBException):
            logger.error("PynamoDB error occurred", error=error, **error_context)
            return {
                'success': False,
                'error_type': 'DatabaseError',
                'error_message': 'Database operation failed',
                'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                'retryable': True
            }

        elif isinstance(error, ClientError):
            error_code = error.response.get('Error', {}).get('Code', 'Unknown')
            error_context['aws_error_code'] = error_code

            logger.error("DynamoDB ClientError", error=error, **error_context)

            if error_code in DatabaseConstants.THROTTLING_ERRORS:
                return {
                    'success': False,
                    'error_type': 'ThrottlingError',
                    'error_message': 'Database is temporarily busy. Please try again.',
                    'status_code': HTTPConstants.TOO_MANY_REQUESTS,
                    'retryable': True
                }
            elif error_code == 'ResourceNotFoundException':
                return {
                    'success': False,
                    'error_type': 'ResourceNotFound',
                    'error_message': 'Database resource not found',
                    'status_code': HTTPConstants.NOT_FOUND,
                    'retryable': False
                }
            else:
                return {
                    'success': False,
                    'error_type': 'AWSError',
                    'error_message': f'AWS error: {error_code}',
                    'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                    'retryable': True
                }

        elif isinstance(error, BotoCoreError):
            logger.error("AWS client error", error=error, **error_context)
            return {
                'success': False,
                'error_type': 'AWSError',
                'error_message': 'AWS client error occurred',
                'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                'retryable': True
            }

        else:
            logger.error("Unexpected database error", error=error, **error_context)
            return {
                'success': False,
                'error_type': 'DatabaseError',
                'error_message': 'Unexpected database error occurred',
                'status_code': HTTPConstants.INTERNAL_SERVER_ERROR,
                'retryable': False
            }

    @staticmethod
    def to_exception(error: Exception, operation: str, table_name: str = None) -> DynamoDBError:
        """
        Build the DynamoDBError raised for a failed registry operation

        Args:
            error: The exception that occurred
            operation: The operation being performed
            table_name: Optional table name for context

        Returns:
            DynamoDBError carrying the standardized response
        """
        error_response = AWSErrorHandler.handle_dynamodb_error(error, operation, table_name)
        return DynamoDBError(
            error_response['error_message'],
            operation=operation,
            table=table_name,
            original_error=str(error),
            retryable=error_response['retryable']
        )


# Global error handler instance
error_handler = AWSErrorHandler()
