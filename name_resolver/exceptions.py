"""
Name Resolver Exceptions
Custom exception classes for name resolution and registry operations
"""


class NameResolverError(Exception):
    """Base exception for all name resolver errors"""
    
    def __init__(self, message: str, error_code: str = None, details: dict = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)
    
    def to_dict(self) -> dict:
        """Convert exception to dictionary for Lambda responses"""
        result = {
            'error': self.__class__.__name__,
            'message': self.message
        }
        if self.error_code:
            result['error_code'] = self.error_code
        if self.details:
            result['details'] = self.details
        return result


class ValidationError(NameResolverError):
    """Raised when request validation fails"""
    
    def __init__(self, message: str, field: str = None, value: str = None, hints: list = None):
        self.field = field
        self.value = value
        self.hints = hints or []
        
        details = {}
        if field:
            details['field'] = field
        if value:
            details['value'] = value
        if hints:
            details['hints'] = hints
            
        super().__init__(message, 'VALIDATION_ERROR', details)


class ConfigurationError(NameResolverError):
    """Raised when configuration is invalid or missing"""
    
    def __init__(self, message: str, config_key: str = None, config_source: str = None):
        self.config_key = config_key
        self.config_source = config_source
        
        details = {}
        if config_key:
            details['config_key'] = config_key
        if config_source:
            details['config_source'] = config_source
            
        super().__init__(message, 'CONFIGURATION_ERROR', details)


class DynamoDBError(NameResolverError):
    """Raised when DynamoDB operations fail"""
    
    def __init__(self, message: str, operation: str = None, table: str = None,
                 original_error: str = None, retryable: bool = False):
        self.operation = operation
        self.table = table
        self.original_error = original_error
        self.retryable = retryable
        
        details = {'retryable': retryable}
        if operation:
            details['operation'] = operation
        if table:
            details['table'] = table
        if original_error:
            details['original_error'] = original_error
            
        super().__init__(message, 'DYNAMODB_ERROR', details)


class NameResolutionExhaustedError(NameResolverError):
    """Raised when no suffixed form of the fallback name fits the maximum length"""
    
    def __init__(self, kind: str, fallback_name: str, attempts: int):
        self.kind = kind
        self.fallback_name = fallback_name
        self.attempts = attempts
        
        message = f"Unable to resolve a unique {kind} from fallback '{fallback_name}' after {attempts} attempts"
        details = {
            'kind': kind,
            'fallback_name': fallback_name,
            'attempts': attempts
        }
        
        super().__init__(message, 'RESOLUTION_EXHAUSTED', details)
