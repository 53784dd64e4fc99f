"""
Lambda response builders for the name resolver
"""
import json
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from .constants import HTTPConstants


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_error_response(status_code: int, message: str, details: Optional[dict] = None) -> Dict[str, Any]:
    """
    Lambda proxy response for a rejected request

    Args:
        status_code: HTTP status code
        message: Error message
        details: Extra fields merged into the JSON body

    Returns:
        Response with statusCode, headers and a JSON body
    """
    body = {'success': False, 'error': message, 'timestamp': _timestamp(), **(details or {})}
    return {
        'statusCode': status_code,
        'headers': {HTTPConstants.CONTENT_TYPE: HTTPConstants.JSON},
        'body': json.dumps(body)
    }


def create_success_response(data: Any, metadata: Optional[Dict[str, Any]] = None,
                            function_name: Optional[str] = None) -> Dict[str, Any]:
    """Direct-invocation envelope: success flag, data and metadata"""
    response_metadata = {'timestamp': _timestamp()}
    if function_name:
        response_metadata['function_name'] = function_name
    response_metadata.update(metadata or {})

    return {'success': True, 'data': data, 'metadata': response_metadata}
