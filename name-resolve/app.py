"""
Name Resolve Lambda Function
Resolves a batch of usernames or group names into unique names for the import pipeline
"""
import os
import sys

# Add the repository root to path for the name_resolver package
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from name_resolver.constants import NameKinds
from name_resolver.decorators import direct_lambda_handler
from name_resolver.exceptions import NameResolverError, ValidationError
from name_resolver.logger import logger
from name_resolver.models.resolution import ResolutionRequest
from name_resolver.services.service_container import get_service
from name_resolver.utils import create_success_response
from typing import Dict, Any, List

FUNCTION_NAME = 'name-resolve'


def validate_input(event: dict) -> Dict[str, Any]:
    """Validate input parameters (kind and names presence is checked by the decorator)"""
    names = event.get('names')
    if not isinstance(names, list) or not all(isinstance(name, str) for name in names):
        raise ValidationError("names must be a list of strings", field='names')

    allow_reserved = event.get('allow_reserved', False)
    if not isinstance(allow_reserved, bool):
        raise ValidationError("allow_reserved must be a boolean", field='allow_reserved')

    return {
        'kind': event['kind'].lower(),
        'names': names,
        'allow_reserved': allow_reserved
    }


def resolve_names(kind: str, names: List[str], allow_reserved: bool = False) -> List[Dict[str, Any]]:
    """
    Resolve names in order, each one seeing every name resolved before it

    Args:
        kind: 'username' or 'group_name'
        names: Raw names from the source platform
        allow_reserved: Accept reserved usernames (pre-existing admin accounts)

    Returns:
        One result per input name; a name that could not be resolved gets an
        error entry and the names after it are still resolved
    """
    resolver = get_service('name_resolver')
    fallback = resolver.fallback_username if kind == NameKinds.USERNAME else resolver.fallback_group_name

    results = []
    for raw_name in names:
        try:
            resolved = resolver.resolve(ResolutionRequest(
                kind=kind,
                raw_name=raw_name,
                fallback_name=fallback,
                max_length=resolver.max_length,
                allow_reserved=allow_reserved and kind == NameKinds.USERNAME
            ))
        except NameResolverError as e:
            logger.error("Failed to resolve name", error=e, kind=kind, error_code=e.error_code)
            results.append({'original': raw_name, 'error': e.message, 'error_code': e.error_code})
            continue

        result = resolved.to_dict()
        result.pop('kind')
        result['original'] = raw_name
        results.append(result)

    return results


@direct_lambda_handler(required_fields=['kind', 'names'], kind_validation=True)
def lambda_handler(event, context):
    """
    Resolve unique names

    Request:
    {"kind": "username", "names": ["John Doe", "admin"], "allow_reserved": false}

    Response data:
    {"kind": "username", "resolved": [{"original": "John Doe", "name": "John_Doe",
      "name_lower": "john_doe", "suffix": null, "used_fallback": false},
      {"original": "admin", "error": "...", "error_code": "DYNAMODB_ERROR"}]}
    """
    params = validate_input(event)

    resolved = resolve_names(params['kind'], params['names'], params['allow_reserved'])

    return create_success_response(
        {
            'kind': params['kind'],
            'resolved': resolved
        },
        metadata={
            'count': len(resolved),
            'failed': sum(1 for item in resolved if 'error' in item)
        },
        function_name=FUNCTION_NAME
    )
