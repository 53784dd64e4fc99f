"""
Pytest configuration and fixtures for migration-name-resolver tests
Provides AWS mocking and common resolver fixtures
"""
import os
import pytest
from moto import mock_aws
from unittest.mock import MagicMock


# Set test environment variables before the name_resolver config is created
os.environ.update({
    'AWS_DEFAULT_REGION': 'us-east-1',
    'AWS_ACCESS_KEY_ID': 'testing',
    'AWS_SECRET_ACCESS_KEY': 'testing',
    'AWS_SECURITY_TOKEN': 'testing',
    'AWS_SESSION_TOKEN': 'testing',
    'ENVIRONMENT': 'test',
    'PARAMETER_STORE_ENABLED': 'false',
    'NAME_RESOLVER_USED_NAMES_TABLE_NAME': 'UsedNames-test',
    'NAME_RESOLVER_REGISTRY_BACKEND': 'memory'
})


@pytest.fixture
def aws_credentials():
    """Mocked AWS Credentials for moto"""
    os.environ.update({
        'AWS_ACCESS_KEY_ID': 'testing',
        'AWS_SECRET_ACCESS_KEY': 'testing',
        'AWS_SECURITY_TOKEN': 'testing',
        'AWS_SESSION_TOKEN': 'testing'
    })


@pytest.fixture
def mock_config():
    """Mock configuration for tests"""
    class MockConfig:
        def __init__(self):
            self.environment = 'test'
            self.parameter_store_prefix = '/name-resolver/test'
            self.values = {
                'max-name-length': '60',
                'max-attempts': '500',
                'suffix-cache-size': '1000',
                'truncation-cache-size': '500',
                'fallback-username': 'user',
                'fallback-group-name': 'group',
                'reserved-usernames': 'admin|moderator|system*|test_*_user',
                'here-mention': 'here',
                'unicode-usernames': 'true',
                'enable-debug-logging': 'false'
            }

        def get_parameter(self, key, default=None):
            """Mock parameter getter with common test values"""
            return self.values.get(key, default)

        def get_int_parameter(self, key, default=0):
            value = self.get_parameter(key, default)
            try:
                return int(value)
            except (ValueError, TypeError):
                return default

        def get_bool_parameter(self, key, default=False):
            value = self.get_parameter(key, default)
            if isinstance(value, str):
                return value.lower() in ('true', '1', 'yes')
            return default

        def get_list_parameter(self, key, default=None, separator=','):
            value = self.get_parameter(key)
            if value is None:
                return default or []
            return [item.strip() for item in value.split(separator) if item.strip()]

        @property
        def max_name_length(self):
            return self.get_int_parameter('max-name-length', 60)

        @property
        def max_attempts(self):
            return self.get_int_parameter('max-attempts', 500)

        @property
        def suffix_cache_size(self):
            return self.get_int_parameter('suffix-cache-size', 1000)

        @property
        def truncation_cache_size(self):
            return self.get_int_parameter('truncation-cache-size', 500)

        @property
        def fallback_username(self):
            return self.get_parameter('fallback-username', 'user')

        @property
        def fallback_group_name(self):
            return self.get_parameter('fallback-group-name', 'group')

        @property
        def reserved_usernames(self):
            return self.get_list_parameter('reserved-usernames', [], separator='|')

        @property
        def here_mention(self):
            return self.get_parameter('here-mention', 'here')

        @property
        def unicode_usernames(self):
            return self.get_bool_parameter('unicode-usernames', True)

        @property
        def allowed_unicode_username_characters(self):
            return self.get_parameter('allowed-unicode-username-characters')

        @property
        def enable_debug_logging(self):
            return self.get_bool_parameter('enable-debug-logging', False)

    return MockConfig()


@pytest.fixture
def lambda_context():
    """Mock Lambda context"""
    context = MagicMock()
    context.function_name = 'name-resolve'
    context.function_version = '$LATEST'
    context.invoked_function_arn = 'arn:aws:lambda:us-east-1:123456789012:function:name-resolve'
    context.memory_limit_in_mb = 128
    context.remaining_time_in_millis = lambda: 30000
    context.aws_request_id = 'test-request-id'
    return context


@pytest.fixture
def log_entries():
    """Collected structured log entries"""
    return []


@pytest.fixture
def test_logger(log_entries):
    """Resolver logger writing into log_entries, debug enabled"""
    from name_resolver.logger import ResolverLogger
    return ResolverLogger('test-resolver', sink=log_entries.append, debug_enabled=True)


@pytest.fixture
def shared_data():
    """Fresh in-memory shared store"""
    from name_resolver.registry import SharedData
    return SharedData()


@pytest.fixture
def registry(shared_data):
    """Used-name registry on the in-memory store"""
    from name_resolver.registry import UsedNameRegistry
    return UsedNameRegistry(shared_data)


@pytest.fixture
def resolver(registry, test_logger):
    """Resolver with the default reserved names plus wildcard rules"""
    from name_resolver.services.name_resolution_service import UniqueNameResolver
    return UniqueNameResolver(
        registry=registry,
        reserved_mention='here',
        reserved_patterns=['admin', 'moderator', 'system*', 'test_*_user'],
        logger=test_logger
    )


@pytest.fixture
def used_names_table(aws_credentials):
    """UsedName table created in moto-backed DynamoDB"""
    with mock_aws():
        from name_resolver.models.used_name import UsedName
        UsedName.create_table(wait=True)
        yield UsedName
