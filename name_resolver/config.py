"""
Configuration management for the name resolver
Supports environment variables, SSM Parameter Store, and local .env files
"""
import os
import json
from typing import Optional, Any
from functools import lru_cache
import boto3
from botocore.exceptions import ClientError, NoCredentialsError
from dotenv import load_dotenv

from .constants import ResolutionConstants, ValidationConstants, DatabaseConstants


class Config:
    """
    Configuration manager with hybrid approach:
    1. Environment Variables (highest priority, local .env included)
    2. AWS Parameter Store (environment-specific)
    3. Local defaults (development fallback)
    """

    def __init__(self, dotenv_path: Optional[str] = None):
        # Existing environment variables win over .env entries
        load_dotenv(dotenv_path, override=False)

        self.environment = os.environ.get('ENVIRONMENT', 'dev')
        self.parameter_store_prefix = os.environ.get(
            'PARAMETER_STORE_PREFIX',
            f'/name-resolver/{self.environment}'
        )
        self.parameter_store_enabled = os.environ.get(
            'PARAMETER_STORE_ENABLED', 'true'
        ).lower() in ('true', '1', 'yes', 'on')
        self._ssm_client = None

    @property
    def ssm_client(self):
        """Lazy initialization of SSM client"""
        if self._ssm_client is None and self.parameter_store_enabled:
            try:
                self._ssm_client = boto3.client('ssm', region_name=self.aws_region)
            except (NoCredentialsError, Exception):
                # For local development or testing without AWS credentials
                self._ssm_client = None
        return self._ssm_client

    def get_parameter(self, key: str, default: Any = None) -> Any:
        """
        Get configuration parameter with fallback hierarchy:
        1. Environment variable
        2. SSM Parameter Store
        3. Default value
        """
        # Try environment variable first (with name resolver prefix)
        env_key = f"NAME_RESOLVER_{key.upper().replace('-', '_')}"
        env_value = os.environ.get(env_key)
        if env_value is not None:
            return env_value

        # Try standard environment variable
        env_value = os.environ.get(key.upper().replace('-', '_'))
        if env_value is not None:
            return env_value

        # Try SSM Parameter Store
        ssm_value = self.get_ssm_parameter(key)
        if ssm_value is not None:
            return ssm_value

        return default

    @lru_cache(maxsize=128)
    def get_ssm_parameter(self, key: str) -> Optional[str]:
        """
        Get parameter from AWS SSM Parameter Store with caching
        """
        if not self.parameter_store_enabled or not self.ssm_client:
            return None

        parameter_name = f"{self.parameter_store_prefix}/{key}"

        try:
            response = self.ssm_client.get_parameter(Name=parameter_name)
            return response['Parameter']['Value']
        except ClientError as e:
            if e.response['Error']['Code'] != 'ParameterNotFound':
                print(f"Error getting SSM parameter {parameter_name}: {e}")
            return None
        except Exception as e:
            print(f"Unexpected error getting SSM parameter {parameter_name}: {e}")
            return None

    def get_int_parameter(self, key: str, default: int = 0) -> int:
        """Get integer parameter"""
        value = self.get_parameter(key, default)
        try:
            return int(value)
        except (ValueError, TypeError):
            return default

    def get_bool_parameter(self, key: str, default: bool = False) -> bool:
        """Get boolean parameter"""
        value = self.get_parameter(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ('true', '1', 'yes', 'on')
        return default

    def get_json_parameter(self, key: str, default: dict = None) -> dict:
        """Get JSON parameter"""
        value = self.get_parameter(key)
        if value is None:
            return default or {}

        try:
            if isinstance(value, str):
                return json.loads(value)
            return value
        except (json.JSONDecodeError, TypeError):
            return default or {}

    def get_list_parameter(self, key: str, default: list = None, separator: str = ',') -> list:
        """Get list parameter (separator-delimited string)"""
        value = self.get_parameter(key)
        if value is None:
            return list(default) if default else []

        if isinstance(value, list):
            return value

        if isinstance(value, str):
            return [item.strip() for item in value.split(separator) if item.strip()]

        return list(default) if default else []

    # Resolution settings
    @property
    def max_name_length(self) -> int:
        """Maximum grapheme length shared by usernames and group names"""
        return self.get_int_parameter('max-name-length', ResolutionConstants.MAX_LENGTH)

    @property
    def max_attempts(self) -> int:
        """Suffix search attempt budget per base name"""
        return self.get_int_parameter('max-attempts', ResolutionConstants.MAX_ATTEMPTS)

    @property
    def suffix_cache_size(self) -> int:
        return self.get_int_parameter('suffix-cache-size', ResolutionConstants.SUFFIX_CACHE_SIZE)

    @property
    def truncation_cache_size(self) -> int:
        return self.get_int_parameter('truncation-cache-size', ResolutionConstants.TRUNCATION_CACHE_SIZE)

    @property
    def fallback_username(self) -> str:
        return self.get_parameter('fallback-username', ResolutionConstants.FALLBACK_USERNAME)

    @property
    def fallback_group_name(self) -> str:
        return self.get_parameter('fallback-group-name', ResolutionConstants.FALLBACK_GROUP_NAME)

    @property
    def reserved_usernames(self) -> list:
        """Reserved name patterns, '|' separated, '*' as wildcard"""
        return self.get_list_parameter(
            'reserved-usernames',
            ValidationConstants.DEFAULT_RESERVED_USERNAMES,
            separator=ValidationConstants.RESERVED_NAMES_SEPARATOR
        )

    @property
    def here_mention(self) -> str:
        return self.get_parameter('here-mention', ResolutionConstants.HERE_MENTION)

    @property
    def unicode_usernames(self) -> bool:
        return self.get_bool_parameter('unicode-usernames', True)

    @property
    def allowed_unicode_username_characters(self) -> Optional[str]:
        """Optional regex restricting non-ASCII characters in Unicode names"""
        return self.get_parameter('allowed-unicode-username-characters') or None

    # Registry settings
    @property
    def registry_backend(self) -> str:
        return self.get_parameter('registry-backend', DatabaseConstants.MEMORY_BACKEND).lower()

    @property
    def used_names_table_name(self) -> str:
        return self.get_parameter(
            'used-names-table-name',
            f'{DatabaseConstants.USED_NAMES_TABLE_PREFIX}-{self.environment}'
        )

    @property
    def aws_region(self) -> str:
        return os.environ.get('AWS_REGION') or os.environ.get('AWS_DEFAULT_REGION') or DatabaseConstants.DEFAULT_REGION

    @property
    def enable_debug_logging(self) -> bool:
        """Get debug logging flag"""
        return self.get_bool_parameter('enable-debug-logging', False)


# Global configuration instance
config = Config()


def get_config() -> Config:
    """Get global configuration instance"""
    return config
