"""
PynamoDB model for names already taken during a migration
One table holds usernames and group names so both kinds share a single key space
"""
from datetime import datetime, timezone
from typing import Iterator, Optional
from pynamodb.models import Model
from pynamodb.attributes import UnicodeAttribute, UTCDateTimeAttribute
from pynamodb.exceptions import DoesNotExist, PynamoDBException
from ..config import config
from ..logger import registry_logger as logger
from ..error_handler import error_handler, is_conditional_check_failure


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UsedName(Model):
    """
    A resolved name, keyed by its lower-cased form

    The hash key is the lower-cased name regardless of kind, so a conditional
    put is an atomic "insert if absent" across usernames and group names.
    """

    class Meta:
        table_name = config.used_names_table_name
        region = config.aws_region
        billing_mode = 'PAY_PER_REQUEST'

    name_lower = UnicodeAttribute(hash_key=True)
    kind = UnicodeAttribute()  # 'username' or 'group_name'
    display_name = UnicodeAttribute(null=True)
    created_at = UTCDateTimeAttribute(default=_utcnow)

    @classmethod
    def claim(cls, name_lower: str, kind: str, display_name: Optional[str] = None) -> bool:
        """
        Insert the name unless any kind already holds it

        Args:
            name_lower: Lower-cased name
            kind: Kind claiming the name
            display_name: Display-case form of the name

        Returns:
            True if this call inserted the name, False if it was already taken

        Raises:
            DynamoDBError: If the database operation fails
        """
        item = cls(name_lower=name_lower, kind=kind, display_name=display_name)

        try:
            item.save(condition=cls.name_lower.does_not_exist())
        except PynamoDBException as e:
            if is_conditional_check_failure(e):
                logger.debug("Name already claimed", name_lower=name_lower, kind=kind)
                return False

            logger.log_registry_operation(
                store=cls.Meta.table_name,
                operation='claim',
                success=False,
                name_lower=name_lower,
                kind=kind,
                error=str(e)
            )
            raise error_handler.to_exception(e, 'claim', cls.Meta.table_name)

        logger.debug("Name claimed", name_lower=name_lower, kind=kind)
        return True

    @classmethod
    def get_used(cls, name_lower: str) -> Optional['UsedName']:
        """
        Get the record holding a name

        Args:
            name_lower: Lower-cased name

        Returns:
            UsedName instance or None if the name is free
        """
        try:
            return cls.get(name_lower, consistent_read=True)
        except DoesNotExist:
            return None
        except PynamoDBException as e:
            logger.log_registry_operation(
                store=cls.Meta.table_name,
                operation='get',
                success=False,
                name_lower=name_lower,
                error=str(e)
            )
            raise error_handler.to_exception(e, 'get_used', cls.Meta.table_name)

    @classmethod
    def release(cls, name_lower: str, kind: str) -> bool:
        """
        Delete the name if it is held by the given kind

        Returns:
            True if a record was deleted
        """
        try:
            cls(name_lower=name_lower, kind=kind).delete(condition=cls.kind == kind)
            return True
        except PynamoDBException as e:
            if is_conditional_check_failure(e):
                return False

            logger.log_registry_operation(
                store=cls.Meta.table_name,
                operation='release',
                success=False,
                name_lower=name_lower,
                kind=kind,
                error=str(e)
            )
            raise error_handler.to_exception(e, 'release', cls.Meta.table_name)

    @classmethod
    def iter_names(cls, kind: str) -> Iterator[str]:
        """Iterate over the lower-cased names held by a kind (full scan)"""
        try:
            for item in cls.scan(cls.kind == kind):
                yield item.name_lower
        except PynamoDBException as e:
            logger.log_registry_operation(
                store=cls.Meta.table_name,
                operation='scan',
                success=False,
                kind=kind,
                error=str(e)
            )
            raise error_handler.to_exception(e, 'iter_names', cls.Meta.table_name)
