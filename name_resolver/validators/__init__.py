# Name validators
from .reserved import ReservedNameMatcher

__all__ = ['ReservedNameMatcher']
