"""
Reserved name matching for usernames and group names
"""
import re
from typing import Any, Dict, Iterable, List, Optional

from ..constants import ValidationConstants
from ..text_utils import normalize_name


class ReservedNameMatcher:
    """
    Classifies lower-cased names against exact and wildcard reserved rules

    Exact rules are kept in a set; wildcard rules ('*' matches any run of
    characters) are compiled once into anchored patterns. Wildcards ending
    in '*' are also tracked as suffix-defeating: no numeric suffix can
    escape them.
    """

    def __init__(self, reserved_patterns: Optional[Iterable[str]] = None, reserved_mention: Optional[str] = None):
        self.exact_reserved_names = set()
        self.wildcard_patterns: List[re.Pattern] = []
        self.suffix_wildcard_patterns: List[re.Pattern] = []

        if reserved_mention and reserved_mention.strip():
            self.exact_reserved_names.add(normalize_name(reserved_mention.strip()))

        for reserved in reserved_patterns or []:
            if not isinstance(reserved, str) or not reserved.strip():
                continue

            normalized = normalize_name(reserved.strip())

            if ValidationConstants.WILDCARD in normalized:
                pattern = self._compile_wildcard(normalized)
                self.wildcard_patterns.append(pattern)
                if normalized.endswith(ValidationConstants.WILDCARD):
                    self.suffix_wildcard_patterns.append(pattern)
            else:
                self.exact_reserved_names.add(normalized)

    @staticmethod
    def _compile_wildcard(normalized: str) -> re.Pattern:
        escaped = re.escape(normalized).replace(re.escape(ValidationConstants.WILDCARD), '.*')
        return re.compile(escaped, re.DOTALL)

    @staticmethod
    def _normalize(name_lower: str) -> str:
        if name_lower.isascii():
            return name_lower
        return normalize_name(name_lower)

    def is_reserved(self, name_lower: str) -> bool:
        """
        Check whether a name is reserved

        Args:
            name_lower: Lower-cased candidate name

        Returns:
            True if it equals an exact rule or fully matches a wildcard rule
        """
        name_lower = self._normalize(name_lower)
        if name_lower in self.exact_reserved_names:
            return True
        return any(pattern.fullmatch(name_lower) for pattern in self.wildcard_patterns)

    def matches_suffix_defeating(self, name_lower: str) -> bool:
        """True if a trailing-wildcard rule matches, so suffixing cannot help"""
        name_lower = self._normalize(name_lower)
        return any(pattern.fullmatch(name_lower) for pattern in self.suffix_wildcard_patterns)

    def get_rules(self) -> Dict[str, Any]:
        """
        Get the compiled rules for diagnostics

        Returns:
            Rules dictionary
        """
        return {
            'exact': sorted(self.exact_reserved_names),
            'wildcard': [pattern.pattern for pattern in self.wildcard_patterns],
            'suffix_defeating': [pattern.pattern for pattern in self.suffix_wildcard_patterns]
        }
