"""
Name Resolver Text Utilities
Sanitization, Unicode normalization and grapheme-aware truncation of names
"""
import unicodedata
from typing import Any, Dict, List, Optional

import regex

from .constants import NameKinds, ValidationConstants

_GRAPHEME_PATTERN = regex.compile(r'\X')

_INVALID_UNICODE_CHARS = regex.compile(ValidationConstants.INVALID_UNICODE_CHAR_PATTERN)
_INVALID_LEADING_UNICODE_CHARS = regex.compile(ValidationConstants.INVALID_LEADING_UNICODE_CHAR_PATTERN)
_INVALID_ASCII_CHARS = regex.compile(ValidationConstants.INVALID_ASCII_CHAR_PATTERN)
_INVALID_LEADING_ASCII_CHARS = regex.compile(ValidationConstants.INVALID_LEADING_ASCII_CHAR_PATTERN)
_INVALID_TRAILING_CHARS = regex.compile(ValidationConstants.INVALID_TRAILING_CHAR_PATTERN)
_REPEATED_SPECIAL_CHARS = regex.compile(ValidationConstants.REPEATED_SPECIAL_CHAR_PATTERN)
_CONFUSING_EXTENSIONS = regex.compile(ValidationConstants.CONFUSING_EXTENSIONS_PATTERN, regex.IGNORECASE)
_ASCII_ALLOWED_CHAR = regex.compile(ValidationConstants.ASCII_ALLOWED_CHAR_PATTERN)


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> List[str]:
    """
    Validate that all required fields are present in the data.

    Args:
        data: Dictionary containing the data to validate
        required_fields: List of required field names

    Returns:
        List of missing field names (empty if all fields are present)
    """
    if not isinstance(data, dict):
        return required_fields

    missing_fields = []
    for field in required_fields:
        if field not in data or data[field] is None or data[field] == "":
            missing_fields.append(field)

    return missing_fields


def validate_name_kind(kind: str, valid_kinds: List[str] = None) -> bool:
    """
    Validate a name kind.

    Args:
        kind: Kind to validate ('username' or 'group_name')
        valid_kinds: List of valid kinds (defaults to all kinds)

    Returns:
        True if valid, False otherwise
    """
    if not kind or not isinstance(kind, str):
        return False

    valid_kinds = valid_kinds or NameKinds.ALL_KINDS
    return kind.lower() in valid_kinds


def normalize_unicode(text: str) -> str:
    """Canonical composed form (NFC) of the text"""
    if not isinstance(text, str):
        return ""

    return unicodedata.normalize(ValidationConstants.UNICODE_FORM, text)


def normalize_name(name: str) -> str:
    """
    Normalize a name for comparisons: NFC, then lower-cased.

    Args:
        name: Raw name string

    Returns:
        Normalized name
    """
    return normalize_unicode(name).lower()


def transliterate(text: str) -> str:
    """Fold text to ASCII by dropping marks and anything without an ASCII decomposition"""
    decomposed = unicodedata.normalize(ValidationConstants.TRANSLITERATION_FORM, text)
    return decomposed.encode('ascii', 'ignore').decode('ascii')


def grapheme_clusters(text: str) -> List[str]:
    """Split text into user-perceived characters"""
    return _GRAPHEME_PATTERN.findall(text)


def grapheme_length(text: str) -> int:
    """Length in grapheme clusters"""
    if text.isascii() and "\r" not in text:
        return len(text)
    return len(grapheme_clusters(text))


def truncate_graphemes(name: str, max_length: int) -> str:
    """
    Truncate a name to at most max_length grapheme clusters.

    Clusters are never split: a combining sequence or a multi-codepoint
    emoji is either kept whole or dropped whole.

    Args:
        name: Name to truncate
        max_length: Maximum number of grapheme clusters

    Returns:
        Truncated name (empty when max_length < 1)
    """
    if max_length <= 0:
        return ""

    if name.isascii() and "\r" not in name:
        return name[:max_length]

    result = []
    for cluster in grapheme_clusters(name):
        if len(result) + 1 > max_length:
            break
        result.append(cluster)

    return "".join(result)


def strip_invalid_trailing_chars(name: str) -> str:
    """Remove trailing characters that are not letters, marks or digits"""
    return _INVALID_TRAILING_CHARS.sub("", name)


def _apply_allowlist(name: str, allowlist) -> str:
    """Replace non-ASCII grapheme clusters rejected by the allow-list with '_'"""
    result = []
    for cluster in grapheme_clusters(name):
        if _ASCII_ALLOWED_CHAR.fullmatch(cluster) or allowlist.fullmatch(cluster):
            result.append(cluster)
        else:
            result.append("_")
    return "".join(result)


def compile_allowlist(pattern: Optional[str]):
    """Compile the optional character allow-list used in Unicode mode"""
    if not pattern:
        return None
    return regex.compile(pattern)


def sanitize_name(raw: str, unicode_names: bool = True, allowlist=None) -> str:
    """
    Sanitize a raw name into the allowed identifier charset.

    Unicode mode keeps letters, marks, digits and . _ -; ASCII mode
    transliterates first and keeps [A-Za-z0-9_.-]. Disallowed characters
    become '_', runs of separators collapse into a single '_', and invalid
    leading and trailing characters are removed. Total over all inputs.

    Args:
        raw: Raw candidate name
        unicode_names: Whether non-ASCII letters are allowed
        allowlist: Optional compiled pattern restricting non-ASCII clusters

    Returns:
        Sanitized name, possibly empty
    """
    if raw is None:
        return ""

    name = raw if isinstance(raw, str) else str(raw)

    if unicode_names:
        name = normalize_unicode(name)
        name = _INVALID_UNICODE_CHARS.sub("_", name)
        if allowlist is not None:
            name = _apply_allowlist(name, allowlist)
        name = _INVALID_LEADING_UNICODE_CHARS.sub("", name)
    else:
        name = transliterate(name)
        name = _INVALID_ASCII_CHARS.sub("_", name)
        name = _INVALID_LEADING_ASCII_CHARS.sub("", name)

    name = _CONFUSING_EXTENSIONS.sub("_", name)
    name = _INVALID_TRAILING_CHARS.sub("", name)
    name = _REPEATED_SPECIAL_CHARS.sub("_", name)

    return name
