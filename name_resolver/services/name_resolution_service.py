"""
Unique Name Resolution Service
Turns arbitrary user and group names into unique, policy-compliant names
"""
from typing import Iterable, Optional, Tuple

from ..cache import SuffixAllocator, TruncationCache
from ..constants import NameKinds, ResolutionConstants
from ..exceptions import ConfigurationError, NameResolutionExhaustedError
from ..logger import resolver_logger
from ..models.resolution import ResolutionRequest, ResolvedName
from ..registry import UsedNameRegistry
from ..text_utils import (
    compile_allowlist, grapheme_length, sanitize_name,
    strip_invalid_trailing_chars, truncate_graphemes
)
from ..validators.reserved import ReservedNameMatcher

SEPARATOR = ResolutionConstants.SUFFIX_SEPARATOR
MIN_MAX_LENGTH = ResolutionConstants.MIN_MAX_LENGTH


class UniqueNameResolver:
    """
    Resolves usernames and group names against a shared used-name registry

    A resolution never fails for bad input: empty or unusable names fall
    back to the configured fallback name, taken names get the next free
    numeric suffix. The linear suffix search is bounded by max_attempts per
    base; past that the fallback suffix is found by doubling.
    Not safe for concurrent use of one instance; resolvers sharing a
    registry rely on the registry's atomic claim.
    """

    def __init__(
        self,
        registry: Optional[UsedNameRegistry] = None,
        reserved_mention: Optional[str] = None,
        reserved_patterns: Optional[Iterable[str]] = None,
        fallback_username: str = ResolutionConstants.FALLBACK_USERNAME,
        fallback_group_name: str = ResolutionConstants.FALLBACK_GROUP_NAME,
        max_length: int = ResolutionConstants.MAX_LENGTH,
        max_attempts: int = ResolutionConstants.MAX_ATTEMPTS,
        suffix_cache_size: int = ResolutionConstants.SUFFIX_CACHE_SIZE,
        truncation_cache_size: int = ResolutionConstants.TRUNCATION_CACHE_SIZE,
        unicode_names: bool = True,
        allowed_unicode_characters: Optional[str] = None,
        logger=None
    ):
        if max_length < MIN_MAX_LENGTH:
            raise ConfigurationError(
                f"max_length must be at least {MIN_MAX_LENGTH}", config_key='max-name-length'
            )
        if max_attempts < 1:
            raise ConfigurationError("max_attempts must be positive", config_key='max-attempts')

        self.registry = registry if registry is not None else UsedNameRegistry()
        self.max_length = max_length
        self.max_attempts = max_attempts
        self.unicode_names = unicode_names
        self.allowlist = compile_allowlist(allowed_unicode_characters)
        self.logger = logger or resolver_logger

        self.reserved = ReservedNameMatcher(reserved_patterns, reserved_mention)
        self.suffixes = SuffixAllocator(suffix_cache_size)
        self.truncations = TruncationCache(truncation_cache_size)

        self.fallback_username = self._prepare_fallback(
            fallback_username, 'fallback-username', ResolutionConstants.LAST_RESORT_USERNAME
        )
        self.fallback_group_name = self._prepare_fallback(fallback_group_name, 'fallback-group-name')

    @classmethod
    def from_config(cls, config, shared_data=None, logger=None) -> 'UniqueNameResolver':
        """
        Build a resolver from configuration

        Args:
            config: Config instance
            shared_data: Shared store holding the used-name sets
            logger: Optional ResolverLogger

        Returns:
            UniqueNameResolver instance
        """
        return cls(
            registry=UsedNameRegistry(shared_data),
            reserved_mention=config.here_mention,
            reserved_patterns=config.reserved_usernames,
            fallback_username=config.fallback_username,
            fallback_group_name=config.fallback_group_name,
            max_length=config.max_name_length,
            max_attempts=config.max_attempts,
            suffix_cache_size=config.suffix_cache_size,
            truncation_cache_size=config.truncation_cache_size,
            unicode_names=config.unicode_usernames,
            allowed_unicode_characters=config.allowed_unicode_username_characters,
            logger=logger
        )

    def _prepare_fallback(self, fallback: str, config_key: str, last_resort: Optional[str] = None) -> str:
        name = self._truncate_to(self._sanitize(fallback), self.max_length)
        if not name and last_resort:
            name = last_resort
        if not name:
            raise ConfigurationError(
                f"Fallback name '{fallback}' is empty after sanitization", config_key=config_key
            )

        # A trailing wildcard matching "<fallback>_" matches every suffixed form
        if self.reserved.matches_suffix_defeating(name.lower() + SEPARATOR):
            raise ConfigurationError(
                f"Fallback name '{name}' is blocked by a reserved wildcard", config_key=config_key
            )
        return name

    def find_available_username(self, username: str, allow_reserved: bool = False) -> str:
        """
        Resolve a username and mark it as used

        Args:
            username: Raw username from the source platform
            allow_reserved: Accept reserved names (pre-existing admin accounts)

        Returns:
            Resolved username
        """
        request = ResolutionRequest(
            kind=NameKinds.USERNAME,
            raw_name=username,
            fallback_name=self.fallback_username,
            max_length=self.max_length,
            allow_reserved=allow_reserved
        )
        return self.resolve(request).name

    def find_available_group_name(self, group_name: str) -> str:
        """
        Resolve a group name and mark it as used

        Args:
            group_name: Raw group name from the source platform

        Returns:
            Resolved group name
        """
        request = ResolutionRequest(
            kind=NameKinds.GROUP_NAME,
            raw_name=group_name,
            fallback_name=self.fallback_group_name,
            max_length=self.max_length
        )
        return self.resolve(request).name

    def resolve(self, request: ResolutionRequest) -> ResolvedName:
        """
        Resolve one name and commit it to the registry

        Args:
            request: ResolutionRequest

        Returns:
            ResolvedName whose lower-cased form is now in the registry

        Raises:
            NameResolutionExhaustedError: If no suffixed form of the fallback fits max_length
        """
        fallback = self._request_fallback(request)
        used_fallback = False

        name = self._sanitize(request.raw_name)
        if name:
            name = self._truncate_to(name, request.max_length)
        if not name:
            name = fallback
            used_fallback = True

        name_lower = name.lower()

        # Common case: the name is free as is
        if self._is_available(name_lower, request.allow_reserved) and \
                self.registry.claim(request.kind, name_lower, name):
            return self._resolved(request, name, name_lower, None, used_fallback, 0)

        # No suffix escapes a trailing wildcard
        if not used_fallback and not request.allow_reserved and \
                self.reserved.matches_suffix_defeating(name_lower):
            name = fallback
            used_fallback = True

        found, attempts = self._find_name_with_suffix(request, name)

        if found is None and not used_fallback:
            self.logger.warning(
                "Suffix search exhausted, using fallback name",
                kind=request.kind,
                base=name,
                attempts=attempts
            )
            used_fallback = True
            found, fallback_attempts = self._find_name_with_suffix(request, fallback)
            attempts += fallback_attempts

        if found is None:
            self.logger.warning(
                "Fallback suffix search exhausted, doubling suffix",
                kind=request.kind,
                base=fallback,
                attempts=attempts
            )
            found, doubling_attempts = self._find_name_by_doubling(request, fallback)
            attempts += doubling_attempts

        if found is None:
            self.logger.critical(
                "Unable to resolve unique name",
                kind=request.kind,
                original=request.raw_name,
                fallback=fallback,
                attempts=attempts
            )
            raise NameResolutionExhaustedError(request.kind, fallback, attempts)

        found_name, found_lower, suffix = found
        return self._resolved(request, found_name, found_lower, suffix, used_fallback, attempts)

    def _find_name_with_suffix(self, request: ResolutionRequest, name: str) -> Tuple[Optional[tuple], int]:
        """
        Bounded search for "<base>_<n>", truncating the base when the suffix does not fit

        Every candidate, including one that only truncates the base, costs one attempt.
        The last suffix tried is remembered even when the search fails, so the
        next search for the same base continues past it.

        Returns:
            ((name, name_lower, suffix) or None, attempts used)
        """
        max_length = request.max_length
        original_lower = name.lower()

        truncated_length = self.truncations.get(original_lower, max_length)
        if truncated_length is not None:
            name = self._truncate_to(name, truncated_length) or name

        name_lower = name.lower()
        suffix = self.suffixes.next_suffix(name_lower)
        attempts = 0
        last_tried = None

        while attempts < self.max_attempts:
            attempts += 1
            candidate = f"{name}{SEPARATOR}{suffix}"

            overflow = grapheme_length(candidate) - max_length
            if overflow > 0:
                name = self._truncate_to(name, grapheme_length(name) - overflow)
                if not name:
                    return None, attempts

                # Counters are per base, a shorter base starts its own count
                name_lower = name.lower()
                suffix = self.suffixes.next_suffix(name_lower)
                continue

            candidate_lower = f"{name_lower}{SEPARATOR}{suffix}"
            if self._is_available(candidate_lower, request.allow_reserved) and \
                    self.registry.claim(request.kind, candidate_lower, candidate):
                if name_lower != original_lower:
                    self.truncations.record(original_lower, max_length, grapheme_length(name))
                self.suffixes.record_suffix(name_lower, suffix)
                return (candidate, candidate_lower, suffix), attempts

            last_tried = (name_lower, suffix)
            suffix += 1

        if last_tried is not None:
            self.suffixes.record_suffix(*last_tried)
        return None, attempts

    def _find_name_by_doubling(self, request: ResolutionRequest, name: str) -> Tuple[Optional[tuple], int]:
        """
        Unbounded search for a free "<base>_<n>" once the linear search gave up

        Doubles the suffix until a free candidate turns up, then bisects back
        down to the lowest free one, so a cold suffix cache never exhausts the
        fallback. Fails only when no suffix of the required size fits max_length.

        Returns:
            ((name, name_lower, suffix) or None, attempts used)
        """
        # Longest suffix that still leaves one grapheme of base
        max_suffix = 10 ** (request.max_length - len(SEPARATOR) - 1) - 1
        lower = self.suffixes.last_suffix(name.lower())
        attempts = 0

        while True:
            upper = min(lower + 1, max_suffix)
            attempts += 1
            while not self._suffix_available(request, name, upper):
                if upper == max_suffix:
                    return None, attempts
                lower = upper
                upper = min(upper * 2, max_suffix)
                attempts += 1

            while upper - lower > 1:
                middle = (lower + upper) // 2
                attempts += 1
                if self._suffix_available(request, name, middle):
                    upper = middle
                else:
                    lower = middle

            candidate, base = self._suffixed(name, upper, request.max_length)
            candidate_lower = candidate.lower()
            if self.registry.claim(request.kind, candidate_lower, candidate):
                self.suffixes.record_suffix(base.lower(), upper)
                return (candidate, candidate_lower, upper), attempts

            # Lost the claim to a concurrent resolver, keep searching above it
            lower = upper

    def _suffix_available(self, request: ResolutionRequest, name: str, suffix: int) -> bool:
        candidate, _ = self._suffixed(name, suffix, request.max_length)
        return candidate is not None and self._is_available(candidate.lower(), request.allow_reserved)

    def _suffixed(self, name: str, suffix: int, max_length: int) -> Tuple[Optional[str], str]:
        """"<base>_<suffix>" with the base truncated so the whole fits max_length"""
        tail = f"{SEPARATOR}{suffix}"
        base = self._truncate_to(name, max_length - len(tail))
        if not base:
            return None, base
        return f"{base}{tail}", base

    def _is_available(self, name_lower: str, allow_reserved: bool = False) -> bool:
        if not allow_reserved and self.reserved.is_reserved(name_lower):
            return False
        return not self.registry.is_used(name_lower)

    def is_reserved(self, name: str) -> bool:
        """True if the name is reserved (case-insensitive)"""
        return self.reserved.is_reserved(name.lower())

    def _request_fallback(self, request: ResolutionRequest) -> str:
        if request.kind == NameKinds.USERNAME and request.fallback_name == self.fallback_username:
            fallback = self.fallback_username
        elif request.kind == NameKinds.GROUP_NAME and request.fallback_name == self.fallback_group_name:
            fallback = self.fallback_group_name
        else:
            fallback = self._truncate_to(self._sanitize(request.fallback_name), request.max_length)
            if not fallback or self.reserved.matches_suffix_defeating(fallback.lower() + SEPARATOR):
                self.logger.warning(
                    "Unusable fallback name in request, using configured fallback",
                    kind=request.kind,
                    fallback=request.fallback_name
                )
                fallback = self.fallback_username if request.kind == NameKinds.USERNAME \
                    else self.fallback_group_name

        fallback = self._truncate_to(fallback, request.max_length)
        return fallback or ResolutionConstants.LAST_RESORT_USERNAME

    def _sanitize(self, name: str) -> str:
        return sanitize_name(name, self.unicode_names, self.allowlist)

    @staticmethod
    def _truncate_to(name: str, max_length: int) -> str:
        if grapheme_length(name) <= max_length:
            return name
        return strip_invalid_trailing_chars(truncate_graphemes(name, max_length))

    def _resolved(self, request: ResolutionRequest, name: str, name_lower: str,
                  suffix: Optional[int], used_fallback: bool, attempts: int) -> ResolvedName:
        self.logger.log_resolution(
            request.kind,
            request.raw_name,
            name,
            attempts=attempts,
            suffix=suffix,
            used_fallback=used_fallback
        )
        return ResolvedName(
            name=name,
            name_lower=name_lower,
            kind=request.kind,
            suffix=suffix,
            used_fallback=used_fallback
        )
