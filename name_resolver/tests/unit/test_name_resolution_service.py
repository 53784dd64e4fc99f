"""
Unit tests for the unique name resolution service
"""
import pytest

from name_resolver.constants import NameKinds, RegistryKeys, ValidationConstants
from name_resolver.exceptions import ConfigurationError, NameResolutionExhaustedError
from name_resolver.models.resolution import ResolutionRequest, ResolvedName
from name_resolver.registry import SharedData, UsedNameRegistry
from name_resolver.services.name_resolution_service import UniqueNameResolver
from name_resolver.text_utils import grapheme_length


def seeded_resolver(usernames=(), group_names=(), **kwargs):
    shared_data = SharedData({
        RegistryKeys.USERNAMES: usernames,
        RegistryKeys.GROUP_NAMES: group_names
    })
    return UniqueNameResolver(registry=UsedNameRegistry(shared_data), **kwargs)


class RacingRegistry(UsedNameRegistry):
    """Registry where another worker wins the first claim on some names"""

    def __init__(self, shared_data, stolen):
        super().__init__(shared_data)
        self.stolen = set(stolen)

    def claim(self, kind, name_lower, display_name=None):
        if name_lower in self.stolen:
            self.stolen.discard(name_lower)
            self.used_usernames_lower.add(name_lower)
            return False
        return super().claim(kind, name_lower, display_name)


class TestResolveBasics:
    """Test cases for the common resolution paths"""

    def test_available_name_is_kept(self, resolver, registry):
        """A free name is returned as sanitized and committed"""
        result = resolver.resolve(ResolutionRequest(NameKinds.USERNAME, 'John Doe', 'user'))

        assert result == ResolvedName('John_Doe', 'john_doe', NameKinds.USERNAME)
        assert 'john_doe' in registry.used_usernames_lower

    def test_suffix_sequence(self, resolver):
        """Repeated names get _1, _2 in order"""
        assert [resolver.find_available_username('john') for _ in range(3)] == ['john', 'john_1', 'john_2']

    def test_same_input_never_repeats(self, resolver):
        names = [resolver.find_available_username('Jane') for _ in range(10)]
        assert len({name.lower() for name in names}) == 10

    def test_case_insensitive_collisions(self, resolver):
        """Names differing only by case collide, the display case is kept"""
        first = resolver.find_available_username('JohnDoe')
        second = resolver.find_available_username('johndoe')

        assert first == 'JohnDoe'
        assert second == 'johndoe_1'

    def test_usernames_and_group_names_share_one_domain(self, resolver, registry):
        """No name is usable both as a username and as a group name"""
        assert resolver.find_available_username('team') == 'team'
        assert resolver.find_available_group_name('team') == 'team_1'
        assert 'team_1' in registry.used_group_names_lower
        assert 'team_1' not in registry.used_usernames_lower

    def test_nfc_equivalent_names_collide(self, resolver):
        """Decomposed and composed spellings are the same name"""
        assert resolver.find_available_username('cafe\u0301') == 'caf\u00e9'
        assert resolver.find_available_username('caf\u00e9') == 'caf\u00e9_1'

    def test_result_details(self, resolver):
        resolver.find_available_username('john')
        result = resolver.resolve(ResolutionRequest(NameKinds.USERNAME, 'john', 'user'))

        assert result.suffix == 1
        assert result.used_fallback is False
        assert str(result) == 'john_1'
        assert result.to_dict() == {
            'name': 'john_1',
            'name_lower': 'john_1',
            'kind': NameKinds.USERNAME,
            'suffix': 1,
            'used_fallback': False
        }

    def test_ascii_mode(self):
        resolver = UniqueNameResolver(unicode_names=False)
        assert resolver.find_available_username('J\u00f6rg M\u00fcller') == 'Jorg_Muller'


class TestFallback:
    """Test cases for unusable input"""

    @pytest.mark.parametrize("raw", ['', '   ', '!!!', '\U0001F600'])
    def test_unusable_username_uses_fallback(self, resolver, raw):
        result = resolver.resolve(ResolutionRequest(NameKinds.USERNAME, raw, 'user'))

        assert result.name == 'user'
        assert result.used_fallback is True
        assert result.suffix is None

    def test_fallback_collisions_are_suffixed(self, resolver):
        assert resolver.find_available_username('') == 'user'
        assert resolver.find_available_username('') == 'user_1'
        assert resolver.find_available_group_name('') == 'group'

    def test_request_fallback(self, resolver):
        """A request may carry its own fallback"""
        result = resolver.resolve(ResolutionRequest(NameKinds.USERNAME, '', 'Imported User'))
        assert result.name == 'Imported_User'

    def test_request_fallback_blocked_by_trailing_wildcard(self):
        """A request fallback no suffix can escape gives way to the configured one"""
        resolver = UniqueNameResolver(reserved_patterns=['sys*'])

        result = resolver.resolve(ResolutionRequest(NameKinds.USERNAME, 'system_x', 'sysadmin'))

        assert result.name == 'user_1'
        assert result.used_fallback is True
        assert resolver.find_available_username('system_y') == 'user_2'

    @pytest.mark.parametrize("kind,expected", [
        (NameKinds.USERNAME, 'user'),
        (NameKinds.GROUP_NAME, 'group')
    ])
    def test_empty_request_fallback(self, resolver, kind, expected):
        result = resolver.resolve(ResolutionRequest(kind, '', '!!!'))
        assert result.name == expected

    def test_unusable_fallback_username_uses_last_resort(self):
        resolver = UniqueNameResolver(fallback_username='!!!')
        assert resolver.fallback_username == 'user'

    def test_unusable_fallback_group_name(self):
        with pytest.raises(ConfigurationError) as exc_info:
            UniqueNameResolver(fallback_group_name='!!!')
        assert exc_info.value.config_key == 'fallback-group-name'

    def test_fallback_blocked_by_trailing_wildcard(self):
        """A fallback every suffixed form of which is reserved is rejected"""
        with pytest.raises(ConfigurationError):
            UniqueNameResolver(reserved_patterns=['user*'])

    @pytest.mark.parametrize("kwargs", [{'max_length': 2}, {'max_attempts': 0}])
    def test_invalid_limits(self, kwargs):
        with pytest.raises(ConfigurationError):
            UniqueNameResolver(**kwargs)


class TestReservedNames:
    """Test cases for reserved names"""

    def test_exact_reserved(self, resolver):
        assert resolver.find_available_username('admin') == 'admin_1'
        assert resolver.find_available_username('Admin') == 'Admin_2'

    def test_allow_reserved(self, resolver):
        """Pre-existing admin accounts keep their name"""
        assert resolver.find_available_username('admin', allow_reserved=True) == 'admin'

    def test_group_names_never_allow_reserved(self, resolver):
        assert resolver.find_available_group_name('moderator') == 'moderator_1'

    def test_here_mention(self, resolver):
        assert resolver.find_available_username('here') == 'here_1'

    def test_inner_wildcard_is_escaped_by_suffix(self, resolver):
        """test_*_user reserves the full match, a suffix escapes it"""
        assert resolver.find_available_username('test_foo_user') == 'test_foo_user_1'
        assert resolver.find_available_username('my_test_foo_user') == 'my_test_foo_user'

    def test_trailing_wildcard_switches_to_fallback(self, resolver):
        """No suffix escapes system*, the fallback base is used instead"""
        result = resolver.resolve(ResolutionRequest(NameKinds.USERNAME, 'system_user', 'user'))

        assert result.used_fallback is True
        assert result.name == 'user_1'
        assert not resolver.is_reserved(result.name)

    def test_trailing_wildcard_allowed(self, resolver):
        assert resolver.find_available_username('system', allow_reserved=True) == 'system'

    def test_is_reserved(self, resolver):
        assert resolver.is_reserved('ADMIN')
        assert resolver.is_reserved('SystemBot')
        assert not resolver.is_reserved('john')

    def test_default_reserved_names_leave_fallback_free(self):
        """With the default reserved list a blank username still resolves to the bare fallback"""
        resolver = UniqueNameResolver(reserved_patterns=ValidationConstants.DEFAULT_RESERVED_USERNAMES)

        assert resolver.find_available_username('') == 'user'
        assert resolver.find_available_username('username') == 'username_1'


class TestLengthLimits:
    """Test cases for truncation"""

    def test_long_name_is_truncated(self, resolver):
        assert resolver.find_available_username('a' * 100) == 'a' * 60

    def test_truncate_to_fit_suffix(self, resolver):
        """A taken 60-character base shrinks to 58 to fit _1"""
        base = 'a' * 60
        assert resolver.find_available_username(base) == base

        second = resolver.find_available_username(base)

        assert second == 'a' * 58 + '_1'
        assert grapheme_length(second) == 60

    def test_truncation_is_remembered(self, resolver):
        base = 'b' * 60
        resolver.find_available_username(base)
        resolver.find_available_username(base)

        result = resolver.resolve(ResolutionRequest(NameKinds.USERNAME, base, 'user'))

        assert result.name == 'b' * 58 + '_2'
        assert len(resolver.truncations) == 1

    def test_truncation_drops_exposed_separator(self, resolver):
        """A cut landing after a separator does not leave it before the suffix"""
        base = 'a' * 57 + '_bc'
        resolver.find_available_username(base)

        assert resolver.find_available_username(base) == 'a' * 57 + '_1'

    def test_grapheme_clusters_survive_truncation(self, resolver):
        """Combining sequences are counted and cut as one character"""
        base = 'q\u0301' * 70

        first = resolver.find_available_username(base)
        second = resolver.find_available_username(base)

        assert first == 'q\u0301' * 60
        assert second == 'q\u0301' * 58 + '_1'
        assert grapheme_length(second) == 60

    def test_length_invariant(self, registry):
        """Every output fits the cap, whatever the input length and suffix width"""
        resolver = UniqueNameResolver(registry=registry, max_length=10)
        names = [resolver.find_available_username('x' * length) for length in range(1, 16) for _ in range(12)]

        assert all(grapheme_length(name) <= 10 for name in names)
        assert len({name.lower() for name in names}) == len(names)


class TestSharedState:
    """Test cases for resolvers sharing one registry"""

    def test_two_resolvers_never_return_the_same_name(self, shared_data):
        first = UniqueNameResolver(registry=UsedNameRegistry(shared_data))
        second = UniqueNameResolver(registry=UsedNameRegistry(shared_data))

        assert first.find_available_username('john') == 'john'
        assert second.find_available_username('john') == 'john_1'
        assert first.find_available_username('john') == 'john_2'

    def test_lost_claim_continues_search(self, shared_data):
        """Losing a claim to another worker counts as a collision"""
        registry = RacingRegistry(shared_data, stolen={'john', 'john_1'})
        resolver = UniqueNameResolver(registry=registry)

        assert resolver.find_available_username('john') == 'john_2'
        assert {'john', 'john_1', 'john_2'} <= shared_data.load(RegistryKeys.USERNAMES)


class TestAttemptBudget:
    """Test cases for the bounded suffix search"""

    def test_exhausted_search_uses_fallback(self, test_logger, log_entries):
        resolver = seeded_resolver(
            usernames={'john', 'john_1', 'john_2', 'john_3'}, max_attempts=3, logger=test_logger
        )

        result = resolver.resolve(ResolutionRequest(NameKinds.USERNAME, 'john', 'user'))

        assert result.name == 'user_1'
        assert result.used_fallback is True
        assert any(entry['message'] == 'Suffix search exhausted, using fallback name' for entry in log_entries)
        assert resolver.suffixes.last_suffix('john') == 3

    def test_truncation_costs_an_attempt(self):
        """Shrinking the base uses up the budget like any other candidate"""
        resolver = seeded_resolver(usernames={'a' * 60}, max_attempts=1)
        assert resolver.find_available_username('a' * 60) == 'user_1'

    def test_fallback_search_doubles_past_budget(self, test_logger, log_entries):
        """A fallback with more taken suffixes than max_attempts still resolves"""
        resolver = seeded_resolver(
            usernames={'john', 'john_1', 'john_2', 'john_3', 'user', 'user_1', 'user_2', 'user_3'},
            max_attempts=3,
            logger=test_logger
        )

        assert resolver.find_available_username('john') == 'user_4'
        assert any(entry['message'] == 'Fallback suffix search exhausted, doubling suffix' for entry in log_entries)
        assert resolver.find_available_username('') == 'user_5'

    def test_doubling_finds_lowest_free_suffix(self):
        usernames = {'user'} | {f'user_{n}' for n in range(1, 30)}
        resolver = seeded_resolver(usernames=usernames, max_attempts=2, suffix_cache_size=0)

        result = resolver.resolve(ResolutionRequest(NameKinds.USERNAME, '', 'user'))

        assert result.name == 'user_30'
        assert result.suffix == 30
        assert result.used_fallback is True

    def test_exhausted_fallback_raises(self, test_logger, log_entries):
        """Raises only when no suffix fits next to the fallback"""
        resolver = seeded_resolver(
            usernames={'use'} | {f'u_{n}' for n in range(1, 10)},
            max_length=3,
            max_attempts=3,
            logger=test_logger
        )

        with pytest.raises(NameResolutionExhaustedError) as exc_info:
            resolver.find_available_username('')

        assert exc_info.value.attempts == 8
        assert exc_info.value.fallback_name == 'use'
        assert log_entries[-1]['level'] == 'CRITICAL'


class TestSuffixCache:
    """The suffix and truncation caches only change performance"""

    SEQUENCE = (
        ['john'] * 5 + ['Jane', 'JANE', 'jane'] + ['a' * 60] * 4 +
        ['', '', 'admin', 'admin', 'system_x', 'team'] + ['john'] * 3
    )

    def resolve_all(self, **kwargs):
        shared_data = SharedData()
        resolver = UniqueNameResolver(
            registry=UsedNameRegistry(shared_data),
            reserved_patterns=['admin', 'system*'],
            **kwargs
        )
        names = [resolver.find_available_username(raw) for raw in self.SEQUENCE]
        return names, shared_data.load(RegistryKeys.USERNAMES)

    def test_same_registry_with_and_without_cache(self):
        cached_names, cached_registry = self.resolve_all()
        uncached_names, uncached_registry = self.resolve_all(suffix_cache_size=0, truncation_cache_size=0)

        assert len(set(n.lower() for n in cached_names)) == len(self.SEQUENCE)
        assert len(set(n.lower() for n in uncached_names)) == len(self.SEQUENCE)
        assert cached_registry == uncached_registry

    def test_cold_cache_beyond_attempt_budget(self):
        """More fallback names than max_attempts resolve the same with a cold cache"""
        blanks = [''] * 30

        cached = UniqueNameResolver(registry=UsedNameRegistry(SharedData()), max_attempts=5)
        uncached = UniqueNameResolver(
            registry=UsedNameRegistry(SharedData()), max_attempts=5, suffix_cache_size=0
        )
        cached_names = [cached.find_available_username(raw) for raw in blanks]
        uncached_names = [uncached.find_available_username(raw) for raw in blanks]

        expected = ['user'] + [f'user_{n}' for n in range(1, 30)]
        assert cached_names == expected
        assert uncached_names == expected
        assert cached.registry.shared_data.load(RegistryKeys.USERNAMES) == \
            uncached.registry.shared_data.load(RegistryKeys.USERNAMES)

    def test_new_resolver_on_shared_data(self, shared_data):
        """A fresh resolver joins a registry already past the attempt budget"""
        first = UniqueNameResolver(registry=UsedNameRegistry(shared_data), max_attempts=5)
        for _ in range(30):
            first.find_available_username('')

        second = UniqueNameResolver(registry=UsedNameRegistry(shared_data), max_attempts=5)

        assert second.find_available_username('') == 'user_30'
        assert first.find_available_username('') == 'user_31'


class TestFromConfig:
    """Test cases for building a resolver from configuration"""

    def test_from_config(self, mock_config, shared_data):
        resolver = UniqueNameResolver.from_config(mock_config, shared_data)

        assert resolver.max_length == 60
        assert resolver.max_attempts == 500
        assert resolver.fallback_group_name == 'group'
        assert resolver.is_reserved('system_bot')
        assert resolver.find_available_username('here') == 'here_1'
        assert resolver.registry.shared_data is shared_data

    def test_from_config_overrides(self, mock_config, shared_data):
        mock_config.values['max-name-length'] = '20'
        mock_config.values['unicode-usernames'] = 'false'

        resolver = UniqueNameResolver.from_config(mock_config, shared_data)

        assert resolver.find_available_username('\u00c9milie ' + 'x' * 30) == 'Emilie_' + 'x' * 13

    def test_logs_resolutions_to_sink(self, mock_config, shared_data, test_logger, log_entries):
        resolver = UniqueNameResolver.from_config(mock_config, shared_data, logger=test_logger)
        resolver.find_available_username('John Doe')

        entry = log_entries[-1]
        assert entry['message'] == 'Resolved username'
        assert entry['original'] == 'John Doe'
        assert entry['resolved'] == 'John_Doe'
        assert entry['attempts'] == 0


class TestResolutionRequest:
    """Test cases for ResolutionRequest"""

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            ResolutionRequest('team', 'john', 'user')

    @pytest.mark.parametrize("max_length", [0, 2])
    def test_invalid_max_length(self, max_length):
        """A cap below three leaves no room for a base and a suffix"""
        with pytest.raises(ValueError):
            ResolutionRequest(NameKinds.USERNAME, 'john', 'user', max_length=max_length)

    def test_minimum_max_length(self, resolver):
        request = ResolutionRequest(NameKinds.USERNAME, 'john', 'user', max_length=3)
        assert resolver.resolve(request).name == 'joh'
        assert resolver.resolve(request).name == 'j_1'
