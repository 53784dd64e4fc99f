"""
Used-name registry shared by every resolver working on the same migration
"""
import threading
from collections.abc import MutableSet
from typing import Dict, Iterator, Optional

from .constants import NameKinds, RegistryKeys
from .logger import registry_logger as logger


class SharedData:
    """
    In-memory shared store

    load(key) returns the same mutable set for a key on every call, so all
    registries built on one store see each other's names. The store's lock
    serializes check-and-insert for those registries.
    """

    def __init__(self, initial: Optional[Dict[str, set]] = None):
        self._sets: Dict[str, set] = {}
        self.lock = threading.RLock()
        for key, names in (initial or {}).items():
            self._sets[key] = set(names)

    def load(self, key: str) -> set:
        with self.lock:
            if key not in self._sets:
                self._sets[key] = set()
            return self._sets[key]


class DynamoNameSet(MutableSet):
    """
    Set-like view of the names one kind holds in the UsedName table

    Membership and insertion go to DynamoDB on every call; claim() is the
    atomic insert-if-absent used by the registry.
    """

    def __init__(self, kind: str, model=None):
        if model is None:
            from .models.used_name import UsedName
            model = UsedName
        self.kind = kind
        self.model = model

    def __contains__(self, name_lower) -> bool:
        item = self.model.get_used(name_lower)
        return item is not None and item.kind == self.kind

    def __iter__(self) -> Iterator[str]:
        return self.model.iter_names(self.kind)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def add(self, name_lower: str):
        self.model.claim(name_lower, self.kind)

    def discard(self, name_lower: str):
        self.model.release(name_lower, self.kind)

    def claim(self, name_lower: str, display_name: Optional[str] = None) -> bool:
        return self.model.claim(name_lower, self.kind, display_name)

    def is_taken(self, name_lower: str) -> bool:
        """True if any kind holds the name"""
        return self.model.get_used(name_lower) is not None


class DynamoSharedData:
    """
    DynamoDB-backed shared store

    Every process pointing at the same table shares one collision domain.
    """

    def __init__(self, model=None):
        self.model = model
        self._sets: Dict[str, DynamoNameSet] = {}

    def load(self, key: str) -> DynamoNameSet:
        if key not in RegistryKeys.KIND_BY_KEY:
            raise KeyError(f"Unknown registry key: {key}")
        if key not in self._sets:
            self._sets[key] = DynamoNameSet(RegistryKeys.KIND_BY_KEY[key], self.model)
        return self._sets[key]


class UsedNameRegistry:
    """
    The two used-name sets (usernames and group names) as one collision domain
    """

    def __init__(self, shared_data=None):
        if shared_data is None:
            shared_data = SharedData()

        self.shared_data = shared_data
        self.used_usernames_lower = shared_data.load(RegistryKeys.USERNAMES)
        self.used_group_names_lower = shared_data.load(RegistryKeys.GROUP_NAMES)
        self._lock = getattr(shared_data, 'lock', None) or threading.RLock()

    def names_for(self, kind: str):
        if kind == NameKinds.USERNAME:
            return self.used_usernames_lower
        if kind == NameKinds.GROUP_NAME:
            return self.used_group_names_lower
        raise ValueError(f"Unknown name kind: {kind}")

    def is_used(self, name_lower: str) -> bool:
        """True if the name is taken by a username or a group name"""
        is_taken = getattr(self.used_usernames_lower, 'is_taken', None)
        if is_taken is not None:
            return is_taken(name_lower)

        return name_lower in self.used_usernames_lower or name_lower in self.used_group_names_lower

    def claim(self, kind: str, name_lower: str, display_name: Optional[str] = None) -> bool:
        """
        Atomically insert the name for a kind unless it is already used

        Args:
            kind: 'username' or 'group_name'
            name_lower: Lower-cased name
            display_name: Display-case form, kept by stores that record it

        Returns:
            True if the caller won the name
        """
        names = self.names_for(kind)

        store_claim = getattr(names, 'claim', None)
        if store_claim is not None:
            return store_claim(name_lower, display_name)

        with self._lock:
            if self.is_used(name_lower):
                logger.debug("Lost claim on name", kind=kind, name_lower=name_lower)
                return False
            names.add(name_lower)
            return True

    def __contains__(self, name_lower: str) -> bool:
        return self.is_used(name_lower)
