"""Read-only user model for Crowd users."""
from __future__ import annotations
from typing import Dict, FrozenSet, Iterable, List, Optional, Set

from .crowd.models import CrowdUser
from .errors import read_only
from .groups import GroupNode
from .storage_id import storage_id

ATTR_DISPLAY_NAME = "displayName"


class CrowdUserAdapter:
    """A Crowd user as seen by the host.

    The adapter is built with its groups already resolved and never changes
    afterwards; every mutator raises ``ReadOnlyError``. The username keeps
    the case Crowd returned.
    """

    def __init__(self, provider_id: str, entity: CrowdUser, groups: Iterable[GroupNode]):
        self.id = storage_id(provider_id, entity.name)
        self._entity = entity
        self._groups: FrozenSet[GroupNode] = frozenset(groups)

    @property
    def username(self) -> str:
        return self._entity.name

    @property
    def email(self) -> Optional[str]:
        return self._entity.email

    @property
    def email_verified(self) -> bool:
        return True

    @property
    def first_name(self) -> Optional[str]:
        return self._entity.first_name

    @property
    def last_name(self) -> Optional[str]:
        return self._entity.last_name

    @property
    def display_name(self) -> Optional[str]:
        return self._entity.display_name

    @property
    def enabled(self) -> bool:
        return self._entity.active

    def get_attribute(self, name: str) -> List[str]:
        """Return all values of an attribute (``displayName`` included)."""
        if name == ATTR_DISPLAY_NAME:
            return [self._entity.display_name]
        values = self._entity.get_values(name)
        return list(values) if values is not None else []

    def get_first_attribute(self, name: str) -> Optional[str]:
        if name == ATTR_DISPLAY_NAME:
            return self._entity.display_name
        return self._entity.get_value(name)

    def get_attributes(self) -> Dict[str, List[str]]:
        attributes = {ATTR_DISPLAY_NAME: [self._entity.display_name]}
        for key, values in self._entity.attributes.items():
            if values is not None:
                attributes[key] = list(values)
        return attributes

    # Groups and roles

    def get_groups(self) -> FrozenSet[GroupNode]:
        return self._groups

    def is_member_of(self, group: GroupNode) -> bool:
        """True if ``group`` is one of the user's groups or one of their ancestors."""
        for current in self._groups:
            while current is not None:
                if current.id == group.id:
                    return True
                current = current.parent
        return False

    def get_role_mappings(self) -> Set:
        return set()

    def get_realm_role_mappings(self) -> Set:
        return set()

    def get_client_role_mappings(self, client) -> Set:
        return set()

    def has_role(self, role) -> bool:
        return False

    set_username = read_only
    set_email = read_only
    set_email_verified = read_only
    set_first_name = read_only
    set_last_name = read_only
    set_enabled = read_only
    set_attribute = read_only
    set_single_attribute = read_only
    remove_attribute = read_only
    join_group = read_only
    leave_group = read_only
    grant_role = read_only
    delete_role_mapping = read_only

    def __eq__(self, other) -> bool:
        if not isinstance(other, CrowdUserAdapter):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"CrowdUserAdapter(username={self.username!r}, groups={len(self._groups)})"
