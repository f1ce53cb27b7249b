"""Pytest shared fixtures: network guard and an in-memory Crowd directory."""
import pathlib
import sys
from typing import Dict, List, Optional, Tuple

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from crowd_federation.core.crowd.exceptions import (
    GroupNotFoundError,
    InactiveAccountError,
    InvalidUserAuthenticationError,
    UserNotFoundError,
)
from crowd_federation.core.crowd.models import CrowdGroup, CrowdUser
from crowd_federation.core.crowd.restrictions import BooleanLogic, BooleanRestriction, TermRestriction
from crowd_federation.core.provider import CrowdStorageProvider

PROVIDER_ID = "crowd-test"


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from reaching a real Crowd server.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _stub(url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP call in unit test: {url}")

    monkeypatch.setattr(requests, "get", _stub)
    monkeypatch.setattr(requests, "post", _stub)


# ─────────────────────────────────────────────────────────────────────────────
# In-memory Crowd
# ─────────────────────────────────────────────────────────────────────────────
_USER_FIELDS = {
    "name": "name",
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "displayName": "display_name",
}


class FakeCrowdDirectory:
    """Directory client backed by dictionaries.

    Behaves like CrowdClient: unknown users/groups raise the Crowd not-found
    errors, searches are case-insensitive and ordered by username.
    Exceptions registered in ``failures`` under ``(method, key)`` are raised
    instead of answering.
    """

    def __init__(self):
        self.users: Dict[str, CrowdUser] = {}
        self.groups: Dict[str, CrowdGroup] = {}
        self.user_groups: Dict[str, List[str]] = {}
        self.parents: Dict[str, List[str]] = {}
        self.children: Dict[str, List[str]] = {}
        self.passwords: Dict[str, str] = {}
        self.failures: Dict[Tuple[str, Optional[str]], Exception] = {}
        self.calls: List[Tuple] = []

    # Setup helpers

    def add_user(self, name, groups=(), password="secret", **fields) -> CrowdUser:
        fields.setdefault("email", f"{name.lower()}@example.com")
        fields.setdefault("display_name", name.title())
        user = CrowdUser(name=name, **fields)
        self.users[name] = user
        self.user_groups[name] = list(groups)
        self.passwords[name] = password
        for group in groups:
            self.add_group(group)
        return user

    def add_group(self, name, parent=None, attributes=None) -> CrowdGroup:
        group = self.groups.get(name)
        if group is None:
            group = CrowdGroup(name=name, attributes=dict(attributes or {}))
            self.groups[name] = group
        elif attributes:
            group.attributes.update(attributes)
        if parent is not None:
            self.add_group(parent)
            self.parents[name] = [parent]
            self.children.setdefault(parent, [])
            if name not in self.children[parent]:
                self.children[parent].append(name)
        return group

    def fail(self, method, key, exc) -> None:
        self.failures[(method, key)] = exc

    def calls_to(self, method) -> List[Tuple]:
        return [call[1:] for call in self.calls if call[0] == method]

    # DirectoryClient

    def get_user(self, username):
        self._enter("get_user", username)
        if username not in self.users:
            raise UserNotFoundError(404, f"User <{username}> does not exist", "/user", "USER_NOT_FOUND")
        return self.users[username]

    def search_users(self, restriction, start_index, max_results):
        self._enter("search_users", None, restriction, start_index, max_results)
        matched = [u for _, u in sorted(self.users.items()) if self._matches(u, restriction)]
        return matched[start_index:start_index + max_results]

    def search_user_names(self, restriction, start_index, max_results):
        self._enter("search_user_names", None, restriction, start_index, max_results)
        matched = [n for n, u in sorted(self.users.items()) if self._matches(u, restriction)]
        return matched[start_index:start_index + max_results]

    def get_groups_of_user(self, username, start_index, max_results):
        self._enter("get_groups_of_user", username, start_index, max_results)
        if username not in self.users:
            raise UserNotFoundError(404, f"User <{username}> does not exist", "/user/group/direct", "USER_NOT_FOUND")
        names = self.user_groups.get(username, [])
        return [self.groups[n] for n in names][start_index:start_index + max_results]

    def get_parent_groups(self, group_name, start_index, max_results):
        return self._related("get_parent_groups", self.parents, group_name, start_index, max_results)

    def get_child_groups(self, group_name, start_index, max_results):
        return self._related("get_child_groups", self.children, group_name, start_index, max_results)

    def get_users_of_group(self, group_name, start_index, max_results):
        self._enter("get_users_of_group", group_name, start_index, max_results)
        self._require_group(group_name)
        members = [u for n, u in sorted(self.users.items()) if group_name in self.user_groups.get(n, [])]
        return members[start_index:start_index + max_results]

    def authenticate(self, username, password):
        self._enter("authenticate", username)
        if username not in self.users:
            raise UserNotFoundError(400, f"User <{username}> does not exist", "/authentication", "USER_NOT_FOUND")
        user = self.users[username]
        if not user.active:
            raise InactiveAccountError(400, "Account is inactive", "/authentication", "INACTIVE_ACCOUNT")
        if self.passwords.get(username) != password:
            raise InvalidUserAuthenticationError(
                400, "Failed to authenticate principal, password was invalid",
                "/authentication", "INVALID_USER_AUTHENTICATION",
            )
        return user

    # Internals

    def _enter(self, method, key, *args):
        self.calls.append((method, key) + args)
        exc = self.failures.get((method, key))
        if exc is not None:
            raise exc

    def _require_group(self, group_name):
        if group_name not in self.groups:
            raise GroupNotFoundError(
                404, f"Group <{group_name}> does not exist", "/group", "GROUP_NOT_FOUND"
            )

    def _related(self, method, relation, group_name, start_index, max_results):
        self._enter(method, group_name, start_index, max_results)
        self._require_group(group_name)
        names = relation.get(group_name, [])
        return [self.groups[n] for n in names][start_index:start_index + max_results]

    def _matches(self, user, restriction) -> bool:
        if isinstance(restriction, BooleanRestriction):
            assert restriction.logic == BooleanLogic.OR
            return any(self._matches(user, r) for r in restriction.restrictions)
        assert isinstance(restriction, TermRestriction)
        prop = restriction.property.name
        if prop in _USER_FIELDS:
            values = [getattr(user, _USER_FIELDS[prop]) or ""]
        else:
            values = user.attributes.get(prop, [])
        needle = restriction.value.lower()
        return any(needle in value.lower() for value in values)


@pytest.fixture()
def directory():
    """Empty in-memory Crowd directory."""
    return FakeCrowdDirectory()


@pytest.fixture()
def provider(directory):
    """Provider wired to the in-memory directory."""
    return CrowdStorageProvider(directory, PROVIDER_ID)
