"""Read-only user federation to an Atlassian Crowd deployment.

The provider answers the host's user lookup, search, group membership and
password questions by querying Crowd live; nothing is cached or stored.

Architecture:
    host ──> CrowdStorageProvider ──> build_restriction ──> CrowdClient ──> Crowd
                     │
                     └──> GroupResolver (per user) ──> CrowdUserAdapter

Error policy:
    - lookups that find nothing return None / empty lists
    - a group that vanished while walking the hierarchy ends that branch
    - rejected passwords (wrong, inactive, unknown, expired) are False
    - every other Crowd failure is raised as DirectoryAccessError
"""
from __future__ import annotations
import logging
from typing import List, Mapping, Optional

from .crowd.client import DirectoryClient, MAX_RESULTS
from .crowd.exceptions import (
    CrowdError,
    ExpiredCredentialError,
    GroupNotFoundError,
    InactiveAccountError,
    InvalidUserAuthenticationError,
    UserNotFoundError,
)
from .crowd.models import CrowdUser
from .crowd.restrictions import MATCH_ALL, build_restriction
from .errors import DirectoryAccessError
from .group_resolver import GroupResolver
from .groups import GroupNode
from .storage_id import external_id
from .user_adapter import CrowdUserAdapter

PASSWORD = "password"

logger = logging.getLogger(__name__)


class CrowdStorageProvider:
    """User lookup, query and credential validation backed by Crowd."""

    def __init__(self, client: DirectoryClient, provider_id: str):
        """Initialize provider.

        Args:
            client: Crowd directory client
            provider_id: Provider component id used to namespace user and group ids
        """
        self.client = client
        self.provider_id = provider_id
        self.group_resolver = GroupResolver(client, provider_id)

    # ─────────────────────────────────────────────────────────────────────
    # Lookup
    # ─────────────────────────────────────────────────────────────────────
    def get_user_by_username(self, username: str) -> Optional[CrowdUserAdapter]:
        """Retrieve a user by its username.

        Returns:
            The user with its groups resolved, or None if Crowd has no such user

        Raises:
            DirectoryAccessError: On any other Crowd failure
        """
        try:
            entity = self.client.get_user(username)
        except UserNotFoundError:
            return None
        except CrowdError as exc:
            raise self._access_error(f"Failed to look up user '{username}'", exc) from exc
        return self._to_user(entity)

    def get_user_by_id(self, user_id: str) -> Optional[CrowdUserAdapter]:
        """Retrieve a user by its host id (``f:<provider>:<username>``)."""
        return self.get_user_by_username(external_id(user_id))

    def get_user_by_email(self, email: str) -> Optional[CrowdUserAdapter]:
        """Retrieve the first user whose email matches."""
        users = self.search_for_user({"email": email}, 0, 1)
        return users[0] if users else None

    # ─────────────────────────────────────────────────────────────────────
    # Query
    # ─────────────────────────────────────────────────────────────────────
    def get_users_count(self) -> int:
        """Number of users in Crowd visible to the application."""
        try:
            return len(self.client.search_user_names(MATCH_ALL, 0, MAX_RESULTS))
        except CrowdError as exc:
            raise self._access_error("Failed to count users", exc) from exc

    def get_users(self, first_result: int = 0, max_results: int = MAX_RESULTS) -> List[CrowdUserAdapter]:
        """List users, paged."""
        return self.search_for_user_text("", first_result, max_results)

    def search_for_user_text(
        self, search: str, first_result: int = 0, max_results: int = MAX_RESULTS
    ) -> List[CrowdUserAdapter]:
        """Free-text search over first name, last name, email and username."""
        params = {
            "first": search,
            "last": search,
            "email": search,
            "username": search,
        }
        return self.search_for_user(params, first_result, max_results)

    def search_for_user(
        self, params: Mapping[str, str], first_result: int = 0, max_results: int = MAX_RESULTS
    ) -> List[CrowdUserAdapter]:
        """Search users whose fields contain any of the given values.

        Args:
            params: Host field name (first, last, username, email or any
                attribute name) to substring; an empty mapping lists everyone
            first_result: Index of the first result
            max_results: Page size

        Returns:
            Users in Crowd's order, each with its groups resolved

        Raises:
            DirectoryAccessError: On Crowd failure
        """
        restriction = build_restriction(params)
        try:
            entities = self.client.search_users(restriction, first_result, max_results)
        except CrowdError as exc:
            raise self._access_error("User search failed", exc) from exc
        logger.debug(f"Search {dict(params)!r} [{first_result}:+{max_results}] matched {len(entities)} users")
        return [self._to_user(entity) for entity in entities]

    def search_for_user_by_attribute(self, attr_name: str, attr_value: str) -> List[CrowdUserAdapter]:
        """Search users by a single attribute (substring match)."""
        return self.search_for_user({attr_name: attr_value}, 0, MAX_RESULTS)

    def get_group_members(
        self, group: GroupNode, first_result: int = 0, max_results: int = MAX_RESULTS
    ) -> List[CrowdUserAdapter]:
        """Direct members of a group; empty if the group no longer exists."""
        try:
            entities = self.client.get_users_of_group(group.name, first_result, max_results)
        except GroupNotFoundError:
            return []
        except CrowdError as exc:
            raise self._access_error(f"Failed to list members of '{group.name}'", exc) from exc
        return [self._to_user(entity) for entity in entities]

    # ─────────────────────────────────────────────────────────────────────
    # Credentials
    # ─────────────────────────────────────────────────────────────────────
    def supports_credential_type(self, credential_type: str) -> bool:
        return credential_type == PASSWORD

    def is_configured_for(self, user: CrowdUserAdapter, credential_type: str) -> bool:
        return self.supports_credential_type(credential_type)

    def is_valid(self, user: CrowdUserAdapter, credential_type: str, challenge_response: str) -> bool:
        """Check a user's password against Crowd.

        Returns:
            True if Crowd accepts the password; False for unsupported
            credential types and for rejected authentications

        Raises:
            DirectoryAccessError: If Crowd itself fails
        """
        if not self.supports_credential_type(credential_type):
            return False

        try:
            return self.client.authenticate(user.username, challenge_response) is not None
        except (InvalidUserAuthenticationError, InactiveAccountError,
                UserNotFoundError, ExpiredCredentialError) as exc:
            logger.info(f"Authentication rejected for '{user.username}': {type(exc).__name__}")
            return False
        except CrowdError as exc:
            raise self._access_error(f"Failed to authenticate '{user.username}'", exc) from exc

    def close(self) -> None:
        pass

    # ─────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────
    def _to_user(self, entity: CrowdUser) -> CrowdUserAdapter:
        groups = self.group_resolver.resolve_groups_for_user(entity.name)
        return CrowdUserAdapter(self.provider_id, entity, groups)

    @staticmethod
    def _access_error(message: str, exc: CrowdError) -> DirectoryAccessError:
        logger.error(f"{message}: {exc}")
        return DirectoryAccessError(f"{message}: {exc}")
