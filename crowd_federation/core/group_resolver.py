"""Group hierarchy resolution for Crowd users.

Crowd only answers flat questions: "which groups is this user in", "what is
the parent of this group", "what are the children of this group". This
module walks those answers into linked ``GroupNode`` trees.

For every group the user is a direct member of:
    1. ascend: fetch the nearest parent (one per call) until there is none
    2. descend: fetch all children, then recurse into each child

A group that disappears while it is being walked ends that branch. Any
other directory failure aborts the whole resolution with a single
``DirectoryAccessError``; partial trees are never returned.

Crowd does not guarantee an acyclic hierarchy. A link that would close a
cycle is not made; the edge is logged and the walk stops there.
"""
from __future__ import annotations
import logging
from typing import Callable, List, Set

from .crowd.client import DirectoryClient, MAX_RESULTS
from .crowd.exceptions import CrowdError, GroupNotFoundError
from .crowd.models import CrowdGroup
from .errors import DirectoryAccessError
from .groups import GroupHierarchy, GroupNode

logger = logging.getLogger(__name__)


class GroupResolver:
    """Resolves a user's groups together with their ancestors and descendants."""

    def __init__(self, client: DirectoryClient, provider_id: str):
        """Initialize group resolver.

        Args:
            client: Crowd directory client
            provider_id: Provider component id used to namespace group ids
        """
        self.client = client
        self.provider_id = provider_id

    def resolve_groups_for_user(self, username: str) -> Set[GroupNode]:
        """Return the user's direct groups, each with its full hierarchy attached.

        Args:
            username: Crowd username

        Returns:
            Set of the groups the user is a direct member of

        Raises:
            DirectoryAccessError: If Crowd fails during resolution
        """
        hierarchy = GroupHierarchy(self.provider_id)
        try:
            direct = self.client.get_groups_of_user(username, 0, MAX_RESULTS)
            roots = []
            for group in direct:
                node = hierarchy.node_for(group)
                self._ascend(node, hierarchy)
                self._descend(node, hierarchy)
                roots.append(node)
        except CrowdError as exc:
            logger.error(f"Failed to resolve groups of '{username}': {exc}")
            raise DirectoryAccessError(f"Failed to resolve groups of '{username}': {exc}") from exc

        hierarchy.seal()
        logger.debug(f"Resolved {len(roots)} direct groups ({len(hierarchy)} total) for '{username}'")
        return set(roots)

    def _ascend(self, node: GroupNode, hierarchy: GroupHierarchy) -> None:
        while hierarchy.mark_ascended(node):
            parents = self._edge(self.client.get_parent_groups, node.name, 1)
            if not parents:
                return
            parent = hierarchy.node_for(parents[0])
            if hierarchy.closes_parent_cycle(node, parent):
                logger.warning(
                    f"Group hierarchy cycle: '{parent.name}' is already below '{node.name}'; "
                    f"parent link ignored"
                )
                return
            hierarchy.set_parent(node, parent)
            node = parent

    def _descend(self, node: GroupNode, hierarchy: GroupHierarchy) -> None:
        if not hierarchy.mark_descended(node):
            return
        for group in self._edge(self.client.get_child_groups, node.name, MAX_RESULTS):
            child = hierarchy.node_for(group)
            if hierarchy.closes_child_cycle(node, child):
                logger.warning(
                    f"Group hierarchy cycle: '{child.name}' is already above '{node.name}'; "
                    f"child link ignored"
                )
                continue
            hierarchy.add_child(node, child)
            self._descend(child, hierarchy)

    @staticmethod
    def _edge(fetch: Callable[[str, int, int], List[CrowdGroup]], group_name: str, limit: int) -> List[CrowdGroup]:
        try:
            return fetch(group_name, 0, limit)
        except GroupNotFoundError:
            logger.debug(f"Group '{group_name}' vanished during resolution")
            return []
