"""Read-only group model for Crowd groups.

Groups resolved for one user live in a ``GroupHierarchy``: an arena of
``GroupNode`` values keyed by group id. Parent and child links are stored
as ids and resolved through the arena, so a group reached by several paths
is a single node.

Links are directional. Walking up from a user's group follows ``parent``;
walking down follows ``children``. Node equality compares the id, the
ancestor chain (through ``parent`` only) and the descendant subtree
(through ``children`` only), never the attribute payload.
"""
from __future__ import annotations
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

from .crowd.models import CrowdGroup
from .errors import read_only
from .storage_id import storage_id


class GroupNode:
    """A Crowd group as seen by the host.

    Every mutator raises ``ReadOnlyError``; links are set by the owning
    ``GroupHierarchy`` while groups are resolved.
    """

    def __init__(self, hierarchy: "GroupHierarchy", group: CrowdGroup):
        self._hierarchy = hierarchy
        self._group = group
        self.id = storage_id(hierarchy.provider_id, group.name)
        self._parent_id: Optional[str] = None
        self._child_ids: Dict[str, None] = {}
        self._key: Optional[Tuple] = None
        self._subtree: Optional[FrozenSet] = None

    @property
    def name(self) -> str:
        return self._group.name

    # Attributes

    def get_first_attribute(self, name: str) -> Optional[str]:
        return self._group.get_value(name)

    def get_attribute(self, name: str) -> List[str]:
        values = self._group.get_values(name)
        return list(values) if values is not None else []

    def get_attributes(self) -> Dict[str, List[str]]:
        return {key: self.get_attribute(key) for key in self._group.attributes}

    # Hierarchy

    @property
    def parent(self) -> Optional["GroupNode"]:
        if self._parent_id is None:
            return None
        return self._hierarchy.get(self._parent_id)

    @property
    def parent_id(self) -> Optional[str]:
        return self._parent_id

    @property
    def children(self) -> FrozenSet["GroupNode"]:
        return frozenset(self._hierarchy.get(child_id) for child_id in self._child_ids)

    sub_groups = children

    # Roles are not federated

    def get_realm_role_mappings(self) -> Set:
        return set()

    def get_client_role_mappings(self, client) -> Set:
        return set()

    def get_role_mappings(self) -> Set:
        return set()

    def has_role(self, role) -> bool:
        return False

    set_name = read_only
    set_single_attribute = read_only
    set_attribute = read_only
    remove_attribute = read_only
    set_parent = read_only
    add_child = read_only
    remove_child = read_only
    grant_role = read_only
    delete_role_mapping = read_only

    # Identity

    def _lineage_key(self) -> Tuple[str, ...]:
        return tuple(self._hierarchy.lineage_ids(self)[1:])

    def _subtree_key(self) -> FrozenSet:
        if self._subtree is not None:
            return self._subtree
        subtree = frozenset((child.id, child._subtree_key()) for child in self.children)
        if self._hierarchy.sealed:
            self._subtree = subtree
        return subtree

    def structural_key(self) -> Tuple:
        """Id, ancestor ids and descendant subtree; cached once the hierarchy is sealed."""
        if self._key is not None:
            return self._key
        key = (self.id, self._lineage_key(), self._subtree_key())
        if self._hierarchy.sealed:
            self._key = key
        return key

    def __eq__(self, other) -> bool:
        if self is other:
            return True
        if not isinstance(other, GroupNode):
            return NotImplemented
        return self.structural_key() == other.structural_key()

    def __hash__(self) -> int:
        return hash(self.structural_key())

    def __repr__(self) -> str:
        return f"GroupNode(name={self.name!r}, parent={self._parent_id!r}, children={len(self._child_ids)})"


class GroupHierarchy:
    """Arena of the groups resolved during one lookup.

    The arena is created per resolution and discarded with the request.
    """

    def __init__(self, provider_id: str):
        self.provider_id = provider_id
        self.sealed = False
        self._nodes: Dict[str, GroupNode] = {}
        self._ascended: Set[str] = set()
        self._descended: Set[str] = set()

    def node_for(self, group: CrowdGroup) -> GroupNode:
        """Return the arena node for a Crowd group, creating it on first sight."""
        node_id = storage_id(self.provider_id, group.name)
        node = self._nodes.get(node_id)
        if node is None:
            node = GroupNode(self, group)
            self._nodes[node_id] = node
        return node

    def get(self, node_id: str) -> Optional[GroupNode]:
        return self._nodes.get(node_id)

    def __len__(self) -> int:
        return len(self._nodes)

    # Walk bookkeeping

    def mark_ascended(self, node: GroupNode) -> bool:
        """Record that ``node``'s ancestors are being resolved; False if already done."""
        if node.id in self._ascended:
            return False
        self._ascended.add(node.id)
        return True

    def mark_descended(self, node: GroupNode) -> bool:
        """Record that ``node``'s descendants are being resolved; False if already done."""
        if node.id in self._descended:
            return False
        self._descended.add(node.id)
        return True

    def lineage_ids(self, node: GroupNode) -> List[str]:
        """Ids from ``node`` up to its root, ``node`` first."""
        ids = [node.id]
        current = node
        while current._parent_id is not None:
            ids.append(current._parent_id)
            current = self._nodes[current._parent_id]
        return ids

    def subtree_ids(self, node: GroupNode) -> Set[str]:
        """Ids of ``node`` and every descendant reachable through children."""
        seen: Set[str] = set()
        stack = [node.id]
        while stack:
            node_id = stack.pop()
            if node_id in seen:
                continue
            seen.add(node_id)
            stack.extend(self._nodes[node_id]._child_ids)
        return seen

    # Linking

    def closes_parent_cycle(self, node: GroupNode, parent: GroupNode) -> bool:
        return node.id in self.lineage_ids(parent)

    def closes_child_cycle(self, node: GroupNode, child: GroupNode) -> bool:
        return node.id in self.subtree_ids(child)

    def set_parent(self, node: GroupNode, parent: GroupNode) -> None:
        self._check_open()
        if node._parent_id is not None:
            raise RuntimeError(f"Parent of group '{node.name}' already resolved")
        node._parent_id = parent.id

    def add_child(self, node: GroupNode, child: GroupNode) -> None:
        self._check_open()
        node._child_ids[child.id] = None

    def seal(self) -> None:
        """Freeze all links; node identity is cached from here on."""
        self.sealed = True

    def _check_open(self) -> None:
        if self.sealed:
            raise RuntimeError("Group hierarchy is sealed")
