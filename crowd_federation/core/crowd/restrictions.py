"""Crowd search restrictions and the search-parameter translator.

Crowd searches take a restriction tree: property terms combined with
boolean logic. This module models that tree as immutable values and
translates the host's search parameters into it.

Usage:
    restriction = build_restriction({"first": "ali", "email": "example.com"})
    client.search_users(restriction, 0, 50)
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple, Union

# Host search keys that are named differently in Crowd
PARAM_MAP: Mapping[str, str] = {
    "first": "firstName",
    "last": "lastName",
    "username": "name",
}


class MatchMode:
    """Crowd property match modes."""
    CONTAINS = "CONTAINS"


class BooleanLogic:
    """Crowd boolean restriction operators."""
    OR = "or"


@dataclass(frozen=True)
class Property:
    """A searchable Crowd entity property."""
    name: str
    type: str = "STRING"

    def to_json(self) -> Dict[str, str]:
        return {"name": self.name, "type": self.type}


@dataclass(frozen=True)
class TermRestriction:
    """Single property match, e.g. ``email CONTAINS "@example.com"``."""
    property: Property
    match_mode: str
    value: str

    def to_json(self) -> Dict[str, Any]:
        """Serialize to the Crowd REST ``property-search`` representation."""
        return {
            "restriction-type": "property-search",
            "property": self.property.to_json(),
            "match-mode": self.match_mode,
            "value": self.value,
        }


@dataclass(frozen=True)
class BooleanRestriction:
    """Boolean combination of restrictions."""
    logic: str
    restrictions: Tuple["Restriction", ...]

    def to_json(self) -> Dict[str, Any]:
        """Serialize to the Crowd REST ``boolean-search`` representation."""
        return {
            "restriction-type": "boolean-search",
            "boolean-logic": self.logic,
            "restrictions": [r.to_json() for r in self.restrictions],
        }


Restriction = Union[TermRestriction, BooleanRestriction]

# Matches every entity: every name contains the empty string
MATCH_ALL: TermRestriction = TermRestriction(Property("name"), MatchMode.CONTAINS, "")


def build_restriction(params: Mapping[str, str]) -> Restriction:
    """Translate host search parameters into a Crowd restriction.

    Each ``(key, value)`` pair becomes a CONTAINS term on the Crowd property
    named by ``PARAM_MAP`` (unlisted keys are used as-is). Terms are OR-ed
    together in the iteration order of ``params``.

    Args:
        params: Mapping of host field name to substring value

    Returns:
        ``MATCH_ALL`` when ``params`` is empty, otherwise a boolean OR restriction
    """
    if not params:
        return MATCH_ALL

    terms = tuple(
        TermRestriction(Property(PARAM_MAP.get(key, key)), MatchMode.CONTAINS, value)
        for key, value in params.items()
    )
    return BooleanRestriction(BooleanLogic.OR, terms)
