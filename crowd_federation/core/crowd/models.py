"""Crowd entity records as returned by the REST API."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _parse_attributes(payload: Dict[str, Any]) -> Dict[str, List[str]]:
    """Flatten Crowd's ``{"attributes": {"attributes": [{name, values}]}}`` block."""
    block = payload.get("attributes") or {}
    if isinstance(block, dict):
        entries = block.get("attributes") or []
    else:
        entries = block
    attributes: Dict[str, List[str]] = {}
    for entry in entries:
        name = entry.get("name")
        if not name:
            continue
        attributes.setdefault(name, [])
        for value in entry.get("values") or []:
            if value not in attributes[name]:
                attributes[name].append(value)
    return attributes


@dataclass
class CrowdUser:
    """A Crowd user with its attributes."""
    name: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: Optional[str] = None
    active: bool = True
    attributes: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "CrowdUser":
        return cls(
            name=payload["name"],
            email=payload.get("email"),
            first_name=payload.get("first-name"),
            last_name=payload.get("last-name"),
            display_name=payload.get("display-name"),
            active=payload.get("active", True),
            attributes=_parse_attributes(payload),
        )

    def get_values(self, name: str) -> Optional[List[str]]:
        return self.attributes.get(name)

    def get_value(self, name: str) -> Optional[str]:
        values = self.attributes.get(name)
        return values[0] if values else None


@dataclass
class CrowdGroup:
    """A Crowd group with its attributes."""
    name: str
    description: Optional[str] = None
    active: bool = True
    attributes: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "CrowdGroup":
        return cls(
            name=payload["name"],
            description=payload.get("description"),
            active=payload.get("active", True),
            attributes=_parse_attributes(payload),
        )

    def get_values(self, name: str) -> Optional[List[str]]:
        return self.attributes.get(name)

    def get_value(self, name: str) -> Optional[str]:
        values = self.attributes.get(name)
        return values[0] if values else None
