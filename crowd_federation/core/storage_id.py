"""Namespaced ids for federated entities.

A federated entity id has the form ``f:<provider id>:<external id>``, where
the external id is the Crowd user or group name, unchanged.
"""
from __future__ import annotations
from typing import Optional

PREFIX = "f:"


def storage_id(provider_id: str, external_id: str) -> str:
    """Build the host id for a Crowd entity name."""
    return f"{PREFIX}{provider_id}:{external_id}"


def external_id(entity_id: str) -> str:
    """Return the Crowd name encoded in a host id.

    Ids without the federation prefix are returned unchanged.
    """
    if not entity_id.startswith(PREFIX):
        return entity_id
    sep = entity_id.find(":", len(PREFIX))
    if sep == -1:
        return entity_id
    return entity_id[sep + 1:]


def provider_id(entity_id: str) -> Optional[str]:
    """Return the provider component id encoded in a host id, if any."""
    if not entity_id.startswith(PREFIX):
        return None
    sep = entity_id.find(":", len(PREFIX))
    if sep == -1:
        return None
    return entity_id[len(PREFIX):sep]
