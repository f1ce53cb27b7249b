"""Crowd REST API client library.

Architecture:
- client.py: HTTP client with application authentication and error mapping
- models.py: User and group records
- restrictions.py: Search restriction model and search-parameter translation
- exceptions.py: Typed exceptions for error handling

Usage:
    from crowd_federation.core.crowd import CrowdClient, build_restriction

    client = CrowdClient("https://crowd.example.com/crowd", "keycloak", "secret")
    users = client.search_users(build_restriction({"email": "@example.com"}), 0, 25)
"""
from .client import (
    CrowdClient,
    DirectoryClient,
    MAX_RESULTS,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    CrowdError,
    CrowdAPIError,
    OperationFailedError,
    InvalidAuthenticationError,
    ApplicationPermissionError,
    UserNotFoundError,
    GroupNotFoundError,
    InactiveAccountError,
    ExpiredCredentialError,
    InvalidUserAuthenticationError,
)
from .models import CrowdGroup, CrowdUser
from .restrictions import (
    MATCH_ALL,
    PARAM_MAP,
    BooleanLogic,
    BooleanRestriction,
    MatchMode,
    Property,
    Restriction,
    TermRestriction,
    build_restriction,
)

__all__ = [
    # Client
    "CrowdClient",
    "DirectoryClient",
    "MAX_RESULTS",
    "REQUEST_TIMEOUT",

    # Exceptions
    "CrowdError",
    "CrowdAPIError",
    "OperationFailedError",
    "InvalidAuthenticationError",
    "ApplicationPermissionError",
    "UserNotFoundError",
    "GroupNotFoundError",
    "InactiveAccountError",
    "ExpiredCredentialError",
    "InvalidUserAuthenticationError",

    # Records
    "CrowdUser",
    "CrowdGroup",

    # Restrictions
    "MATCH_ALL",
    "PARAM_MAP",
    "BooleanLogic",
    "BooleanRestriction",
    "MatchMode",
    "Property",
    "Restriction",
    "TermRestriction",
    "build_restriction",
]
