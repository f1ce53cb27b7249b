"""Low-level HTTP client for the Crowd REST API.

Handles application authentication, JSON encoding and error mapping.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Protocol

import requests

from .exceptions import (
    REASON_EXCEPTIONS,
    ApplicationPermissionError,
    CrowdAPIError,
    InvalidAuthenticationError,
    OperationFailedError,
)
from .models import CrowdGroup, CrowdUser
from .restrictions import Restriction

REQUEST_TIMEOUT = 5

# Largest page Crowd accepts; used where every result is wanted
MAX_RESULTS = 2**31 - 1

API_PATH = "/rest/usermanagement/1"

logger = logging.getLogger(__name__)


class DirectoryClient(Protocol):
    """Operations the federation layer needs from the directory."""

    def get_user(self, username: str) -> CrowdUser: ...

    def search_users(self, restriction: Restriction, start_index: int, max_results: int) -> List[CrowdUser]: ...

    def search_user_names(self, restriction: Restriction, start_index: int, max_results: int) -> List[str]: ...

    def get_groups_of_user(self, username: str, start_index: int, max_results: int) -> List[CrowdGroup]: ...

    def get_parent_groups(self, group_name: str, start_index: int, max_results: int) -> List[CrowdGroup]: ...

    def get_child_groups(self, group_name: str, start_index: int, max_results: int) -> List[CrowdGroup]: ...

    def get_users_of_group(self, group_name: str, start_index: int, max_results: int) -> List[CrowdUser]: ...

    def authenticate(self, username: str, password: str) -> CrowdUser: ...


class CrowdClient:
    """HTTP client for the Crowd REST API.

    Every request is authenticated with the application name and password
    registered in Crowd (HTTP basic auth).

    Usage:
        client = CrowdClient("https://crowd.example.com/crowd", "keycloak", "secret")
        user = client.get_user("alice")
        groups = client.get_groups_of_user("alice", 0, MAX_RESULTS)
    """

    def __init__(
        self,
        base_url: str,
        application_name: str,
        application_password: str,
        timeout: float = REQUEST_TIMEOUT,
    ):
        """Initialize Crowd client.

        Args:
            base_url: Crowd base URL (e.g. https://crowd.example.com/crowd)
            application_name: Application name registered in Crowd
            application_password: Application password registered in Crowd
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._auth = (application_name, application_password)

    # ─────────────────────────────────────────────────────────────────────
    # Users
    # ─────────────────────────────────────────────────────────────────────
    def get_user(self, username: str) -> CrowdUser:
        """Fetch a user with its attributes.

        Raises:
            UserNotFoundError: If no such user exists
        """
        resp = self.get("/user", params={"username": username, "expand": "attributes"})
        return CrowdUser.from_json(self._json(resp, "/user"))

    def search_users(self, restriction: Restriction, start_index: int, max_results: int) -> List[CrowdUser]:
        """Search users (with attributes) matching a restriction."""
        resp = self.post(
            "/search",
            json=restriction.to_json(),
            params={
                "entity-type": "user",
                "start-index": start_index,
                "max-results": max_results,
                "expand": "user,attributes",
            },
        )
        return [CrowdUser.from_json(u) for u in self._json(resp, "/search").get("users", [])]

    def search_user_names(self, restriction: Restriction, start_index: int, max_results: int) -> List[str]:
        """Search user names matching a restriction (no entity expansion)."""
        resp = self.post(
            "/search",
            json=restriction.to_json(),
            params={"entity-type": "user", "start-index": start_index, "max-results": max_results},
        )
        return [u["name"] for u in self._json(resp, "/search").get("users", [])]

    def authenticate(self, username: str, password: str) -> CrowdUser:
        """Verify a user's password.

        Raises:
            InvalidUserAuthenticationError: Wrong password
            InactiveAccountError: Account is deactivated
            ExpiredCredentialError: Password has expired
            UserNotFoundError: No such user
        """
        resp = self.post("/authentication", json={"value": password}, params={"username": username})
        return CrowdUser.from_json(self._json(resp, "/authentication"))

    # ─────────────────────────────────────────────────────────────────────
    # Memberships
    # ─────────────────────────────────────────────────────────────────────
    def get_groups_of_user(self, username: str, start_index: int, max_results: int) -> List[CrowdGroup]:
        """Groups the user is a direct member of."""
        return self._groups("/user/group/direct", {"username": username}, start_index, max_results)

    def get_parent_groups(self, group_name: str, start_index: int, max_results: int) -> List[CrowdGroup]:
        """Groups the given group is a direct member of."""
        return self._groups("/group/parent-group/direct", {"groupname": group_name}, start_index, max_results)

    def get_child_groups(self, group_name: str, start_index: int, max_results: int) -> List[CrowdGroup]:
        """Direct sub-groups of the given group."""
        return self._groups("/group/child-group/direct", {"groupname": group_name}, start_index, max_results)

    def get_users_of_group(self, group_name: str, start_index: int, max_results: int) -> List[CrowdUser]:
        """Direct user members of the given group."""
        resp = self.get(
            "/group/user/direct",
            params={
                "groupname": group_name,
                "start-index": start_index,
                "max-results": max_results,
                "expand": "user",
            },
        )
        return [CrowdUser.from_json(u) for u in self._json(resp, "/group/user/direct").get("users", [])]

    def _groups(self, path: str, params: Dict[str, Any], start_index: int, max_results: int) -> List[CrowdGroup]:
        params = dict(params, **{"start-index": start_index, "max-results": max_results, "expand": "group"})
        resp = self.get(path, params=params)
        return [CrowdGroup.from_json(g) for g in self._json(resp, path).get("groups", [])]

    # ─────────────────────────────────────────────────────────────────────
    # HTTP
    # ─────────────────────────────────────────────────────────────────────
    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute GET request against the usermanagement API.

        Raises:
            CrowdAPIError: On HTTP error (typed by Crowd reason code)
            OperationFailedError: On transport failure
        """
        url = f"{self.base_url}{API_PATH}{path}"
        try:
            resp = requests.get(
                url,
                params=params,
                headers=self._headers(kwargs.pop("headers", {})),
                auth=self._auth,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise OperationFailedError(f"GET {url} failed: {exc}") from exc
        self._handle_error(resp, url)
        return resp

    def post(self, path: str, json: Optional[Any] = None, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute POST request against the usermanagement API.

        Raises:
            CrowdAPIError: On HTTP error (typed by Crowd reason code)
            OperationFailedError: On transport failure
        """
        url = f"{self.base_url}{API_PATH}{path}"
        try:
            resp = requests.post(
                url,
                json=json,
                params=params,
                headers=self._headers(kwargs.pop("headers", {})),
                auth=self._auth,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise OperationFailedError(f"POST {url} failed: {exc}") from exc
        self._handle_error(resp, url)
        return resp

    @staticmethod
    def _json(resp: requests.Response, path: str) -> Dict[str, Any]:
        """Decode a successful response body.

        Raises:
            OperationFailedError: If the body is not a JSON object (e.g. a proxy login page)
        """
        try:
            body = resp.json()
        except ValueError as exc:
            raise OperationFailedError(f"Unreadable response from {path}: {exc}") from exc
        if not isinstance(body, dict):
            raise OperationFailedError(f"Unexpected response from {path}: {type(body).__name__}")
        return body

    @staticmethod
    def _headers(extra: Dict[str, str]) -> Dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        headers.update(extra)
        return headers

    def _handle_error(self, resp: requests.Response, endpoint: str) -> None:
        """Centralized error handling for HTTP responses.

        Crowd reports domain errors as ``{"reason": ..., "message": ...}``;
        the reason selects the exception type.

        Raises:
            CrowdAPIError: If response status indicates error
        """
        if resp.status_code < 400:
            return

        reason, message = "", resp.text
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            reason = body.get("reason") or ""
            message = body.get("message") or message

        exc_type = REASON_EXCEPTIONS.get(reason)
        if exc_type is None:
            if resp.status_code == 401:
                exc_type = InvalidAuthenticationError
            elif resp.status_code == 403:
                exc_type = ApplicationPermissionError
            else:
                exc_type = CrowdAPIError

        logger.debug(f"Crowd returned {resp.status_code} ({reason or 'no reason'}) for {endpoint}")
        raise exc_type(resp.status_code, message, endpoint, reason)
