import pytest
import requests

from crowd_federation.core.crowd import client as client_module
from crowd_federation.core.crowd.client import API_PATH, CrowdClient
from crowd_federation.core.crowd.exceptions import (
    ApplicationPermissionError,
    CrowdAPIError,
    ExpiredCredentialError,
    GroupNotFoundError,
    InvalidAuthenticationError,
    InvalidUserAuthenticationError,
    OperationFailedError,
    UserNotFoundError,
)
from crowd_federation.core.crowd.restrictions import MATCH_ALL, build_restriction
from crowd_federation.core.errors import DirectoryAccessError
from crowd_federation.core.group_resolver import GroupResolver

BASE = "https://crowd.example.com/crowd"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class Recorder:
    """Stands in for requests.get / requests.post and records each call."""

    def __init__(self, response):
        self.response = response
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    @property
    def last(self):
        return self.calls[-1]


@pytest.fixture()
def crowd():
    return CrowdClient(BASE + "/", "keycloak", "app-secret", timeout=3)


def patch_get(monkeypatch, response):
    recorder = Recorder(response)
    monkeypatch.setattr(client_module.requests, "get", recorder)
    return recorder


def patch_post(monkeypatch, response):
    recorder = Recorder(response)
    monkeypatch.setattr(client_module.requests, "post", recorder)
    return recorder


USER_PAYLOAD = {
    "name": "alice",
    "first-name": "Alice",
    "last-name": "Smith",
    "display-name": "Alice Smith",
    "email": "alice@example.com",
    "active": True,
    "attributes": {
        "attributes": [
            {"name": "department", "values": ["eng", "eng", "ops"]},
        ]
    },
}


def test_get_user(monkeypatch, crowd):
    recorder = patch_get(monkeypatch, FakeResponse(payload=USER_PAYLOAD))

    user = crowd.get_user("alice")

    url, kwargs = recorder.last
    assert url == f"{BASE}{API_PATH}/user"
    assert kwargs["params"] == {"username": "alice", "expand": "attributes"}
    assert kwargs["auth"] == ("keycloak", "app-secret")
    assert kwargs["timeout"] == 3
    assert kwargs["headers"]["Accept"] == "application/json"

    assert user.name == "alice"
    assert user.first_name == "Alice"
    assert user.last_name == "Smith"
    assert user.display_name == "Alice Smith"
    assert user.email == "alice@example.com"
    assert user.attributes == {"department": ["eng", "ops"]}


def test_search_users_posts_restriction(monkeypatch, crowd):
    recorder = patch_post(monkeypatch, FakeResponse(payload={"users": [USER_PAYLOAD]}))
    restriction = build_restriction({"email": "example"})

    users = crowd.search_users(restriction, 5, 10)

    url, kwargs = recorder.last
    assert url == f"{BASE}{API_PATH}/search"
    assert kwargs["json"] == restriction.to_json()
    assert kwargs["params"] == {
        "entity-type": "user",
        "start-index": 5,
        "max-results": 10,
        "expand": "user,attributes",
    }
    assert [u.name for u in users] == ["alice"]


def test_search_user_names(monkeypatch, crowd):
    recorder = patch_post(monkeypatch, FakeResponse(payload={"users": [{"name": "alice"}, {"name": "bob"}]}))

    names = crowd.search_user_names(MATCH_ALL, 0, 100)

    _, kwargs = recorder.last
    assert "expand" not in kwargs["params"]
    assert names == ["alice", "bob"]


def test_search_with_empty_body_returns_nothing(monkeypatch, crowd):
    patch_post(monkeypatch, FakeResponse(payload={}))
    assert crowd.search_users(MATCH_ALL, 0, 10) == []


@pytest.mark.parametrize(
    "method, path, param",
    [
        ("get_groups_of_user", "/user/group/direct", "username"),
        ("get_parent_groups", "/group/parent-group/direct", "groupname"),
        ("get_child_groups", "/group/child-group/direct", "groupname"),
    ],
)
def test_group_lookups(monkeypatch, crowd, method, path, param):
    payload = {"groups": [{"name": "devs", "description": "Developers", "active": True}]}
    recorder = patch_get(monkeypatch, FakeResponse(payload=payload))

    groups = getattr(crowd, method)("subject", 0, 1)

    url, kwargs = recorder.last
    assert url == f"{BASE}{API_PATH}{path}"
    assert kwargs["params"] == {param: "subject", "start-index": 0, "max-results": 1, "expand": "group"}
    assert [g.name for g in groups] == ["devs"]
    assert groups[0].description == "Developers"


def test_get_users_of_group(monkeypatch, crowd):
    recorder = patch_get(monkeypatch, FakeResponse(payload={"users": [USER_PAYLOAD]}))

    users = crowd.get_users_of_group("devs", 0, 50)

    url, kwargs = recorder.last
    assert url == f"{BASE}{API_PATH}/group/user/direct"
    assert kwargs["params"]["groupname"] == "devs"
    assert kwargs["params"]["expand"] == "user"
    assert [u.name for u in users] == ["alice"]


def test_authenticate(monkeypatch, crowd):
    recorder = patch_post(monkeypatch, FakeResponse(payload=USER_PAYLOAD))

    user = crowd.authenticate("alice", "pw")

    url, kwargs = recorder.last
    assert url == f"{BASE}{API_PATH}/authentication"
    assert kwargs["json"] == {"value": "pw"}
    assert kwargs["params"] == {"username": "alice"}
    assert user.name == "alice"


@pytest.mark.parametrize(
    "status, reason, expected",
    [
        (404, "USER_NOT_FOUND", UserNotFoundError),
        (404, "GROUP_NOT_FOUND", GroupNotFoundError),
        (400, "INVALID_USER_AUTHENTICATION", InvalidUserAuthenticationError),
        (400, "EXPIRED_CREDENTIAL", ExpiredCredentialError),
        (403, "APPLICATION_PERMISSION_DENIED", ApplicationPermissionError),
        (403, "", ApplicationPermissionError),
        (401, "", InvalidAuthenticationError),
        (500, "", CrowdAPIError),
    ],
)
def test_error_mapping(monkeypatch, crowd, status, reason, expected):
    patch_get(monkeypatch, FakeResponse(status, {"reason": reason, "message": "nope"}))

    with pytest.raises(expected) as excinfo:
        crowd.get_user("alice")

    assert type(excinfo.value) is expected
    assert excinfo.value.status_code == status
    assert excinfo.value.reason == reason
    assert excinfo.value.message == "nope"


def test_error_without_json_body_keeps_text(monkeypatch, crowd):
    patch_get(monkeypatch, FakeResponse(502, None, text="Bad Gateway"))

    with pytest.raises(CrowdAPIError) as excinfo:
        crowd.get_user("alice")

    assert excinfo.value.message == "Bad Gateway"
    assert excinfo.value.endpoint == f"{BASE}{API_PATH}/user"


def test_transport_failure_is_operation_failed(monkeypatch, crowd):
    patch_post(monkeypatch, requests.ConnectionError("connection refused"))

    with pytest.raises(OperationFailedError) as excinfo:
        crowd.authenticate("alice", "pw")

    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)


@pytest.mark.parametrize("payload", [None, ["not", "an", "object"]])
def test_non_json_success_body_is_operation_failed(monkeypatch, crowd, payload):
    patch_get(monkeypatch, FakeResponse(200, payload, text="<html>login</html>"))

    with pytest.raises(OperationFailedError) as excinfo:
        crowd.get_groups_of_user("alice", 0, 10)

    assert "/user/group/direct" in str(excinfo.value)


def test_html_body_during_resolution_is_access_error(monkeypatch, crowd):
    patch_get(monkeypatch, FakeResponse(200, None, text="<html>login</html>"))

    with pytest.raises(DirectoryAccessError) as excinfo:
        GroupResolver(crowd, "crowd").resolve_groups_for_user("alice")

    assert isinstance(excinfo.value.__cause__, OperationFailedError)
