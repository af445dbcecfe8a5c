from __future__ import annotations

import time
from typing import Any, List, Optional

from jose import jwt

from common.ebs import EBSApiError
from state.models import Auth
from state.store import Store
from state.user import User


def _token(**claims: Any) -> str:
    return jwt.encode({"exp": int(time.time()) + 3600, **claims}, "not-checked", algorithm="HS256")


class _FakeClient:
    def __init__(self, *, user_info: Any = None, error: Optional[Exception] = None) -> None:
        self.user_info = user_info
        self.error = error
        self.calls = 0

    def get_user_info(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.user_info


class _FakeAnalytics:
    def __init__(self) -> None:
        self.page_views: List[int] = []

    def send_page_view(self) -> None:
        self.page_views.append(1)


def _auth(token: str, user_id: Optional[str] = "U123") -> dict:
    return {"channelId": "4242", "clientId": "ext", "token": token, "userId": user_id}


def test_defaults_and_jwt_extraction():
    store = Store()
    tok = _token(role="broadcaster", user_id="9001")
    user = User(store, _FakeClient(), _auth(tok))

    assert user.channel_id == "4242"
    assert user.twitch_jwt == tok
    assert user.twitch_opaque_id == "U123"
    assert user.muxy_id is None
    assert user.ip == ""
    assert user.game == ""
    assert user.video_mode == "default"
    assert user.bitrate is None and user.latency is None

    assert user.role == "broadcaster"
    assert user.twitch_id == "9001"
    assert store.state.user.role == "broadcaster"
    assert store.state.user.twitch_id == "9001"


def test_jwt_without_user_id_keeps_twitch_id_unset():
    store = Store()
    user = User(store, _FakeClient(), Auth(token=_token(role="viewer"), user_id="A999"))

    assert user.role == "viewer"
    assert user.twitch_id is None
    assert store.state.user.twitch_id is None


def test_unreadable_jwt_is_ignored():
    store = Store()
    user = User(store, _FakeClient(), _auth("definitely-not-a-jwt"))

    assert user.role == "viewer"
    assert store.state.user.role is None
    assert store.state.errors == []


def test_load_commits_user_info_and_sends_page_view():
    analytics = _FakeAnalytics()
    store = Store(analytics=analytics)
    client = _FakeClient(user_info={"mapped_user_id": "5555", "ip_address": "198.51.100.4"})
    user = User(store, client, _auth(_token(role="viewer")))

    user.load()

    assert client.calls == 1
    assert store.state.user.twitch_id == "5555"
    assert store.state.user.ip_address == "198.51.100.4"
    assert user.twitch_id == "5555"
    assert user.ip == "198.51.100.4"
    assert analytics.page_views == [1]


def test_load_skips_missing_fields():
    analytics = _FakeAnalytics()
    store = Store(analytics=analytics)
    user = User(store, _FakeClient(user_info={"other": 1}), _auth(_token(role="viewer")))

    user.load()

    assert store.state.user.twitch_id is None
    assert store.state.user.ip_address is None
    assert analytics.page_views == [1]


def test_load_with_empty_response_does_nothing():
    analytics = _FakeAnalytics()
    store = Store(analytics=analytics)
    User(store, _FakeClient(user_info={}), _auth(_token())).load()

    assert analytics.page_views == []


def test_load_error_is_committed():
    store = Store(analytics=_FakeAnalytics())
    client = _FakeClient(error=EBSApiError(500, "server exploded"))
    User(store, client, _auth(_token())).load()

    assert store.state.errors == ["server exploded"]
    assert store.analytics.page_views == []


def test_anonymous():
    store = Store()
    assert User(store, _FakeClient(), _auth(_token(), user_id="U1")).anonymous() is False
    assert User(store, _FakeClient(), _auth(_token(), user_id="A1")).anonymous() is True
    assert User(store, _FakeClient(), _auth(_token(), user_id=None)).anonymous() is True
    assert User(store, _FakeClient(), _auth(_token(), user_id="")).anonymous() is True


def test_update_auth_replaces_token_and_claims():
    store = Store()
    user = User(store, _FakeClient(), _auth(_token(role="viewer")))

    fresh = _token(role="config", user_id="77")
    user.update_auth(store, _auth(fresh))

    assert store.state.user.twitch_jwt == fresh
    assert user.twitch_jwt == fresh
    assert user.role == "config"
    assert store.state.user.twitch_id == "77"


def test_non_mapping_user_info_still_sends_page_view():
    analytics = _FakeAnalytics()
    store = Store(analytics=analytics)
    User(store, _FakeClient(user_info="ok"), _auth(_token())).load()

    assert analytics.page_views == [1]
    assert store.state.user.ip_address is None
