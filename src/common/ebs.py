from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Callable, Optional, Union

import httpx

from state.store import Mutations, Store

from .json_values import parse_response_body
from .tokens import validate_jwt
from .twitch import TwitchClient


logger = logging.getLogger(__name__)

# Backend service used to store and read persistent extension state
EBS_URL = "https://ext.muxy.io"
AUTH_HEADER = "X-Muxy-GDI-AWS"

TOKEN_EXPIRED_MESSAGE = "Your authentication token has expired."
LOAD_FAILED_MESSAGE = "Timed out getting extension state."


class ServerState(str, Enum):
    """Substates persisted on the EBS, by endpoint name."""

    AUTHENTICATION = "authentication"
    USER = "user_info"
    VIEWER = "viewer_state"
    CHANNEL = "channel_state"
    EXTENSION = "extension_state"
    ALL = "all_state"


class EBSError(RuntimeError):
    """Base error for the EBS client."""


class AuthTokenExpiredError(EBSError):
    """The extension JWT is malformed or expired; no request was sent."""

    def __init__(self, message: str = TOKEN_EXPIRED_MESSAGE) -> None:
        super().__init__(message)


class EBSApiError(EBSError):
    """The EBS answered with an HTTP error status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(body or f"HTTP {status_code} from EBS")
        self.status_code = status_code
        self.body = body


def _endpoint(substate: Optional[Union[ServerState, str]]) -> str:
    if not substate:
        return ServerState.ALL.value
    return substate.value if isinstance(substate, ServerState) else substate


class EBSClient:
    """
    Client for every state request (GET/POST/DELETE) to the extension backend.

    Each request is signed with the extension id and the viewer's JWT in the
    `X-Muxy-GDI-AWS` header. The token is checked locally before sending, and
    successful bodies go through `parse_json_object` so substates stored as
    JSON strings come back decoded.
    """

    def __init__(
        self,
        extension_id: str,
        token: str,
        twitch_id: Optional[str] = None,
        *,
        base_url: str = EBS_URL,
        timeout: float = 15.0,
        client: Optional[httpx.Client] = None,
        twitch: Optional[TwitchClient] = None,
    ) -> None:
        if not extension_id:
            raise ValueError("extension_id is required")
        self.extension_id = extension_id
        self.token = token
        self.twitch_id = twitch_id
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)
        self._owns_twitch = twitch is None
        self._twitch = twitch or TwitchClient(extension_id, client=client, timeout=timeout)
        self._unwatch: Optional[Callable[[], None]] = None

    def close(self) -> None:
        if self._owns_twitch:
            self._twitch.close()
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "EBSClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --------------- Token handling ---------------
    def validate_jwt(self) -> bool:
        return validate_jwt(self.token)

    def update_token(self, token: Optional[str]) -> None:
        logger.debug("EBS token updated")
        self.token = token or ""

    def load(self, store: Store) -> None:
        """
        Fetch `all_state` and seed the store's option substates.

        The client follows `state.user.twitch_jwt` from the first line on, so a
        token refreshed after a failed load still reaches it. Loading again
        replaces the previous watch.

        Raises AuthTokenExpiredError for a bad token, EBSError otherwise.
        """
        if self._unwatch is not None:
            self._unwatch()
        self._unwatch = store.watch(lambda s: s.user.twitch_jwt, lambda new, _old: self.update_token(new))

        if not self.validate_jwt():
            raise AuthTokenExpiredError()

        try:
            state = self.get_state()
        except EBSError as exc:
            logger.error("Initial state load failed: %s", exc)
            raise EBSError(LOAD_FAILED_MESSAGE) from exc

        if not isinstance(state, dict):
            state = {}
        store.commit(Mutations.UPDATE_VIEWER_OPTIONS, state.get("viewer"))
        store.commit(Mutations.UPDATE_CHANNEL_OPTIONS, state.get("channel"))
        store.commit(Mutations.UPDATE_EXTENSION_OPTIONS, state.get("extension"))

    # --------------- Transport ---------------
    def signed_request(self, method: str, endpoint: str, data: Optional[Union[str, bytes]] = None) -> Any:
        if not self.validate_jwt():
            raise AuthTokenExpiredError()

        url = f"{self._base_url}/{endpoint}"
        headers = {AUTH_HEADER: f"{self.extension_id} {self.token}"}
        logger.debug("EBS %s %s", method, url)
        try:
            resp = self._client.request(method, url, headers=headers, content=data)
        except httpx.HTTPError as exc:
            raise EBSError(f"{method} {endpoint} failed") from exc

        if resp.status_code < 400:
            return parse_response_body(resp)

        logger.warning("EBS %s %s returned HTTP %s", method, endpoint, resp.status_code)
        raise EBSApiError(resp.status_code, resp.text)

    def signed_twitch_request(self, method: str, endpoint: str, data: Optional[Union[str, bytes]] = None) -> Any:
        return self._twitch.signed_request(method, endpoint, data)

    # --------------- Substates ---------------
    def get_state(self, substate: Optional[Union[ServerState, str]] = None) -> Any:
        return self.signed_request("GET", _endpoint(substate))

    def post_state(self, substate: Optional[Union[ServerState, str]], data: Optional[str]) -> Any:
        return self.signed_request("POST", _endpoint(substate), data)

    def get_authentication_token(self) -> Any:
        return self.get_state(ServerState.AUTHENTICATION)

    def get_twitch_stream_info(self) -> Any:
        return self._twitch.get_stream_info(self.twitch_id)

    def get_user_info(self) -> Any:
        return self.get_state(ServerState.USER)

    def get_viewer_state(self) -> Any:
        return self.get_state(ServerState.VIEWER)

    def get_channel_state(self) -> Any:
        return self.get_state(ServerState.CHANNEL)

    def get_extension_state(self) -> Any:
        return self.get_state(ServerState.EXTENSION)

    def set_viewer_state(self, state: Any) -> Any:
        return self.post_state(ServerState.VIEWER, json.dumps(state))

    def set_channel_state(self, state: Any) -> Any:
        return self.post_state(ServerState.CHANNEL, json.dumps(state))

    # --------------- Accumulate / voting / rank ---------------
    def get_accumulation(self, accumulation_id: str, start: Union[int, str]) -> Any:
        return self.signed_request("GET", f"accumulate?id={accumulation_id}&start={start}")

    def accumulate(self, accumulation_id: str, data: Any) -> Any:
        return self.signed_request("POST", f"accumulate?id={accumulation_id}", json.dumps(data))

    def vote(self, vote_id: str, data: Any) -> Any:
        return self.signed_request("POST", f"voting?id={vote_id}", json.dumps(data))

    def get_votes(self, vote_id: str) -> Any:
        return self.signed_request("GET", f"voting?id={vote_id}")

    def rank(self, data: Any) -> Any:
        return self.signed_request("POST", "rank", json.dumps(data))

    def get_rank(self) -> Any:
        return self.signed_request("GET", "rank")

    def delete_rank(self) -> Any:
        return self.signed_request("DELETE", "rank")


__all__ = [
    "EBS_URL",
    "ServerState",
    "EBSClient",
    "EBSError",
    "EBSApiError",
    "AuthTokenExpiredError",
]
