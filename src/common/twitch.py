from __future__ import annotations

import logging
from typing import Any, Optional, Union

import httpx

from .json_values import parse_response_body


logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.twitch.tv/kraken"
KRAKEN_ACCEPT = "application/vnd.twitchtv.v5+json"


class TwitchError(RuntimeError):
    """Base error for the Twitch API client."""


class TwitchApiError(TwitchError):
    """Twitch answered with an HTTP error status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"HTTP {status_code} from Twitch: {body[:200]}")
        self.status_code = status_code
        self.body = body


class TwitchClient:
    """
    Minimal client for the Twitch v5 (kraken) API.

    Requests are identified by the extension's client id only; no user OAuth
    token is attached.
    """

    def __init__(
        self,
        client_id: str,
        *,
        api_base: str = DEFAULT_API_BASE,
        timeout: float = 15.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        if not client_id:
            raise ValueError("client_id is required")
        self._client_id = client_id
        self._api_base = api_base.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "TwitchClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --------------- Public API ---------------
    def signed_request(self, method: str, endpoint: str, data: Optional[Union[str, bytes]] = None) -> Any:
        url = f"{self._api_base}/{endpoint}"
        headers = {"Accept": KRAKEN_ACCEPT, "Client-ID": self._client_id}
        logger.debug("Twitch %s %s", method, url)
        try:
            resp = self._client.request(method, url, headers=headers, content=data)
        except httpx.HTTPError as exc:
            raise TwitchError(f"{method} {endpoint} failed") from exc

        if resp.status_code < 400:
            return parse_response_body(resp)

        logger.warning("Twitch %s %s returned HTTP %s", method, endpoint, resp.status_code)
        raise TwitchApiError(resp.status_code, resp.text)

    def get_stream_info(self, twitch_id: Union[int, str]) -> Any:
        return self.signed_request("GET", f"streams/{twitch_id}")


__all__ = [
    "TwitchClient",
    "TwitchError",
    "TwitchApiError",
    "DEFAULT_API_BASE",
]
