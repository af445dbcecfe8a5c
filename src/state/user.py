from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from common.ebs import EBSClient, EBSError
from common.tokens import decode_claims

from .models import Auth
from .store import Mutations, Store


logger = logging.getLogger(__name__)


def _as_auth(auth: Union[Auth, Dict[str, Any]]) -> Auth:
    return auth if isinstance(auth, Auth) else Auth.model_validate(auth)


class User:
    """
    Fields describing the current extension user, mirrored into the store.

    Attributes
    - channel_id: numeric id of the channel being watched.
    - twitch_jwt: raw JWT handed out by the extension helper.
    - twitch_opaque_id: per-extension id from Twitch; identifies a logged-in
      user without revealing their real Twitch id.
    - twitch_id: the real Twitch id, only known when the user shared it
      (JWT `user_id` claim) or the EBS mapped it.
    - muxy_id: the user's Muxy id.
    - role: extension role, `viewer` until the JWT says otherwise.
    - ip: address as reported by the `user_info` endpoint.
    - game, video_mode, bitrate, latency: player/stream details.
    """

    def __init__(self, store: Store, client: EBSClient, auth: Union[Auth, Dict[str, Any]]) -> None:
        auth = _as_auth(auth)
        self._store = store
        self._client = client

        self.channel_id: Optional[str] = auth.channel_id
        self.twitch_jwt: str = auth.token
        self.twitch_opaque_id: Optional[str] = auth.user_id
        self.twitch_id: Optional[str] = None
        self.muxy_id: Optional[str] = None
        self.role: Optional[str] = "viewer"
        self.ip: str = ""
        self.game: str = ""
        self.video_mode: str = "default"  # default, fullscreen or theatre
        self.bitrate: Optional[float] = None
        self.latency: Optional[float] = None

        # Users who shared their identity have it in the JWT payload
        self.extract_jwt_info(store, auth.token)

    def load(self) -> None:
        """Fetch `user_info` from the EBS and commit the fields it carries."""
        try:
            resp = self._client.get_user_info()
        except EBSError as exc:
            self._store.commit(Mutations.ERROR, str(exc))
            return

        if not resp:
            return

        if isinstance(resp, dict):
            mapped = resp.get("mapped_user_id")
            if mapped:
                self.twitch_id = str(mapped)
                self._store.commit(Mutations.SET_USER_TWITCH_ID, mapped)

            ip_address = resp.get("ip_address")
            if ip_address:
                self.ip = ip_address
                self._store.commit(Mutations.SET_USER_IP_ADDRESS, ip_address)

        if self._store.analytics is not None:
            self._store.analytics.send_page_view()

    def extract_jwt_info(self, store: Store, jwt: Optional[str]) -> None:
        claims = decode_claims(jwt)
        if claims is None:
            # Twitch id enforcement happens on the EBS side
            logger.debug("No readable claims in extension JWT")
            return

        self.role = claims.get("role")
        store.commit(Mutations.SET_USER_ROLE, self.role)

        user_id = claims.get("user_id")
        if user_id:
            self.twitch_id = str(user_id)
            store.commit(Mutations.SET_USER_TWITCH_ID, self.twitch_id)

    def anonymous(self) -> bool:
        """
        Whether the viewer is anonymous to this extension.

        Twitch treats a viewer as anonymous when they are not logged in on the
        channel page or have opted out of sharing auth with the extension.
        Logged-in opaque ids start with "U".
        """
        return not self.twitch_opaque_id or not self.twitch_opaque_id.startswith("U")

    def update_auth(self, store: Store, auth: Union[Auth, Dict[str, Any]]) -> None:
        auth = _as_auth(auth)
        self.twitch_jwt = auth.token
        store.commit(Mutations.SET_USER_TWITCH_JWT, auth.token)
        self.extract_jwt_info(store, auth.token)


__all__ = ["User"]
