from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserState(BaseModel):
    """User fields mirrored into the shared store."""

    twitch_jwt: Optional[str] = Field(default=None, description="Raw JWT from the extension helper")
    twitch_id: Optional[str] = Field(default=None, description="Real Twitch user id, when shared")
    role: Optional[str] = Field(default=None, description="Extension role claim, e.g. viewer or broadcaster")
    ip_address: Optional[str] = Field(default=None, description="Address reported by the user_info endpoint")


class StoreState(BaseModel):
    """
    In-memory state shared between the EBS client and the user aggregator.

    Fields
    - user: identity fields extracted from the auth token and user_info.
    - viewer_options / channel_options / extension_options: the substates
      returned by the EBS `all_state` endpoint.
    - errors: messages committed through the ERROR mutation, oldest first.
    """

    user: UserState = Field(default_factory=UserState)
    viewer_options: Dict[str, Any] = Field(default_factory=dict)
    channel_options: Dict[str, Any] = Field(default_factory=dict)
    extension_options: Dict[str, Any] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "StoreState":
        return cls()


class Auth(BaseModel):
    """
    Authorization payload handed out by the Twitch extension helper.

    Accepts the helper's camelCase keys (`channelId`, `userId`, ...) as well
    as snake_case field names.
    """

    model_config = ConfigDict(populate_by_name=True)

    channel_id: Optional[str] = Field(default=None, alias="channelId")
    client_id: Optional[str] = Field(default=None, alias="clientId")
    token: str = ""
    user_id: Optional[str] = Field(default=None, alias="userId")
