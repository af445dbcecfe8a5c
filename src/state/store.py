from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from .models import StoreState


logger = logging.getLogger(__name__)


class Mutations(str, Enum):
    UPDATE_VIEWER_OPTIONS = "UPDATE_VIEWER_OPTIONS"
    UPDATE_CHANNEL_OPTIONS = "UPDATE_CHANNEL_OPTIONS"
    UPDATE_EXTENSION_OPTIONS = "UPDATE_EXTENSION_OPTIONS"
    ERROR = "ERROR"
    SET_USER_TWITCH_ID = "SET_USER_TWITCH_ID"
    SET_USER_IP_ADDRESS = "SET_USER_IP_ADDRESS"
    SET_USER_ROLE = "SET_USER_ROLE"
    SET_USER_TWITCH_JWT = "SET_USER_TWITCH_JWT"


class Analytics(Protocol):
    def send_page_view(self) -> None: ...


def _merge(target: Dict[str, Any], payload: Any) -> None:
    if payload is None:
        return
    if not isinstance(payload, dict):
        # Plain-text or list substates have no keys to merge
        logger.warning("Ignoring non-mapping options payload (%s)", type(payload).__name__)
        return
    target.update(payload)


def _update_viewer_options(state: StoreState, payload: Any) -> None:
    _merge(state.viewer_options, payload)


def _update_channel_options(state: StoreState, payload: Any) -> None:
    _merge(state.channel_options, payload)


def _update_extension_options(state: StoreState, payload: Any) -> None:
    _merge(state.extension_options, payload)


def _error(state: StoreState, payload: Any) -> None:
    state.errors.append(str(payload))


def _set_user_twitch_id(state: StoreState, payload: Any) -> None:
    state.user.twitch_id = None if payload is None else str(payload)


def _set_user_ip_address(state: StoreState, payload: Any) -> None:
    state.user.ip_address = payload


def _set_user_role(state: StoreState, payload: Any) -> None:
    state.user.role = payload


def _set_user_twitch_jwt(state: StoreState, payload: Any) -> None:
    state.user.twitch_jwt = payload


_HANDLERS: Dict[Mutations, Callable[[StoreState, Any], None]] = {
    Mutations.UPDATE_VIEWER_OPTIONS: _update_viewer_options,
    Mutations.UPDATE_CHANNEL_OPTIONS: _update_channel_options,
    Mutations.UPDATE_EXTENSION_OPTIONS: _update_extension_options,
    Mutations.ERROR: _error,
    Mutations.SET_USER_TWITCH_ID: _set_user_twitch_id,
    Mutations.SET_USER_IP_ADDRESS: _set_user_ip_address,
    Mutations.SET_USER_ROLE: _set_user_role,
    Mutations.SET_USER_TWITCH_JWT: _set_user_twitch_jwt,
}


class _Watcher:
    __slots__ = ("getter", "callback", "last")

    def __init__(self, getter: Callable[[StoreState], Any], callback: Callable[[Any, Any], None], last: Any) -> None:
        self.getter = getter
        self.callback = callback
        self.last = last


class Store:
    """
    Shared state container mutated only through `commit`.

    - `commit(mutation, payload)` applies one of the `Mutations` to `state`.
    - `watch(getter, callback)` calls `callback(new, old)` after any commit
      that changes `getter(state)`; it returns a function that removes the
      watch.
    - `analytics` is an optional page-view sink used by the user aggregator.
    """

    def __init__(self, state: Optional[StoreState] = None, *, analytics: Optional[Analytics] = None) -> None:
        self.state = state or StoreState.empty()
        self.analytics = analytics
        self._watchers: List[_Watcher] = []

    def commit(self, mutation: Mutations | str, payload: Any = None) -> None:
        try:
            key = Mutations(mutation)
        except ValueError as exc:
            raise ValueError(f"Unknown mutation: {mutation}") from exc

        _HANDLERS[key](self.state, payload)
        logger.debug("Committed %s", key.value)
        self._notify()

    def watch(self, getter: Callable[[StoreState], Any], callback: Callable[[Any, Any], None]) -> Callable[[], None]:
        watcher = _Watcher(getter, callback, getter(self.state))
        self._watchers.append(watcher)

        def unwatch() -> None:
            if watcher in self._watchers:
                self._watchers.remove(watcher)

        return unwatch

    def _notify(self) -> None:
        # Copy: callbacks may add or remove watchers
        for watcher in list(self._watchers):
            current = watcher.getter(self.state)
            if current == watcher.last:
                continue
            previous, watcher.last = watcher.last, current
            watcher.callback(current, previous)

    def snapshot(self) -> Dict[str, Any]:
        return self.state.model_dump()


__all__ = ["Analytics", "Mutations", "Store"]
