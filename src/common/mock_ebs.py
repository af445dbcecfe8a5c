from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .ebs import EBSClient, EBSError
from .json_values import parse_json_value


logger = logging.getLogger(__name__)

DEFAULT_STORAGE_DIR_ENV = "EXT_MOCK_STORAGE_DIR"
STORAGE_FILE_NAME = "mock_ebs_storage.json"


def _default_storage_file() -> Path:
    # Prefer explicit env var, else project-local .cache folder
    base = os.environ.get(DEFAULT_STORAGE_DIR_ENV)
    if base:
        return Path(base) / STORAGE_FILE_NAME
    return Path(".cache") / STORAGE_FILE_NAME


class LocalStorage:
    """
    String key/value storage persisted to a single JSON file.

    Stands in for the browser's localStorage when the extension runs against
    mock data: values are stored as strings and `get_item` returns None for
    unknown keys. A missing or corrupt file reads as empty.
    """

    def __init__(self, path: Optional[Union[os.PathLike[str], str]] = None) -> None:
        self._path = Path(path) if path else _default_storage_file()
        self._data: Dict[str, str] = {}
        self._loaded = False

    @property
    def path(self) -> Path:
        return self._path

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if not self._path.exists():
            return
        try:
            with self._path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable mock storage %s: %s", self._path, exc)
            return
        if isinstance(raw, dict):
            self._data = {str(k): str(v) for k, v in raw.items() if isinstance(v, str)}

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2, sort_keys=True)

    def get_item(self, key: str) -> Optional[str]:
        self._ensure_loaded()
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._ensure_loaded()
        self._data[key] = value
        self._save()

    def remove_item(self, key: str) -> None:
        self._ensure_loaded()
        if self._data.pop(key, None) is not None:
            self._save()

    def clear(self) -> None:
        self._data = {}
        self._loaded = True
        self._save()


class MockEBSClient(EBSClient):
    """
    EBS client that never touches the network.

    GET reads the endpoint's value from `LocalStorage`, POST writes it, and
    any other method fails. The JWT is not checked, so local development
    works with placeholder tokens.
    """

    def __init__(self, *args: Any, storage: Optional[LocalStorage] = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.storage = storage or LocalStorage()

    def signed_request(self, method: str, endpoint: str, data: Optional[Union[str, bytes]] = None) -> Any:
        logger.debug("Mock EBS %s %s", method, endpoint)
        if method == "GET":
            raw = self.storage.get_item(endpoint)
            if raw is None:
                return {}
            return parse_json_value(raw)
        if method == "POST":
            if isinstance(data, bytes):
                data = data.decode("utf-8")
            self.storage.set_item(endpoint, "null" if data is None else data)
            return "ok"
        raise EBSError(f"Unknown request method: {method}")

    def get_authentication_token(self) -> Dict[str, str]:
        return {"token": f"faketoken{int(time.time() * 1000)}"}


__all__ = ["LocalStorage", "MockEBSClient"]
