from __future__ import annotations

import logging
import os
from typing import Any, Dict, Iterable, Optional, Union

import boto3
from botocore.exceptions import ClientError

from common.ebs import EBS_URL, EBSClient, EBSError
from common.mock_ebs import LocalStorage, MockEBSClient
from state.models import Auth, StoreState, UserState
from state.store import Store
from state.user import User


logger = logging.getLogger(__name__)

# Environment variable names
ENV_EXTENSION_ID = "EXTENSION_ID"
ENV_PARAM_PREFIX = "PARAM_PREFIX"  # optional; SSM fallback for secrets
ENV_EBS_URL = "EBS_URL"
ENV_MOCK_DATA = "MOCK_DATA"
ENV_LOG_LEVEL = "LOG_LEVEL"

_TRUTHY = {"1", "true", "yes", "on"}


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


def _require(v: Optional[str], what: str) -> str:
    if not v:
        raise RuntimeError(f"Missing required configuration: {what}")
    return v


def _load_ssm_params(prefix: str, names: Iterable[str]) -> Dict[str, Optional[str]]:
    ssm = boto3.client("ssm")
    out: Dict[str, Optional[str]] = {k: None for k in names}
    for name in names:
        full = f"{prefix}{name}"
        try:
            resp = ssm.get_parameter(Name=full, WithDecryption=True)
        except ClientError as e:
            # Leave as None if parameter missing or access denied
            code = e.response.get("Error", {}).get("Code")
            if code in ("ParameterNotFound", "AccessDeniedException"):
                logger.warning("SSM parameter %s unavailable (%s)", full, code)
                continue
            raise
        val = resp.get("Parameter", {}).get("Value")
        out[name] = val if isinstance(val, str) and val != "" else None
    return out


def _configure_logging() -> None:
    level = (_getenv(ENV_LOG_LEVEL, "INFO") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _resolve_extension_id() -> str:
    ext_id = _getenv(ENV_EXTENSION_ID)
    if ext_id:
        return ext_id
    prefix = _getenv(ENV_PARAM_PREFIX)
    if prefix:
        params = _load_ssm_params(prefix, ["extension_id"])
        return _require(params.get("extension_id"), f"{prefix}extension_id")
    return _require(None, ENV_EXTENSION_ID)


def _mock_enabled() -> bool:
    return (_getenv(ENV_MOCK_DATA, "") or "").strip().lower() in _TRUTHY


def _build_client(extension_id: str, auth: Auth, twitch_id: Optional[str]) -> EBSClient:
    base_url = _getenv(ENV_EBS_URL, EBS_URL) or EBS_URL
    if _mock_enabled():
        logger.info("Using mock EBS storage")
        return MockEBSClient(extension_id, auth.token, twitch_id, base_url=base_url, storage=LocalStorage())
    return EBSClient(extension_id, auth.token, twitch_id, base_url=base_url)


def run_once(auth: Union[Auth, Dict[str, Any]]) -> Dict[str, Any]:
    """
    Bootstrap one extension session for the given auth payload.

    - Seeds a store with the viewer's JWT.
    - Loads `all_state` into the store's option substates.
    - Extracts role/ids from the JWT and fetches `user_info`.

    Returns {"ok": True, "anonymous": bool, "state": {...}} or
    {"ok": False, "error": str} when the EBS load fails.
    """
    auth = auth if isinstance(auth, Auth) else Auth.model_validate(auth)
    extension_id = _resolve_extension_id()

    store = Store(StoreState(user=UserState(twitch_jwt=auth.token)))
    with _build_client(extension_id, auth, None) as client:
        user = User(store, client, auth)
        client.twitch_id = user.twitch_id
        try:
            client.load(store)
        except EBSError as e:
            logger.error("Extension session load failed: %s", e)
            return {"ok": False, "error": str(e)}
        user.load()

    return {"ok": True, "anonymous": user.anonymous(), "state": store.snapshot()}


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """AWS Lambda entry: `event["auth"]` carries the extension helper's auth payload.

    Environment:
    - EXTENSION_ID, or PARAM_PREFIX with SSM parameter `extension_id`
    - EBS_URL (optional), MOCK_DATA (optional), LOG_LEVEL (optional)
    """
    _configure_logging()
    auth = event.get("auth") if isinstance(event, dict) else None
    if not isinstance(auth, dict):
        return {"ok": False, "error": "Missing auth payload"}
    return run_once(auth)
