"""
Common utilities for the extension state client.

Modules:
- ebs: signed client for the extension backend service (EBS)
- mock_ebs: local JSON-file stand-in for the EBS
- twitch: Twitch v5 API client
- tokens: unverified JWT claim inspection and expiry check
- json_values: best-effort decoding of JSON-encoded values
"""

__all__ = [
    "ebs",
    "mock_ebs",
    "twitch",
    "tokens",
    "json_values",
]
