import os
import sys

import pytest


_CONFIG_ENV = ("EXTENSION_ID", "PARAM_PREFIX", "EBS_URL", "MOCK_DATA", "EXT_MOCK_STORAGE_DIR", "LOG_LEVEL")


def pytest_configure():
    # Ensure `src/` is importable as top-level for `common.*` / `state.*` imports
    root = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    src_path = os.path.join(root, "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


@pytest.fixture(autouse=True)
def _isolated_config_env(monkeypatch):
    # Host configuration must not leak into handler or mock-storage tests
    for name in _CONFIG_ENV:
        monkeypatch.delenv(name, raising=False)
