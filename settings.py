from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

ENV_PREFIX = "NEWSFEED_"
SETTINGS_PATH = Path(os.getenv("NEWSFEED_SETTINGS", Path(__file__).with_name("settings.json")))

try:
    with SETTINGS_PATH.open("r", encoding="utf-8") as f:
        _SETTINGS = json.load(f)
except FileNotFoundError:
    _SETTINGS = {}


def get_setting(key: str, default: Any = None) -> Any:
    """Return ``key`` from the environment, then settings.json, then ``default``.

    ``NEWSFEED_SELECTOR_TIMEOUT_MS=5000`` overrides ``selector_timeout_ms``.
    Environment values are decoded as JSON when they parse, so numbers and
    booleans keep their type.
    """
    raw = os.getenv(ENV_PREFIX + key.upper())
    if raw is None:
        return _SETTINGS.get(key, default)
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw
