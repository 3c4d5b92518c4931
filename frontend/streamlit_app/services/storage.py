# frontend/streamlit_app/services/storage.py
# SPDX-License-Identifier: Apache-2.0
"""Typed JSON storage helpers.

The cart lives in session state and disappears on reload unless the user
explicitly saves it. Saving goes through `JsonStorage`, a small key → JSON
value file. Reads never raise: a missing file, missing key, or corrupt JSON
yields the caller's default.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, TypeVar

T = TypeVar("T")


def safe_parse(raw: str | None, default: T) -> T:
    """Parse `raw` as JSON, returning `default` when empty or invalid."""
    if not raw:
        return default
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return default


def cart_key(address: str | None) -> str:
    return f"pending_purchases_{(address or 'anon').lower()}"


class JsonStorage:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        data = safe_parse(raw, {})
        return data if isinstance(data, dict) else {}

    def read(self, key: str, default: T) -> T:
        return self._load().get(key, default)

    def _dump(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
        tmp.replace(self.path)

    def write(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)
