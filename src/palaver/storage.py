"""Session storage boundary used by lifecycle plugins."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, Protocol

from palaver.types import Attributes


class SessionStorage(Protocol):
    """Minimal async contract for user data stores."""

    async def get(self, user_id: str) -> Mapping[str, Any]: ...

    async def save(self, user_id: str, data: Mapping[str, Any]) -> None: ...


class InMemoryStorage:
    """Process-local store, mostly useful for tests and the CLI."""

    def __init__(self, initial: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._items: dict[str, Attributes] = {key: dict(value) for key, value in (initial or {}).items()}

    async def get(self, user_id: str) -> Attributes:
        return copy.deepcopy(self._items.get(user_id, {}))

    async def save(self, user_id: str, data: Mapping[str, Any]) -> None:
        self._items[user_id] = copy.deepcopy(dict(data))
