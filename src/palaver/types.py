"""Framework-neutral data aliases."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any

type Attributes = dict[str, Any]
type HandlerResult = Any
type Handler = Callable[..., HandlerResult | Awaitable[HandlerResult]]
type IntentMap = Mapping[str, str | Handler]
