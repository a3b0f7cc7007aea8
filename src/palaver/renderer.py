"""View rendering boundary and the default view renderer."""

from __future__ import annotations

import inspect
import re
import string
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Protocol

import yaml
from loguru import logger

from palaver.errors import RenderError
from palaver.event import NormalizedEvent

type RenderedContent = Any
type Variable = Callable[[NormalizedEvent], Any]

_FIELD_ROOT = re.compile(r"^[^.\[]+")


class Renderer(Protocol):
    """Resolve a view path against an event or explicit data."""

    async def render(self, path: str, data: NormalizedEvent | Mapping[str, Any]) -> RenderedContent: ...


class ViewRenderer:
    """Render locale-keyed view trees with `{name}` placeholders.

    Placeholders are resolved from explicit data when a mapping is given.
    For events they come from the registered variables first, then from the
    event's slot values. Variables may be coroutines.
    """

    def __init__(
        self,
        views: Mapping[str, Mapping[str, Any]],
        variables: Mapping[str, Variable] | None = None,
        *,
        default_locale: str = "en-US",
    ) -> None:
        self._views = {str(locale): tree for locale, tree in views.items()}
        self._variables = dict(variables or {})
        self._default_locale = default_locale
        self._formatter = string.Formatter()

    @classmethod
    def from_yaml(
        cls,
        path: Path,
        variables: Mapping[str, Variable] | None = None,
        *,
        default_locale: str = "en-US",
    ) -> ViewRenderer:
        """Load views from a YAML file whose top-level keys are locales."""

        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise RenderError(str(path), "views file must contain a mapping of locales")
        return cls(payload, variables, default_locale=default_locale)

    def register_variable(self, name: str, variable: Variable) -> None:
        self._variables[name] = variable

    async def render(self, path: str, data: NormalizedEvent | Mapping[str, Any]) -> RenderedContent:
        locale = self._default_locale
        if isinstance(data, NormalizedEvent) and data.locale:
            locale = data.locale
        template = self._lookup(path, locale)
        rendered = await self._render_value(path, template, data)
        logger.debug("render.done path={} locale={}", path, locale)
        return rendered

    def _lookup(self, path: str, locale: str) -> Any:
        tree = self._views.get(locale)
        if tree is None:
            tree = self._views.get(self._default_locale)
        if tree is None:
            raise RenderError(path, f"no views for locale '{locale}'")

        node: Any = tree
        for part in path.split("."):
            if not isinstance(node, Mapping) or part not in node:
                raise RenderError(path, f"missing view '{part}'")
            node = node[part]
        return node

    async def _render_value(self, path: str, value: Any, data: NormalizedEvent | Mapping[str, Any]) -> Any:
        if isinstance(value, str):
            return await self._render_string(path, value, data)
        if isinstance(value, Mapping):
            return {key: await self._render_value(path, item, data) for key, item in value.items()}
        if isinstance(value, list):
            return [await self._render_value(path, item, data) for item in value]
        return value

    async def _render_string(self, path: str, template: str, data: NormalizedEvent | Mapping[str, Any]) -> str:
        try:
            field_names = [field for _, field, _, _ in self._formatter.parse(template) if field]
        except ValueError as exc:
            raise RenderError(path, str(exc)) from exc

        values: dict[str, Any] = {}
        for field_name in field_names:
            match = _FIELD_ROOT.match(field_name)
            root = match.group(0) if match else field_name
            if root not in values:
                values[root] = await self._resolve(path, root, data)
        try:
            return template.format_map(values)
        except (AttributeError, IndexError, KeyError, ValueError) as exc:
            raise RenderError(path, str(exc)) from exc

    async def _resolve(self, path: str, name: str, data: NormalizedEvent | Mapping[str, Any]) -> Any:
        if not isinstance(data, NormalizedEvent):
            if name in data:
                return data[name]
            raise RenderError(path, f"missing value '{name}'")

        variable = self._variables.get(name)
        if variable is not None:
            try:
                value = variable(data)
                if inspect.isawaitable(value):
                    value = await value
            except Exception as exc:
                raise RenderError(path, f"variable '{name}' failed: {exc}") from exc
            return value
        if name in data.params:
            return data.params[name]
        raise RenderError(path, f"missing variable '{name}'")
