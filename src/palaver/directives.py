"""Directive contract, core reply directives and the sequential directive pipeline."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any, ClassVar

from loguru import logger

from palaver.errors import DirectiveError
from palaver.event import NormalizedEvent
from palaver.reply import Reply
from palaver.transition import Transition


class Directive(ABC):
    """One composable instruction that augments a reply.

    `platform` names the channel the directive targets and `key` is its stable
    identifier. Directives only write to the reply.
    """

    platform: ClassVar[str] = "core"
    key: ClassVar[str] = "directive"

    @abstractmethod
    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        """Apply this directive to the in-progress reply."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} platform={self.platform} key={self.key}>"


class ViewDirective(Directive):
    """Directive whose content is either a view path or literal data."""

    def __init__(self, source: Any) -> None:
        self.view_path: str | None = source if isinstance(source, str) else None
        self.data: Any = None if isinstance(source, str) else source

    async def resolve(self, event: NormalizedEvent) -> Any:
        if self.view_path is None:
            return self.data
        if event.renderer is None:
            raise DirectiveError(self.key, "no renderer attached to the event")
        return await event.renderer.render(self.view_path, event)


def require_reply[R: Reply](reply: Reply, reply_type: type[R], key: str) -> R:
    """Narrow `reply` to a channel reply or fail with a descriptive error."""

    if not isinstance(reply, reply_type):
        raise DirectiveError(key, f"requires a {reply_type.__name__}, got {type(reply).__name__}")
    return reply


def _pick(value: Any, key: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, list) and value and all(isinstance(item, str) for item in value):
        return random.choice(value)
    raise DirectiveError(key, f"expected a statement or a list of alternatives, got {value!r}")


class Say(ViewDirective):
    key = "say"

    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        reply.add_statement(_pick(await self.resolve(event), self.key))


class SayPlain(ViewDirective):
    key = "sayPlain"

    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        reply.add_statement(_pick(await self.resolve(event), self.key), is_plain=True)


class Tell(ViewDirective):
    key = "tell"

    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        reply.add_statement(_pick(await self.resolve(event), self.key))
        reply.terminate()


class Reprompt(ViewDirective):
    key = "reprompt"

    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        reply.add_reprompt(_pick(await self.resolve(event), self.key))


class ReplyContent(ViewDirective):
    """Write the content a transition's `reply` path renders to.

    A rendered string becomes a statement. A rendered mapping may carry `say`,
    `ask`, `tell` and `reprompt` entries; `tell` also terminates the reply.
    """

    key = "reply"
    _SECTIONS = ("say", "ask", "tell", "reprompt")

    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        content = await self.resolve(event)
        if not isinstance(content, Mapping):
            reply.add_statement(_pick(content, self.key))
            return

        unknown = set(content) - set(self._SECTIONS)
        if unknown:
            raise DirectiveError(self.key, f"unsupported reply sections: {', '.join(sorted(unknown))}")
        for section in self._SECTIONS:
            if section not in content:
                continue
            statement = _pick(content[section], self.key)
            if section == "reprompt":
                reply.add_reprompt(statement)
            else:
                reply.add_statement(statement)
            if section == "tell":
                reply.terminate()


def transition_directives(transition: Transition) -> list[Directive]:
    """Reply content first, then the transition's own directives in order."""

    directives: list[Directive] = [ReplyContent(path) for path in transition.reply_paths]
    directives.extend(transition.directives)
    return directives


async def apply_directives(
    directives: Iterable[Directive],
    reply: Reply,
    event: NormalizedEvent,
    transition: Transition,
) -> None:
    """Apply directives one at a time, each awaited before the next starts."""

    for directive in directives:
        if not isinstance(directive, Directive):
            raise DirectiveError(type(directive).__name__, "is not a Directive")
        logger.debug("directive.apply key={} platform={}", directive.key, directive.platform)
        await directive.write_to_reply(reply, event, transition)
