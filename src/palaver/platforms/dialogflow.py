"""Dialogflow (Google Assistant) reply and directives."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from palaver.directives import Directive, ViewDirective, require_reply
from palaver.errors import DirectiveError
from palaver.event import NormalizedEvent
from palaver.reply import Reply
from palaver.transition import Transition

AUDIO_OUTPUT = "actions.capability.AUDIO_OUTPUT"
OPTION_VALUE_TYPE = "type.googleapis.com/google.actions.v2.OptionValueSpec"
SIGN_IN_VALUE_TYPE = "type.googleapis.com/google.actions.v2.SignInValueSpec"


class DialogFlowReply(Reply):
    """Reply shaped like a Dialogflow webhook response with a Google payload."""

    platform = "dialogflow"

    def __init__(self) -> None:
        super().__init__()
        self._rich_items: list[dict[str, Any]] = []
        self._suggestions: list[str] = []
        self._system_intent: dict[str, Any] | None = None
        self._input_prompt: dict[str, Any] | None = None

    @property
    def rich_items(self) -> list[dict[str, Any]]:
        return [dict(item) for item in self._rich_items]

    @property
    def suggestions(self) -> list[str]:
        return list(self._suggestions)

    @property
    def system_intent(self) -> dict[str, Any] | None:
        return dict(self._system_intent) if self._system_intent is not None else None

    @property
    def has_simple_response(self) -> bool:
        return self.has_messages

    def add_rich_item(self, item: Mapping[str, Any]) -> None:
        self._rich_items.append(dict(item))

    def add_suggestions(self, suggestions: list[str]) -> None:
        self._suggestions.extend(suggestions)

    def set_system_intent(self, intent: str, data: Mapping[str, Any]) -> None:
        self._system_intent = {"intent": intent, "data": dict(data)}

    def set_input_prompt(self, prompt: Mapping[str, Any]) -> None:
        self._input_prompt = dict(prompt)

    def directive_types(self) -> list[str]:
        types = [next(iter(item)) for item in self._rich_items if item]
        if self._suggestions:
            types.append("suggestions")
        if self._system_intent is not None:
            types.append(str(self._system_intent["intent"]))
        return types

    def _clear_directives(self) -> None:
        self._rich_items = []
        self._suggestions = []
        self._system_intent = None
        self._input_prompt = None

    def to_dict(self) -> dict[str, Any]:
        items: list[dict[str, Any]] = []
        if self.has_simple_response:
            simple: dict[str, Any] = {"textToSpeech": self._statements.as_ssml()}
            items.append({"simpleResponse": simple})
        items.extend(dict(item) for item in self._rich_items)

        google: dict[str, Any] = {
            "expectUserResponse": not self.has_terminated,
            "isSsml": True,
            "richResponse": {"items": items},
        }
        if self._suggestions:
            google["richResponse"]["suggestions"] = [{"title": title} for title in self._suggestions]
        if not self._reprompts.is_empty:
            google["noInputPrompts"] = [{"ssml": self._reprompts.as_ssml()}]
        if self._system_intent is not None:
            google["systemIntent"] = dict(self._system_intent)
        if self._input_prompt is not None:
            google["inputPrompt"] = dict(self._input_prompt)
        return {
            "fulfillmentText": self._statements.as_text(),
            "payload": {"google": google},
            "outputContexts": [{"name": "attributes", "lifespanCount": 10000, "parameters": self.session_attributes}],
        }


class List(ViewDirective):
    platform = "dialogflow"
    key = "dialogFlowList"

    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        dialogflow = require_reply(reply, DialogFlowReply, self.key)
        list_select = await self.resolve(event)
        dialogflow.set_system_intent("actions.intent.OPTION", {"@type": OPTION_VALUE_TYPE, "listSelect": list_select})


class Carousel(ViewDirective):
    platform = "dialogflow"
    key = "dialogFlowCarousel"

    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        dialogflow = require_reply(reply, DialogFlowReply, self.key)
        carousel_select = await self.resolve(event)
        dialogflow.set_system_intent(
            "actions.intent.OPTION",
            {"@type": OPTION_VALUE_TYPE, "carouselSelect": carousel_select},
        )


class Suggestions(ViewDirective):
    platform = "dialogflow"
    key = "dialogFlowSuggestions"

    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        dialogflow = require_reply(reply, DialogFlowReply, self.key)
        suggestions = await self.resolve(event)
        if isinstance(suggestions, str):
            suggestions = [suggestions]
        if not isinstance(suggestions, list):
            raise DirectiveError(self.key, "suggestions must be a list of strings")
        dialogflow.add_suggestions([str(item) for item in suggestions])


class BasicCard(ViewDirective):
    platform = "dialogflow"
    key = "dialogFlowCard"

    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        dialogflow = require_reply(reply, DialogFlowReply, self.key)
        card = await self.resolve(event)
        if not isinstance(card, Mapping):
            raise DirectiveError(self.key, "a basic card must be a mapping")
        dialogflow.add_rich_item({"basicCard": dict(card)})


class AccountLinkingCard(Directive):
    platform = "dialogflow"
    key = "dialogFlowAccountLinkingCard"

    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        dialogflow = require_reply(reply, DialogFlowReply, self.key)
        dialogflow.set_input_prompt(
            {"initialPrompts": [{"textToSpeech": "PLACEHOLDER_FOR_SIGN_IN"}], "noInputPrompts": []}
        )
        dialogflow.set_system_intent("actions.intent.SIGN_IN", {"@type": SIGN_IN_VALUE_TYPE})


class MediaResponse(ViewDirective):
    """Audio media response; needs a simple response earlier in the reply."""

    platform = "dialogflow"
    key = "dialogFlowMediaResponse"

    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        dialogflow = require_reply(reply, DialogFlowReply, self.key)
        if not event.has_capability(AUDIO_OUTPUT):
            return
        if not dialogflow.has_simple_response:
            raise DirectiveError(self.key, "MediaResponse requires another simple response first")
        media_object = await self.resolve(event)
        dialogflow.add_rich_item({"mediaResponse": {"mediaType": "AUDIO", "mediaObjects": [media_object]}})
