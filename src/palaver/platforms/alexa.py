"""Alexa reply and directives."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from palaver.directives import Directive, ViewDirective, require_reply
from palaver.errors import DirectiveError
from palaver.event import NormalizedEvent
from palaver.reply import Reply, SpeechParts
from palaver.transition import Transition

AUDIO_PLAYER_INTERFACE = "AudioPlayer"
PLAY_BEHAVIORS = frozenset({"REPLACE_ALL", "ENQUEUE", "REPLACE_ENQUEUED"})


def _output_speech(parts: SpeechParts) -> dict[str, str] | None:
    if parts.is_empty:
        return None
    if parts.ssml:
        return {"type": "SSML", "ssml": parts.as_ssml()}
    return {"type": "PlainText", "text": parts.text}


class AlexaReply(Reply):
    """Reply shaped like an Alexa response envelope."""

    platform = "alexa"

    def __init__(self) -> None:
        super().__init__()
        self._card: dict[str, Any] | None = None
        self._directives: list[dict[str, Any]] = []

    @property
    def card(self) -> dict[str, Any] | None:
        return dict(self._card) if self._card is not None else None

    @property
    def directives(self) -> list[dict[str, Any]]:
        return [dict(directive) for directive in self._directives]

    def set_card(self, card: Mapping[str, Any]) -> None:
        if self._card is not None:
            raise DirectiveError("card", "at most one card can be specified in a response")
        self._card = dict(card)

    def add_directive(self, directive: Mapping[str, Any]) -> None:
        if "type" not in directive:
            raise DirectiveError("directive", "Alexa directives need a type")
        self._directives.append(dict(directive))

    def directive_types(self) -> list[str]:
        types = [str(directive["type"]) for directive in self._directives]
        if self._card is not None:
            types.append("card")
        return types

    def _clear_directives(self) -> None:
        self._card = None
        self._directives = []

    def to_dict(self) -> dict[str, Any]:
        response: dict[str, Any] = {"shouldEndSession": self.has_terminated}
        speech = _output_speech(self._statements)
        if speech is not None:
            response["outputSpeech"] = speech
        reprompt = _output_speech(self._reprompts)
        if reprompt is not None:
            response["reprompt"] = {"outputSpeech": reprompt}
        if self._card is not None:
            response["card"] = dict(self._card)
        if self._directives:
            response["directives"] = [dict(directive) for directive in self._directives]
        return {"version": "1.0", "sessionAttributes": self.session_attributes, "response": response}


class HomeCard(ViewDirective):
    """Card shown in the Alexa companion app."""

    platform = "alexa"
    key = "alexaCard"

    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        alexa = require_reply(reply, AlexaReply, self.key)
        card = await self.resolve(event)
        if not isinstance(card, Mapping) or "type" not in card:
            raise DirectiveError(self.key, "a card needs a type")
        alexa.set_card(card)


class AccountLinkingCard(Directive):
    platform = "alexa"
    key = "alexaAccountLinkingCard"

    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        require_reply(reply, AlexaReply, self.key).set_card({"type": "LinkAccount"})


class Hint(ViewDirective):
    platform = "alexa"
    key = "alexaHint"

    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        alexa = require_reply(reply, AlexaReply, self.key)
        if alexa.has_directive("Hint"):
            raise DirectiveError(self.key, "at most one Hint directive can be specified in a response")
        text = await self.resolve(event)
        alexa.add_directive({"type": "Hint", "hint": {"type": "PlainText", "text": str(text)}})


class PlayAudio(Directive):
    """Start streaming audio through the Alexa audio player."""

    platform = "alexa"
    key = "alexaPlayAudio"

    def __init__(
        self,
        url: str,
        token: str,
        offset_in_milliseconds: int = 0,
        behavior: str = "REPLACE_ALL",
    ) -> None:
        if behavior not in PLAY_BEHAVIORS:
            raise ValueError(f"unknown play behavior: {behavior}")
        self.url = url
        self.token = token
        self.offset_in_milliseconds = offset_in_milliseconds
        self.behavior = behavior

    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        alexa = require_reply(reply, AlexaReply, self.key)
        if not event.has_capability(AUDIO_PLAYER_INTERFACE):
            return
        if alexa.has_directive("VideoApp.Launch"):
            raise DirectiveError(self.key, "do not include both an AudioPlayer.Play and a VideoApp.Launch directive")
        alexa.add_directive(
            {
                "type": "AudioPlayer.Play",
                "playBehavior": self.behavior,
                "audioItem": {
                    "stream": {
                        "url": self.url,
                        "token": self.token,
                        "offsetInMilliseconds": self.offset_in_milliseconds,
                    }
                },
            }
        )


class StopAudio(Directive):
    platform = "alexa"
    key = "alexaStopAudio"

    async def write_to_reply(self, reply: Reply, event: NormalizedEvent, transition: Transition) -> None:
        alexa = require_reply(reply, AlexaReply, self.key)
        if not event.has_capability(AUDIO_PLAYER_INTERFACE):
            return
        alexa.add_directive({"type": "AudioPlayer.Stop"})
