"""Reply capability contract shared by every channel."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from html import escape
from typing import Any

from palaver.types import Attributes

type DirectiveMatcher = str | re.Pattern[str]

_SPEAK_TAGS = re.compile(r"^\s*<speak>(.*)</speak>\s*$", re.DOTALL)
_MARKUP = re.compile(r"<[^>]+>")


def strip_speak(statement: str) -> str:
    """Remove an outer `<speak>` wrapper from one statement."""

    match = _SPEAK_TAGS.match(statement)
    if match is None:
        return statement.strip()
    return match.group(1).strip()


def add_to_ssml(ssml: str, statement: str) -> str:
    """Append a statement to an SSML document, keeping one `<speak>` root."""

    base = strip_speak(ssml) if ssml else ""
    addition = strip_speak(statement)
    if not base:
        return f"<speak>{addition}</speak>"
    return f"<speak>{base}\n{addition}</speak>"


def add_to_text(text: str, statement: str) -> str:
    if not text:
        return statement.strip()
    return f"{text} {statement.strip()}"


def matches_directive(matcher: DirectiveMatcher, directive_type: str) -> bool:
    if isinstance(matcher, re.Pattern):
        return matcher.search(directive_type) is not None
    if isinstance(matcher, str):
        return matcher == directive_type
    raise TypeError(f"Do not know how to use a {type(matcher).__name__} to find a directive")


@dataclass
class SpeechParts:
    """Markup and plain statements kept apart until serialization."""

    ssml: str = ""
    text: str = ""

    def add(self, statement: str, is_plain: bool) -> None:
        if is_plain:
            self.text = add_to_text(self.text, statement)
        else:
            self.ssml = add_to_ssml(self.ssml, statement)

    @property
    def is_empty(self) -> bool:
        return not self.ssml and not self.text

    def as_ssml(self) -> str:
        """Merge both representations into one SSML document."""

        if not self.ssml:
            return add_to_ssml("", escape(self.text)) if self.text else ""
        if not self.text:
            return self.ssml
        return add_to_ssml(self.ssml, escape(self.text))

    def as_text(self) -> str:
        """Merge both representations into plain text."""

        spoken = _MARKUP.sub("", strip_speak(self.ssml)) if self.ssml else ""
        spoken = " ".join(spoken.split())
        if not self.text:
            return spoken
        return add_to_text(spoken, self.text)

    def clear(self) -> None:
        self.ssml = ""
        self.text = ""


class Reply(ABC):
    """Accumulating output of one turn.

    Channel replies keep their payload shape private and expose only this
    surface to the engine. Statement and reprompt calls append.
    """

    platform: str = "core"

    def __init__(self) -> None:
        self._statements = SpeechParts()
        self._reprompts = SpeechParts()
        self._session: Attributes = {}
        self._terminated = False

    def add_statement(self, statement: str, is_plain: bool = False) -> None:
        self._statements.add(statement, is_plain)

    def add_reprompt(self, statement: str, is_plain: bool = False) -> None:
        self._reprompts.add(statement, is_plain)

    def set_session(self, attributes: Attributes) -> None:
        self._session = dict(attributes)

    def terminate(self) -> None:
        self._terminated = True

    def clear(self) -> None:
        """Drop accumulated content. Termination survives a clear."""

        self._statements.clear()
        self._reprompts.clear()
        self._clear_directives()

    @property
    def speech(self) -> str:
        return self._statements.as_ssml()

    @property
    def reprompt(self) -> str:
        return self._reprompts.as_ssml()

    @property
    def has_messages(self) -> bool:
        return not self._statements.is_empty

    @property
    def has_terminated(self) -> bool:
        return self._terminated

    @property
    def session_attributes(self) -> Attributes:
        return dict(self._session)

    def has_directive(self, matcher: DirectiveMatcher) -> bool:
        return any(matches_directive(matcher, directive_type) for directive_type in self.directive_types())

    @abstractmethod
    def directive_types(self) -> list[str]:
        """Types of every directive-like section currently in the reply."""

    @abstractmethod
    def _clear_directives(self) -> None: ...

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Merge statements and sections into the channel payload."""
