from __future__ import annotations

from typing import Any

from palaver import NormalizedEvent

VIEWS: dict[str, Any] = {
    "en-US": {
        "Launch": {"Welcome": "Welcome to the app!"},
        "Error": {"Generic": "Something broke, sorry."},
        "Ask": {"Name": {"ask": "What is your name?", "reprompt": "Please tell me your name."}},
        "Greeting": "Hello {name}!",
        "Time": "It is {time}.",
        "Goodbye": {"tell": "Bye for now."},
        "Help": "You can ask me anything.",
        "Step": {"One": "Step one.", "Two": "Step two.", "Three": "Step three."},
        "Suggestions": ["Yes", "No"],
        "Card": {"type": "Simple", "title": "Hello", "content": "Hi {name}"},
    },
    "de-DE": {
        "Launch": {"Welcome": "Willkommen!"},
    },
}


def make_event(intent_name: str, **kwargs: Any) -> NormalizedEvent:
    kwargs.setdefault("user_id", "user-xyz")
    kwargs.setdefault("session_id", "session-1")
    return NormalizedEvent(intent_name=intent_name, **kwargs)
