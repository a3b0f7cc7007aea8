"""palaver - state-machine dialog engine with directive-based replies."""

from .app import DialogApp
from .config import Settings, get_settings
from .directives import Directive, Reprompt, Say, SayPlain, Tell, ViewDirective
from .errors import (
    ConfigurationError,
    DirectiveError,
    InfiniteLoopError,
    PalaverError,
    RenderError,
    UnhandledIntentError,
    UnknownStateError,
)
from .event import NormalizedEvent
from .hookspecs import hookimpl
from .model import Model
from .renderer import Renderer, ViewRenderer
from .reply import Reply
from .transition import Transition

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DialogApp",
    "Directive",
    "DirectiveError",
    "InfiniteLoopError",
    "Model",
    "NormalizedEvent",
    "PalaverError",
    "RenderError",
    "Renderer",
    "Reply",
    "Reprompt",
    "Say",
    "SayPlain",
    "Settings",
    "Tell",
    "Transition",
    "UnhandledIntentError",
    "UnknownStateError",
    "ViewDirective",
    "ViewRenderer",
    "get_settings",
    "hookimpl",
]
