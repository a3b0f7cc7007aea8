"""Channel replies and the directives that target them."""

from palaver.platforms.alexa import AlexaReply
from palaver.platforms.console import ConsoleReply
from palaver.platforms.dialogflow import DialogFlowReply

__all__ = ["AlexaReply", "ConsoleReply", "DialogFlowReply"]
