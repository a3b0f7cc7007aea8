from __future__ import annotations

import pytest
from support import make_event

from palaver import ConfigurationError, DialogApp, InfiniteLoopError, Settings, Transition, UnknownStateError
from palaver.directives import SayPlain
from palaver.errors import UnhandledIntentError
from palaver.platforms import ConsoleReply


@pytest.mark.asyncio
async def test_launch_routes_from_entry_and_terminates(dialog_app: DialogApp) -> None:
    dialog_app.register_state("entry", {"LaunchIntent": "launch"})
    dialog_app.register_state(
        "launch",
        lambda event, model: Transition(to=None, reply="Launch.Welcome", should_terminate=True),
    )

    event = make_event("LaunchIntent", is_new_session=True)
    reply = await dialog_app.execute(event, ConsoleReply())

    assert reply.speech == "<speak>Welcome to the app!</speak>"
    assert reply.has_terminated is True
    assert event.model is not None
    assert event.model.state == "launch"
    assert reply.session_attributes["state"] == "launch"


@pytest.mark.asyncio
async def test_missing_target_stays_in_current_state(dialog_app: DialogApp) -> None:
    dialog_app.register_state("entry", {"HelpIntent": "help"})
    dialog_app.register_state("help", lambda event: {"reply": "Help"})

    event = make_event("HelpIntent", session_attributes={"state": "help"})
    reply = await dialog_app.execute(event, ConsoleReply())

    assert "You can ask me anything." in reply.speech
    assert reply.has_terminated is False
    assert reply.session_attributes["state"] == "help"


@pytest.mark.asyncio
async def test_forwarding_chain_produces_last_reply(dialog_app: DialogApp) -> None:
    seen: list[str] = []

    def forward(name: str, target: str):
        def handler(event, model):
            seen.append(name)
            return Transition(to=target)

        return handler

    dialog_app.register_state("entry", {"StartIntent": "one"})
    dialog_app.register_state("one", forward("one", "two"))
    dialog_app.register_state("two", forward("two", "three"))

    def last(event, model):
        seen.append("three")
        return Transition(reply="Step.Three", flow="yield")

    dialog_app.register_state("three", last)

    reply = await dialog_app.execute(make_event("StartIntent", is_new_session=True), ConsoleReply())

    assert seen == ["one", "two", "three"]
    assert reply.speech == "<speak>Step three.</speak>"
    assert "Step one." not in reply.speech
    assert reply.session_attributes["state"] == "three"


@pytest.mark.asyncio
async def test_yield_moves_state_without_running_target(dialog_app: DialogApp) -> None:
    calls: list[str] = []
    dialog_app.register_state("entry", {"LaunchIntent": "launch"})
    dialog_app.register_state("launch", lambda event: Transition(to="ask-name", reply="Ask.Name", flow="yield"))

    def ask_name(event):
        calls.append("ask-name")
        return Transition(reply="Greeting", should_terminate=True)

    dialog_app.register_state("ask-name", ask_name)

    reply = await dialog_app.execute(make_event("LaunchIntent", is_new_session=True), ConsoleReply())

    assert calls == []
    assert "What is your name?" in reply.speech
    assert "Please tell me your name." in reply.reprompt
    assert reply.session_attributes["state"] == "ask-name"

    second = await dialog_app.execute(
        make_event("NameIntent", params={"name": "Ada"}, session_attributes=reply.session_attributes),
        ConsoleReply(),
    )
    assert calls == ["ask-name"]
    assert second.speech == "<speak>Hello Ada!</speak>"


@pytest.mark.asyncio
async def test_plain_content_reference_terminates(dialog_app: DialogApp) -> None:
    dialog_app.register_state("entry", {"StopIntent": "exit"})
    dialog_app.register_state("exit", lambda event: "Goodbye")

    reply = await dialog_app.execute(make_event("StopIntent", is_new_session=True), ConsoleReply())

    assert reply.has_terminated is True
    assert "Bye for now." in reply.speech


@pytest.mark.asyncio
async def test_async_handler_receives_event_and_model(dialog_app: DialogApp) -> None:
    async def counter(event, model):
        model.count = getattr(model, "count", 0) + 1
        return Transition(reply="Help", to="counter", flow="yield")

    dialog_app.register_state("entry", {"CountIntent": "counter"})
    dialog_app.register_state("counter", counter, intents=["CountIntent"])

    first = await dialog_app.execute(make_event("CountIntent", is_new_session=True), ConsoleReply())
    second = await dialog_app.execute(
        make_event("CountIntent", session_attributes=first.session_attributes),
        ConsoleReply(),
    )

    assert first.session_attributes["count"] == 1
    assert second.session_attributes["count"] == 2


@pytest.mark.asyncio
async def test_terminal_marker_restarts_at_entry(dialog_app: DialogApp) -> None:
    dialog_app.register_state("entry", {"LaunchIntent": "launch"})
    dialog_app.register_state("launch", lambda event: Transition(to="die", reply="Goodbye"))

    first = await dialog_app.execute(make_event("LaunchIntent", is_new_session=True), ConsoleReply())
    assert first.session_attributes["state"] == "die"

    second = await dialog_app.execute(
        make_event("LaunchIntent", session_attributes=first.session_attributes),
        ConsoleReply(),
    )
    assert "Bye for now." in second.speech


@pytest.mark.asyncio
async def test_transition_to_unregistered_state_is_routed_to_error(dialog_app: DialogApp) -> None:
    errors: list[Exception] = []
    dialog_app.register_state("entry", {"LaunchIntent": "launch"})
    dialog_app.register_state("launch", lambda event: Transition(to="nowhere"))
    dialog_app.on_error(lambda event, error: errors.append(error))

    reply = await dialog_app.execute(make_event("LaunchIntent", is_new_session=True), ConsoleReply())

    assert len(errors) == 1
    assert isinstance(errors[0], UnknownStateError)
    assert errors[0].state == "nowhere"
    assert reply.has_terminated is True
    assert reply.session_attributes["state"] == "entry"


@pytest.mark.asyncio
async def test_unknown_session_state_is_routed_to_error(dialog_app: DialogApp) -> None:
    errors: list[Exception] = []
    dialog_app.register_state("entry", {"LaunchIntent": "entry"})
    dialog_app.on_error(lambda event, error: errors.append(error))

    await dialog_app.execute(make_event("HelpIntent", session_attributes={"state": "removed"}), ConsoleReply())

    assert isinstance(errors[0], UnknownStateError)


@pytest.mark.asyncio
async def test_unmapped_intent_without_hook_yields_error_reply(dialog_app: DialogApp, settings: Settings) -> None:
    errors: list[Exception] = []
    dialog_app.register_state("entry", {"LaunchIntent": "launch"})
    dialog_app.register_state("launch", lambda event: "Launch.Welcome")
    dialog_app.on_error(lambda event, error: errors.append(error))

    reply = await dialog_app.execute(make_event("HelpIntent", is_new_session=True), ConsoleReply())

    assert isinstance(errors[0], UnhandledIntentError)
    assert errors[0].intent_name == "HelpIntent"
    assert reply.speech == f"<speak>{settings.error_statement}</speak>"
    assert reply.has_terminated is True


@pytest.mark.asyncio
async def test_unhandled_state_hook_supplies_fallback(dialog_app: DialogApp) -> None:
    dialog_app.register_state("entry", {"LaunchIntent": "launch"})
    dialog_app.register_state("launch", lambda event: "Launch.Welcome")
    dialog_app.on_unhandled_state(lambda event, state: Transition(reply="Help", flow="yield"))

    reply = await dialog_app.execute(make_event("HelpIntent", is_new_session=True), ConsoleReply())

    assert reply.speech == "<speak>You can ask me anything.</speak>"
    assert reply.has_terminated is False
    assert reply.session_attributes["state"] == "entry"


@pytest.mark.asyncio
async def test_runaway_recursion_raises_infinite_loop(settings: Settings) -> None:
    dialog_app = DialogApp(views={"en-US": {}}, settings=settings.model_copy(update={"max_transitions": 3}))
    errors: list[Exception] = []
    dialog_app.register_state("entry", {"LoopIntent": "ping"})
    dialog_app.register_state("ping", lambda event: Transition(to="pong"))
    dialog_app.register_state("pong", lambda event: Transition(to="ping"))
    dialog_app.on_error(lambda event, error: errors.append(error))

    await dialog_app.execute(make_event("LoopIntent", is_new_session=True), ConsoleReply())

    assert isinstance(errors[0], InfiniteLoopError)
    assert errors[0].limit == 3


@pytest.mark.asyncio
async def test_on_intent_registers_state_reachable_from_entry(dialog_app: DialogApp) -> None:
    dialog_app.on_intent("LaunchIntent", lambda event: Transition(reply="Launch.Welcome", should_terminate=True))

    reply = await dialog_app.execute(make_event("LaunchIntent", is_new_session=True), ConsoleReply())

    assert reply.speech == "<speak>Welcome to the app!</speak>"
    assert reply.session_attributes["state"] == "LaunchIntent"


def test_duplicate_intent_registration_is_rejected(dialog_app: DialogApp) -> None:
    dialog_app.register_state("entry", {"LaunchIntent": "launch"})

    with pytest.raises(ConfigurationError):
        dialog_app.register_state("entry", {"LaunchIntent": "other"})


def test_terminal_marker_cannot_be_registered(dialog_app: DialogApp) -> None:
    with pytest.raises(ConfigurationError):
        dialog_app.register_state("die", lambda event: None)


def test_on_state_decorator_registers_intent_handlers(dialog_app: DialogApp) -> None:
    @dialog_app.on_state("menu", intents=["YesIntent", "NoIntent"])
    def menu(event):
        return "Help"

    state = dialog_app.state_machine.states["menu"]
    assert state.resolve("YesIntent") is menu
    assert state.resolve("NoIntent") is menu
    assert state.resolve("HelpIntent") is None


@pytest.mark.asyncio
async def test_shared_transition_constant_is_not_mutated(dialog_app: DialogApp) -> None:
    shared = Transition(reply="Launch.Welcome")
    dialog_app.register_state("entry", {"FirstIntent": "first", "SecondIntent": "second"})
    dialog_app.register_state("first", lambda event: shared)
    dialog_app.register_state("second", lambda event: shared)

    first = await dialog_app.execute(make_event("FirstIntent", is_new_session=True), ConsoleReply())
    second = await dialog_app.execute(make_event("SecondIntent", is_new_session=True), ConsoleReply())

    assert first.session_attributes["state"] == "first"
    assert second.session_attributes["state"] == "second"
    assert shared.to is None


@pytest.mark.asyncio
async def test_hook_directives_do_not_accumulate_on_static_transition(dialog_app: DialogApp) -> None:
    help_transition = Transition(reply="Help", to="help")
    dialog_app.register_state("entry", {"HelpIntent": "help"})
    dialog_app.register_state("help", lambda event: help_transition)

    def add_marker(event, reply, transition):
        transition.directives.append(SayPlain(["x"]))

    dialog_app.on_after_state_changed(add_marker)

    texts: list[str] = []
    for _ in range(3):
        reply = await dialog_app.execute(
            make_event("HelpIntent", session_attributes={"state": "help"}),
            ConsoleReply(),
        )
        texts.append(reply.text)

    assert texts == ["You can ask me anything. x"] * 3
    assert help_transition.directives == []


@pytest.mark.asyncio
async def test_speech_keys_in_handler_mapping(dialog_app: DialogApp) -> None:
    dialog_app.register_state("entry", {"LaunchIntent": "launch", "StopIntent": "stop"})
    dialog_app.register_state("launch", lambda event: {"ask": "Launch.Welcome", "reprompt": "Help", "flow": "yield"})
    dialog_app.register_state("stop", lambda event: {"tell": "Help"})

    asked = await dialog_app.execute(make_event("LaunchIntent", is_new_session=True), ConsoleReply())
    told = await dialog_app.execute(make_event("StopIntent", is_new_session=True), ConsoleReply())

    assert asked.speech == "<speak>Welcome to the app!</speak>"
    assert asked.to_dict()["reprompt"] == "You can ask me anything."
    assert asked.has_terminated is False
    assert told.speech == "<speak>You can ask me anything.</speak>"
    assert told.has_terminated is True
