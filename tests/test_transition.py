from __future__ import annotations

import pytest

from palaver.directives import Reprompt, Say, Tell
from palaver.transition import ContentOnly, Transition, classify, normalize


def test_classify_passes_transitions_through() -> None:
    transition = Transition(to="next")

    assert classify(transition) is transition


def test_classify_tags_strings_and_string_lists_as_content_only() -> None:
    assert classify("Launch.Welcome") == ContentOnly("Launch.Welcome")
    assert classify(["Step.One", "Step.Two"]) == ContentOnly(["Step.One", "Step.Two"])


def test_classify_builds_transition_from_mapping() -> None:
    directive = Say("Help")

    outcome = classify({"to": "menu", "reply": "Help", "directives": [directive], "flow": "yield"})

    assert isinstance(outcome, Transition)
    assert outcome.to == "menu"
    assert outcome.reply_paths == ["Help"]
    assert outcome.directives == [directive]
    assert outcome.yields is True


def test_classify_rejects_unknown_mapping_keys() -> None:
    with pytest.raises(TypeError, match="unexpected transition keys: target"):
        classify({"target": "menu"})


def test_classify_rejects_unsupported_values() -> None:
    with pytest.raises(TypeError):
        classify(42)


def test_none_means_stay() -> None:
    transition = normalize(classify(None), "menu")

    assert transition.to == "menu"
    assert transition.should_terminate is False


def test_content_only_normalizes_to_terminating_transition() -> None:
    transition = normalize(ContentOnly("Goodbye"), "menu")

    assert transition.to is None
    assert transition.should_terminate is True
    assert transition.reply_paths == ["Goodbye"]


def test_terminating_transition_keeps_empty_target() -> None:
    transition = normalize(Transition(should_terminate=True), "menu")

    assert transition.to is None


def test_terminate_flow_sets_should_terminate() -> None:
    transition = Transition(flow="terminate")

    assert transition.should_terminate is True
    assert transition.yields is False


def test_unknown_flow_is_rejected() -> None:
    with pytest.raises(ValueError, match="unknown flow"):
        Transition(flow="pause")  # type: ignore[arg-type]


def test_normalize_returns_a_copy() -> None:
    shared = Transition(reply="Help")

    transition = normalize(shared, "menu")
    transition.directives.append(Say("Help"))

    assert transition is not shared
    assert transition.to == "menu"
    assert shared.to is None
    assert shared.directives == []


def test_speech_keys_become_directives() -> None:
    explicit = Say("Help")

    outcome = classify({"ask": "Greeting", "reprompt": ["Help", "Time"], "directives": [explicit], "flow": "yield"})

    assert isinstance(outcome, Transition)
    assert [(type(d), d.view_path) for d in outcome.directives[:3]] == [
        (Say, "Greeting"),
        (Reprompt, "Help"),
        (Reprompt, "Time"),
    ]
    assert outcome.directives[3] is explicit
    assert outcome.should_terminate is False


def test_tell_key_terminates() -> None:
    outcome = classify({"tell": "Goodbye"})

    assert isinstance(outcome, Transition)
    assert outcome.should_terminate is True
    assert [type(d) for d in outcome.directives] == [Tell]


def test_speech_key_rejects_non_path_values() -> None:
    with pytest.raises(TypeError, match="transition key 'say' expects a view path"):
        classify({"say": 3})
