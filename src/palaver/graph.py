"""Offline extraction of the state graph for diagnostics.

Transitions are only known at run time. This module approximates the graph
from intent maps and from string literals handlers pass as `to`. It never
runs handlers and nothing in the engine depends on it.
"""

from __future__ import annotations

import ast
import inspect
import textwrap
from dataclasses import dataclass
from typing import Any

from palaver.state_machine import StateMachine


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    intent: str | None
    via: str


def extract_graph(machine: StateMachine) -> list[Edge]:
    edges: list[Edge] = []
    for name, state in machine.states.items():
        for intent_name, target in state.intents.items():
            if isinstance(target, str):
                edges.append(Edge(name, target, intent_name, "intent-map"))
            else:
                edges.extend(Edge(name, found, intent_name, "handler") for found in literal_targets(target))
        if state.handler is not None:
            edges.extend(Edge(name, found, None, "handler") for found in literal_targets(state.handler))
    return edges


def dangling_edges(machine: StateMachine) -> list[Edge]:
    """Edges whose target is neither registered nor the terminal marker."""

    return [
        edge
        for edge in extract_graph(machine)
        if edge.target != machine.terminal_state and not machine.is_registered(edge.target)
    ]


def literal_targets(handler: Any) -> list[str]:
    """String literals a handler's source passes as `to=` or a `"to"` key."""

    try:
        source = textwrap.dedent(inspect.getsource(handler))
        tree = ast.parse(source)
    except (OSError, TypeError, SyntaxError):
        return []

    found: list[str] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.keyword) and node.arg == "to":
            _collect(node.value, found)
        elif isinstance(node, ast.Dict):
            for key, value in zip(node.keys, node.values, strict=True):
                if isinstance(key, ast.Constant) and key.value == "to":
                    _collect(value, found)
    return list(dict.fromkeys(found))


def _collect(node: ast.expr, found: list[str]) -> None:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        found.append(node.value)
