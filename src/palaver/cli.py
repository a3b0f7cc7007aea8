"""Command line tools for running and inspecting dialog apps."""

from __future__ import annotations

import asyncio
import importlib
import json
import sys
from pathlib import Path
from typing import Any

import typer

from palaver.app import DialogApp
from palaver.event import NormalizedEvent
from palaver.graph import dangling_edges, extract_graph
from palaver.logging_utils import configure_logging
from palaver.platforms.console import ConsoleReply

app = typer.Typer(name="palaver", help="State-machine dialog engine", add_completion=False)


def load_app(spec: str, app_dir: Path | None = None) -> DialogApp:
    """Import `module:attribute` and return the dialog app it names.

    The attribute may also be a zero-argument factory.
    """

    module_name, _, attribute = spec.partition(":")
    if not module_name or not attribute:
        raise typer.BadParameter(f"expected module:attribute, got {spec!r}")
    search_path = str((app_dir or Path.cwd()).resolve())
    if search_path not in sys.path:
        sys.path.insert(0, search_path)

    module = importlib.import_module(module_name)
    target: Any = getattr(module, attribute, None)
    if callable(target) and not isinstance(target, DialogApp):
        target = target()
    if not isinstance(target, DialogApp):
        raise typer.BadParameter(f"{spec} is not a DialogApp")
    return target


def parse_slots(slots: list[str]) -> dict[str, str]:
    params: dict[str, str] = {}
    for item in slots:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"slots look like name=value, got {item!r}")
        params[name.strip()] = value
    return params


@app.command("run")
def run(
    app_spec: str = typer.Argument(..., help="Dialog app as module:attribute"),
    intent: str = typer.Argument(..., help="Intent name of the turn"),
    slot: list[str] | None = typer.Option(None, "--slot", "-s", help="Slot value as name=value"),  # noqa: B008
    session: str | None = typer.Option(None, "--session", help="Session attributes as JSON"),
    new_session: bool = typer.Option(True, "--new/--resume", help="Start a new session"),
    user_id: str = typer.Option("local-user", "--user-id", help="User id"),
    locale: str | None = typer.Option(None, "--locale", help="Locale of the turn"),
    app_dir: Path | None = typer.Option(None, "--app-dir", help="Directory to import the app from"),  # noqa: B008
) -> None:
    """Run one turn through the app and print the reply."""

    configure_logging(profile="console")
    dialog_app = load_app(app_spec, app_dir)
    try:
        attributes = json.loads(session) if session else {}
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"--session is not valid JSON: {exc}") from exc

    event = NormalizedEvent(
        intent_name=intent,
        params=parse_slots(slot or []),
        session_attributes=attributes,
        is_new_session=new_session,
        user_id=user_id,
        session_id=f"cli:{user_id}",
        platform="console",
        locale=locale,
    )
    reply = asyncio.run(dialog_app.execute(event, ConsoleReply()))

    payload = reply.to_dict()
    typer.echo(payload["text"])
    if payload["reprompt"]:
        typer.echo(f"(reprompt) {payload['reprompt']}")
    for section in payload["sections"]:
        typer.echo(f"[{section['type']}] {section['payload']}")
    typer.echo(f"terminate={payload['terminate']} session={json.dumps(payload['session'], sort_keys=True)}")


@app.command("graph")
def graph(
    app_spec: str = typer.Argument(..., help="Dialog app as module:attribute"),
    app_dir: Path | None = typer.Option(None, "--app-dir", help="Directory to import the app from"),  # noqa: B008
) -> None:
    """Print the statically discoverable state graph."""

    dialog_app = load_app(app_spec, app_dir)
    machine = dialog_app.state_machine
    edges = extract_graph(machine)
    if not edges:
        typer.echo("(no transitions found)")
    for edge in edges:
        label = edge.intent or "*"
        typer.echo(f"{edge.source} --{label}--> {edge.target} ({edge.via})")

    dangling = dangling_edges(machine)
    for edge in dangling:
        typer.echo(f"warning: {edge.source} targets unknown state '{edge.target}'", err=True)
    if dangling:
        raise typer.Exit(code=1)


@app.command("hooks")
def hooks(
    app_spec: str = typer.Argument(..., help="Dialog app as module:attribute"),
    app_dir: Path | None = typer.Option(None, "--app-dir", help="Directory to import the app from"),  # noqa: B008
) -> None:
    """Show hook implementation mapping."""

    report = load_app(app_spec, app_dir).hook_report()
    if not report:
        typer.echo("(no hook implementations)")
        return
    for hook_name, plugin_names in report.items():
        typer.echo(f"{hook_name}: {', '.join(plugin_names)}")
