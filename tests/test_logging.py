from __future__ import annotations

from typing import Any

import pytest
from loguru import logger
from support import make_event

from palaver import DialogApp
from palaver.logging_utils import configure_logging
from palaver.platforms import ConsoleReply


@pytest.fixture
def records() -> Any:
    captured: list[dict[str, Any]] = []
    sink_id = logger.add(lambda message: captured.append(message.record), level="DEBUG")
    yield captured
    logger.remove(sink_id)


@pytest.mark.asyncio
async def test_turn_records_carry_session(dialog_app: DialogApp, records: list[dict[str, Any]]) -> None:
    dialog_app.register_state("entry", lambda event: "Help")

    await dialog_app.execute(make_event("HelpIntent", is_new_session=True, session_id="s-42"), ConsoleReply())

    turn_records = [record for record in records if record["message"].startswith("turn.")]
    assert [record["message"].split(" ")[0] for record in turn_records] == ["turn.start", "turn.done"]
    assert {record["extra"]["session"] for record in turn_records} == {"s-42"}


def test_configure_logging_defaults_session_outside_turns() -> None:
    configure_logging(profile="json", level="DEBUG")
    captured: list[dict[str, Any]] = []
    sink_id = logger.add(lambda message: captured.append(message.record))

    logger.info("outside.turn")
    logger.remove(sink_id)

    assert captured[-1]["extra"]["session"] == "-"
