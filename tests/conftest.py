from __future__ import annotations

import pytest
from support import VIEWS

from palaver import DialogApp, Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def dialog_app(settings: Settings) -> DialogApp:
    return DialogApp(views=VIEWS, settings=settings)
