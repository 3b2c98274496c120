from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from msgext.api.models import Activity
from msgext.application import Application, TurnState
from msgext.turn_context import TurnContext


def make_invoke(name: str, value: Any = None) -> Activity:
    return Activity(type="invoke", name=name, value=value)


@pytest.fixture()
def make_context() -> Callable[..., TurnContext]:
    """Build a TurnContext for an invoke activity: `make_context(name, value)`."""

    def _make(name: str, value: Any = None) -> TurnContext:
        return TurnContext(make_invoke(name, value))

    return _make


@pytest.fixture()
def state() -> TurnState:
    return TurnState()


@pytest.fixture()
def application() -> Application:
    return Application()


@pytest.fixture()
def client_and_application() -> Generator[tuple[TestClient, Application], None, None]:
    """FastAPI TestClient serving a fresh Application through the dependency override."""

    from msgext.api.deps import get_application, reset_application_for_tests
    from msgext.main import app

    bot = Application()

    def _override() -> Application:
        return bot

    reset_application_for_tests()
    app.dependency_overrides[get_application] = _override
    with TestClient(app) as c:
        yield c, bot
    app.dependency_overrides.clear()
    reset_application_for_tests()
