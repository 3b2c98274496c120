from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from msgext.api.models import ActivityTypes
from msgext.turn_context import TurnContext

if TYPE_CHECKING:
    from msgext.dispatch.selectors import RouteSelector
    from msgext.message_extensions import MessageExtensions

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TurnState:
    """In-memory state handed to route handlers. Never persisted."""

    conversation: dict[str, Any] = field(default_factory=dict)
    user: dict[str, Any] = field(default_factory=dict)
    temp: dict[str, Any] = field(default_factory=dict)


RouteHandler = Callable[[TurnContext, TurnState], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class Route:
    selector: RouteSelector
    handler: RouteHandler


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class Application:
    """Ordered route table.

    Contract:
      - `add_route(selector, handler, is_invoke_route)` appends a route.
      - `run(context, state)` runs the first route whose selector matches.
        Invoke routes are tried first, and only for invoke activities.

    At most one route runs per activity.
    """

    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._invoke_routes: list[Route] = []
        self._message_extensions: MessageExtensions | None = None

    @property
    def message_extensions(self) -> MessageExtensions:
        if self._message_extensions is None:
            from msgext.message_extensions import MessageExtensions

            self._message_extensions = MessageExtensions(self)
        return self._message_extensions

    def add_route(self, selector: RouteSelector, handler: RouteHandler, is_invoke_route: bool = False) -> Application:
        route = Route(selector=selector, handler=handler)
        if is_invoke_route:
            self._invoke_routes.append(route)
        else:
            self._routes.append(route)
        return self

    async def run(self, context: TurnContext, state: TurnState) -> bool:
        candidates: list[Route] = []
        if context.activity.type == ActivityTypes.invoke:
            candidates.extend(self._invoke_routes)
        candidates.extend(self._routes)

        for route in candidates:
            if await _resolve(route.selector(context)):
                await route.handler(context, state)
                return True

        logger.debug("No route matched activity type=%s name=%s", context.activity.type, context.activity.name)
        return False
