from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from msgext.api.models import Activity, ActivityTypes

# Well-known scratch-store key holding the queued invoke response for the turn.
INVOKE_RESPONSE_KEY = "invokeResponse"

ReplySink = Callable[[Activity], Awaitable[None]]


class TurnContext:
    """Everything a route needs for one inbound activity.

    Contract:
      - `activity` is the inbound activity (read-only by convention).
      - `turn_state` is a scratch store that lives exactly as long as the turn.
      - `send_activity(...)` queues an outbound activity. An `invokeResponse`
        is never forwarded to the channel; it is parked under
        `INVOKE_RESPONSE_KEY` and the host returns it as the HTTP response.

    One context is created per inbound activity and is never shared between
    turns, so no locking is needed.
    """

    def __init__(self, activity: Activity, sink: ReplySink | None = None) -> None:
        self.activity = activity
        self.turn_state: dict[str, Any] = {}
        self.sent_activities: list[Activity] = []
        self._sink = sink

    @property
    def invoke_response(self) -> Activity | None:
        return self.turn_state.get(INVOKE_RESPONSE_KEY)

    @property
    def invoke_response_sent(self) -> bool:
        return bool(self.turn_state.get(INVOKE_RESPONSE_KEY))

    async def send_activity(self, activity: Activity) -> None:
        self.sent_activities.append(activity)
        if activity.type == ActivityTypes.invoke_response:
            self.turn_state[INVOKE_RESPONSE_KEY] = activity
            return
        if self._sink is not None:
            await self._sink(activity)
