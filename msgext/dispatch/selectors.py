from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Literal

from msgext.api.models import Activity, ActivityTypes, InvokeName
from msgext.turn_context import TurnContext

PreviewAction = Literal["edit", "send"]

RouteSelector = Callable[[TurnContext], bool | Awaitable[bool]]
CommandId = str | re.Pattern[str] | RouteSelector


def activity_value(activity: Activity) -> Mapping[str, Any]:
    value = activity.value
    return value if isinstance(value, Mapping) else {}


def matches_preview_action(activity: Activity, preview_action: PreviewAction | None) -> bool:
    """Preview activities only match preview registrations, and vice versa."""

    action = activity_value(activity).get("botMessagePreviewAction")
    if isinstance(action, str):
        return action == preview_action
    return preview_action is None


class CommandSelector(ABC):
    """A string or pattern command identifier resolved into a uniform match interface."""

    @abstractmethod
    def matches(self, context: TurnContext) -> bool:
        raise NotImplementedError

    def __call__(self, context: TurnContext) -> bool:
        return self.matches(context)


@dataclass(frozen=True, slots=True)
class _InvokeCommandSelector(CommandSelector):
    invoke_name: str
    preview_action: PreviewAction | None

    def matches(self, context: TurnContext) -> bool:
        activity = context.activity
        if activity.type != ActivityTypes.invoke or activity.name != self.invoke_name:
            return False
        command_id = activity_value(activity).get("commandId")
        if not isinstance(command_id, str):
            return False
        return self.matches_command(command_id) and matches_preview_action(activity, self.preview_action)

    @abstractmethod
    def matches_command(self, command_id: str) -> bool:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class ExactCommand(_InvokeCommandSelector):
    command_id: str

    def matches_command(self, command_id: str) -> bool:
        return command_id == self.command_id


@dataclass(frozen=True, slots=True)
class PatternCommand(_InvokeCommandSelector):
    pattern: re.Pattern[str]

    def matches_command(self, command_id: str) -> bool:
        return self.pattern.fullmatch(command_id) is not None


def resolve_command_id(
    command_id: str | re.Pattern[str],
    invoke_name: str,
    preview_action: PreviewAction | None = None,
) -> CommandSelector:
    if isinstance(command_id, re.Pattern):
        return PatternCommand(invoke_name=invoke_name, preview_action=preview_action, pattern=command_id)
    if isinstance(command_id, str):
        return ExactCommand(invoke_name=invoke_name, preview_action=preview_action, command_id=command_id)
    raise TypeError(f"Unsupported command id: {command_id!r}")


def create_task_selector(
    command_id: CommandId,
    invoke_name: str,
    preview_action: PreviewAction | None = None,
) -> RouteSelector:
    """Build the route selector for one command identifier.

    A callable is returned unchanged: it owns all matching, including kind checks.
    Strings match `value.commandId` exactly and patterns must match the whole command
    id; both also require an invoke activity named `invoke_name` whose preview action
    agrees with `preview_action`.
    """

    if callable(command_id):
        return command_id
    return resolve_command_id(command_id, invoke_name, preview_action)


def select_item_selector(context: TurnContext) -> bool:
    activity = context.activity
    return activity.type == ActivityTypes.invoke and activity.name == InvokeName.select_item
