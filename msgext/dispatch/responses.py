from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel

from msgext.api.models import (
    Activity,
    ActivityTypes,
    InvokeResponse,
    MessagingExtensionResult,
    TaskModuleTaskInfo,
)


def _wire(result: Any) -> Any:
    # Models go out in their camelCase wire form; mappings and strings as-is.
    if isinstance(result, BaseModel):
        return result.model_dump(by_alias=True, exclude_none=True)
    return result


def task_response(kind: Literal["message", "continue"], value: Any) -> dict[str, Any]:
    return {"task": {"type": kind, "value": _wire(value)}}


def compose_extension_response(result: Any) -> dict[str, Any]:
    return {"composeExtension": _wire(result)}


def fetch_task_response(result: Any) -> dict[str, Any]:
    """A string becomes a terminal message; anything else is a continuation."""

    if isinstance(result, str):
        return task_response("message", result)
    return task_response("continue", result)


def _has_card(result: Any) -> bool:
    if isinstance(result, Mapping):
        return bool(result.get("card"))
    return bool(getattr(result, "card", None))


def submit_action_response(result: Any) -> dict[str, Any]:
    """Shape a submit-action (or preview-edit) handler result.

    Decision table:
    - str -> task message
    - TaskModuleTaskInfo, or any other result with a truthy `card` -> task continue
    - MessagingExtensionResult, or any other result without one -> composeExtension
    - None -> composeExtension with no payload

    The typed models are an explicit tag. Everything else (mappings, user models,
    dataclasses, ...) falls back to the `card` check, which misreads a result list
    that happens to carry a `card` field.
    """

    if isinstance(result, str):
        return task_response("message", result)
    if isinstance(result, TaskModuleTaskInfo):
        return task_response("continue", result)
    if isinstance(result, MessagingExtensionResult):
        return compose_extension_response(result)
    if result is None:
        return compose_extension_response(None)
    if _has_card(result):
        return task_response("continue", result)
    return compose_extension_response(result)


def invoke_response_activity(body: Any, status: int = 200) -> Activity:
    return Activity(type=ActivityTypes.invoke_response, value=InvokeResponse(status=status, body=body))
