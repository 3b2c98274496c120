from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ActivityTypes(StrEnum):
    message = "message"
    invoke = "invoke"
    invoke_response = "invokeResponse"


class InvokeName(StrEnum):
    anonymous_query_link = "composeExtension/anonymousQueryLink"
    fetch_task = "composeExtension/fetchTask"
    query = "composeExtension/query"
    query_link = "composeExtension/queryLink"
    select_item = "composeExtension/selectItem"
    submit_action = "composeExtension/submitAction"


class Activity(BaseModel):
    """Inbound or outbound activity.

    Only the fields the dispatch layer reads are declared; everything else the
    channel sends (ids, from/recipient, conversation, ...) is kept as extra data.
    """

    model_config = ConfigDict(extra="allow")

    type: str
    name: str | None = None
    text: str | None = None
    value: Any = None


class InvokeResponse(BaseModel):
    status: int
    body: Any = None


class _WireModel(BaseModel):
    # camelCase on the wire, snake_case in Python.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class MessagingExtensionParameter(_WireModel):
    name: str | None = None
    value: Any = None


class MessagingExtensionQueryOptions(_WireModel):
    count: int | None = None
    skip: int | None = None


class Query(BaseModel):
    """Flattened query handed to `query` handlers."""

    count: int = 25
    skip: int = 0
    parameters: dict[str, Any] = Field(default_factory=dict)


class TaskModuleTaskInfo(_WireModel):
    """Task-continuation descriptor: the follow-up dialog to show."""

    title: str | None = None
    height: int | str | None = None
    width: int | str | None = None
    url: str | None = None
    card: dict[str, Any] | None = None
    fallback_url: str | None = None
    completion_bot_id: str | None = None


class MessagingExtensionResult(_WireModel):
    """Result list (or single rendered card) for a compose extension."""

    attachment_layout: str | None = None
    type: str | None = None
    attachments: list[dict[str, Any]] | None = None
    suggested_actions: dict[str, Any] | None = None
    text: str | None = None
    activity_preview: dict[str, Any] | None = None
