from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from msgext.api.models import (
    ActivityTypes,
    InvokeName,
    MessagingExtensionParameter,
    MessagingExtensionQueryOptions,
    Query,
)
from msgext.dispatch.fsm import DispatchFSM
from msgext.dispatch.responses import (
    compose_extension_response,
    fetch_task_response,
    invoke_response_activity,
    submit_action_response,
)
from msgext.dispatch.selectors import (
    CommandId,
    PreviewAction,
    activity_value,
    create_task_selector,
    select_item_selector,
)
from msgext.turn_context import TurnContext

if TYPE_CHECKING:
    from msgext.application import Application, TurnState

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


class RouteMismatchError(RuntimeError):
    """A dispatcher ran for an activity its selector should never have matched.

    This is a selector/body pairing bug, not bad input, so it is never swallowed.
    """


def _query_options(raw: Any) -> MessagingExtensionQueryOptions:
    if not isinstance(raw, Mapping):
        return MessagingExtensionQueryOptions()
    try:
        return MessagingExtensionQueryOptions.model_validate(raw)
    except ValidationError as e:
        # Keep the fields that did validate; the rest fall back to their defaults.
        bad = {err["loc"][0] for err in e.errors() if err["loc"]}
        logger.debug("Ignoring malformed queryOptions fields: %s", sorted(map(str, bad)))
        return MessagingExtensionQueryOptions.model_validate({k: v for k, v in raw.items() if k not in bad})


def flatten_query(value: Mapping[str, Any]) -> Query:
    """Flatten a raw `composeExtension/query` payload.

    `queryOptions.count` / `queryOptions.skip` default to 25 / 0, and the `parameters`
    list becomes a name -> value mapping. Parameters without a usable name are dropped.
    Malformed fields degrade to those defaults instead of failing the dispatch.
    """

    options = _query_options(value.get("queryOptions"))
    query = Query(
        count=options.count if options.count is not None else 25,
        skip=options.skip if options.skip is not None else 0,
    )

    raw_params = value.get("parameters")
    if not isinstance(raw_params, list):
        raw_params = []

    for raw in raw_params:
        if not isinstance(raw, Mapping):
            continue
        try:
            param = MessagingExtensionParameter.model_validate(raw)
        except ValidationError:
            logger.debug("Ignoring malformed query parameter: %r", raw)
            continue
        if param.name:
            query.parameters[param.name] = param.value

    return query


def submit_data(value: Mapping[str, Any]) -> Any:
    data = value.get("data")
    return data if data is not None else {}


def preview_activity(value: Mapping[str, Any]) -> dict[str, Any]:
    previews = value.get("botActivityPreview")
    if not isinstance(previews, list) or not previews or not isinstance(previews[0], Mapping):
        return {}
    return dict(previews[0])


def _command_ids(command_id: CommandId | Sequence[CommandId]) -> list[CommandId]:
    if isinstance(command_id, (list, tuple)):
        return list(command_id)
    return [command_id]


def _ensure_invoke(
    context: TurnContext,
    *,
    family: str,
    invoke_name: InvokeName,
    preview_action: PreviewAction | None = None,
) -> None:
    activity = context.activity
    ok = activity.type == ActivityTypes.invoke and activity.name == invoke_name
    if ok and preview_action is not None:
        ok = activity_value(activity).get("botMessagePreviewAction") == preview_action
    if not ok:
        logger.error(
            "Route mismatch in MessageExtensions.%s(): type=%s name=%s",
            family,
            activity.type,
            activity.name,
        )
        raise RouteMismatchError(f"Unexpected MessageExtensions.{family}() triggered for activity type: {activity.type}")


async def _call_handler(handler: Handler, *args: Any) -> Any:
    result = handler(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _emit(context: TurnContext, fsm: DispatchFSM, body: Any) -> None:
    # Re-checked right before sending: shaping must never produce a second reply.
    if context.invoke_response_sent:
        fsm.reply_suppressed()
        logger.debug("Invoke response already queued; dropping %s", body)
        return
    await context.send_activity(invoke_response_activity(body, status=200))
    fsm.reply_sent()


class MessageExtensions:
    """Registration API for `composeExtension/*` invokes.

    Each registration adds one invoke route per command id and returns the owning
    application so calls can be chained.
    """

    def __init__(self, app: Application) -> None:
        self._app = app

    async def _dispatch(
        self,
        context: TurnContext,
        state: TurnState,
        *,
        family: str,
        invoke_name: InvokeName,
        handler: Handler,
        extract: Callable[[Mapping[str, Any]], tuple[Any, ...]],
        shape: Callable[[Any], Any],
        preview_action: PreviewAction | None = None,
    ) -> None:
        fsm = DispatchFSM()

        _ensure_invoke(context, family=family, invoke_name=invoke_name, preview_action=preview_action)
        fsm.check_passed()

        extra = extract(activity_value(context.activity))
        fsm.input_extracted()

        logger.debug("Dispatching %s command_id=%s", family, activity_value(context.activity).get("commandId"))
        result = await _call_handler(handler, context, state, *extra)
        fsm.handler_returned()

        if context.invoke_response_sent:
            fsm.reply_suppressed()
            logger.debug("%s handler queued its own invoke response", family)
            return

        body = shape(result)
        fsm.response_shaped()
        await _emit(context, fsm, body)

    def _register(
        self,
        command_id: CommandId | Sequence[CommandId],
        *,
        family: str,
        invoke_name: InvokeName,
        handler: Handler,
        extract: Callable[[Mapping[str, Any]], tuple[Any, ...]],
        shape: Callable[[Any], Any],
        preview_action: PreviewAction | None = None,
    ) -> Application:
        async def route(context: TurnContext, state: TurnState) -> None:
            await self._dispatch(
                context,
                state,
                family=family,
                invoke_name=invoke_name,
                handler=handler,
                extract=extract,
                shape=shape,
                preview_action=preview_action,
            )

        for cid in _command_ids(command_id):
            selector = create_task_selector(cid, invoke_name, preview_action)
            self._app.add_route(selector, route, is_invoke_route=True)
        return self._app

    def anonymous_query_link(self, command_id: CommandId | Sequence[CommandId], handler: Handler) -> Application:
        return self._register(
            command_id,
            family="anonymousQueryLink",
            invoke_name=InvokeName.anonymous_query_link,
            handler=handler,
            extract=lambda value: (),
            shape=compose_extension_response,
        )

    def fetch_task(self, command_id: CommandId | Sequence[CommandId], handler: Handler) -> Application:
        """Handler returns a `TaskModuleTaskInfo` (or mapping) to continue, or a str message."""

        return self._register(
            command_id,
            family="fetchTask",
            invoke_name=InvokeName.fetch_task,
            handler=handler,
            extract=lambda value: (),
            shape=fetch_task_response,
        )

    def query(self, command_id: CommandId | Sequence[CommandId], handler: Handler) -> Application:
        """Handler receives `(context, state, query)` with the flattened `Query`."""

        return self._register(
            command_id,
            family="query",
            invoke_name=InvokeName.query,
            handler=handler,
            extract=lambda value: (flatten_query(value),),
            shape=compose_extension_response,
        )

    def query_link(self, command_id: CommandId | Sequence[CommandId], handler: Handler) -> Application:
        return self._register(
            command_id,
            family="queryLink",
            invoke_name=InvokeName.query_link,
            handler=handler,
            extract=lambda value: (),
            shape=compose_extension_response,
        )

    def select_item(self, handler: Handler) -> Application:
        """Single fixed route; handler receives `(context, state, item)`."""

        async def route(context: TurnContext, state: TurnState) -> None:
            await self._dispatch(
                context,
                state,
                family="selectItem",
                invoke_name=InvokeName.select_item,
                handler=handler,
                extract=lambda value: (dict(value),),
                shape=compose_extension_response,
            )

        return self._app.add_route(select_item_selector, route, is_invoke_route=True)

    def submit_action(self, command_id: CommandId | Sequence[CommandId], handler: Handler) -> Application:
        """Handler receives `(context, state, data)` where data is `value.data`."""

        return self._register(
            command_id,
            family="submitAction",
            invoke_name=InvokeName.submit_action,
            handler=handler,
            extract=lambda value: (submit_data(value),),
            shape=submit_action_response,
        )

    def bot_message_preview_edit(self, command_id: CommandId | Sequence[CommandId], handler: Handler) -> Application:
        return self._register(
            command_id,
            family="botMessagePreviewEdit",
            invoke_name=InvokeName.submit_action,
            handler=handler,
            extract=lambda value: (preview_activity(value),),
            shape=submit_action_response,
            preview_action="edit",
        )

    def bot_message_preview_send(self, command_id: CommandId | Sequence[CommandId], handler: Handler) -> Application:
        """The handler's return value is ignored; the reply is always an empty body."""

        return self._register(
            command_id,
            family="botMessagePreviewSend",
            invoke_name=InvokeName.submit_action,
            handler=handler,
            extract=lambda value: (preview_activity(value),),
            shape=lambda result: {},
            preview_action="send",
        )
