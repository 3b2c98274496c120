from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from msgext.api.deps import get_application
from msgext.api.models import Activity, ActivityTypes, InvokeResponse
from msgext.application import Application, TurnState
from msgext.message_extensions import RouteMismatchError
from msgext.turn_context import TurnContext

router = APIRouter()


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/api/messages")
async def messages_route(activity: Activity, application: Application = Depends(get_application)) -> JSONResponse:
    """Run one inbound activity through the route table.

    Invokes answer with the queued invoke response (501 if no route produced one);
    other activities answer 200 with whatever the bot replied during the turn.
    """

    context = TurnContext(activity)
    try:
        await application.run(context, TurnState())
    except RouteMismatchError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)) from e

    if activity.type == ActivityTypes.invoke:
        queued = context.invoke_response
        if queued is None:
            return JSONResponse(status_code=status.HTTP_501_NOT_IMPLEMENTED, content=None)
        response = InvokeResponse.model_validate(queued.value)
        return JSONResponse(status_code=response.status, content=jsonable_encoder(response.body))

    replies = [a.model_dump(mode="json", exclude_none=True) for a in context.sent_activities]
    return JSONResponse(status_code=status.HTTP_200_OK, content={"activities": replies})
