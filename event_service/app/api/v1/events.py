from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pymongo.client_session import ClientSession

from common.mongo.session import commit_session, get_mongo_session

from ...exceptions import EventServiceError
from ...models.event import EventCreate
from ...services.events_service import EventsService, get_events_service
from ..dependencies import get_current_user_code
from ..errors import to_http_exception
from ..schemas.events import (
    CreateEventRequest,
    CreateEventResponse,
    DeleteEventResponse,
)


router = APIRouter(prefix="/events", tags=["events"])

CurrentUser = Annotated[str, Depends(get_current_user_code)]
Events = Annotated[EventsService, Depends(get_events_service)]
Session = Annotated[ClientSession, Depends(get_mongo_session)]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_event(
    req: CreateEventRequest, user_code: CurrentUser, service: Events, session: Session
) -> CreateEventResponse:
    """이벤트 생성. max_guests 만큼 크레딧을 홀드하며, 부족하면 402."""
    try:
        event = service.create_event(user_code, EventCreate(**req.model_dump()))
    except EventServiceError as exc:
        raise to_http_exception(exc) from exc
    commit_session(session)
    return CreateEventResponse(event_id=event.id or "", credits_held=event.max_guests)


@router.delete("/{event_id}")
def delete_event(
    event_id: str, user_code: CurrentUser, service: Events, session: Session
) -> DeleteEventResponse:
    """이벤트 삭제(비활성화). 남은 홀드 크레딧을 돌려준다."""
    try:
        released = service.delete_event(user_code, event_id)
    except EventServiceError as exc:
        raise to_http_exception(exc) from exc
    commit_session(session)
    return DeleteEventResponse(credits_released=released)
