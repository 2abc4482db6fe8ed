"""이벤트 참가 신청 API 라우터.

상태가 바뀌는 요청은 트랜잭션 커밋 이후 BackgroundTasks 로 도메인 이벤트를 발행한다.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from pymongo.client_session import ClientSession

from common.eventbus.core import EventBus
from common.eventbus.helpers import new_json_event
from common.eventbus.topics import TOPIC_APPLICATION
from common.mongo.session import commit_session, get_mongo_session
from common.events.application import (
    ApplicationDecidedEvent,
    ApplicationEventType,
    ApplicationSubmittedEvent,
)

from ...exceptions import EventServiceError
from ...models.application import (
    ApplicationDecision,
    ApplicationStatus,
    EventApplication,
)
from ...services.applications_service import (
    ApplicationWorkflow,
    get_application_workflow,
)
from ..dependencies import get_current_user_code, get_event_bus
from ..errors import to_http_exception
from ..schemas.applications import (
    ApplicationIdResponse,
    ApplyRequest,
    EventApplicationItem,
    MyApplicationItem,
    RespondRequest,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["applications"])

CurrentUser = Annotated[str, Depends(get_current_user_code)]
Workflow = Annotated[ApplicationWorkflow, Depends(get_application_workflow)]
Bus = Annotated[EventBus, Depends(get_event_bus)]
Session = Annotated[ClientSession, Depends(get_mongo_session)]


@router.post("", status_code=status.HTTP_201_CREATED)
def apply_to_event(
    req: ApplyRequest,
    user_code: CurrentUser,
    workflow: Workflow,
    bus: Bus,
    session: Session,
    background_tasks: BackgroundTasks,
) -> ApplicationIdResponse:
    try:
        application = workflow.apply(user_code, req.event_id, req.message)
    except EventServiceError as exc:
        raise to_http_exception(exc) from exc
    commit_session(session)

    background_tasks.add_task(_publish_application_submitted_event, bus, application)
    return ApplicationIdResponse(application_id=application.id or "")


@router.post("/{application_id}/respond")
def respond_to_application(
    application_id: str,
    req: RespondRequest,
    user_code: CurrentUser,
    workflow: Workflow,
    bus: Bus,
    session: Session,
    background_tasks: BackgroundTasks,
) -> ApplicationIdResponse:
    """주최자의 승인/거절. 승인은 크레딧 1 차감과 커넥션/채팅 참가를 함께 처리한다."""
    try:
        application = workflow.respond(
            user_code, application_id, req.decision, req.owner_response
        )
    except EventServiceError as exc:
        raise to_http_exception(exc) from exc
    commit_session(session)

    background_tasks.add_task(
        _publish_application_decided_event, bus, application, user_code, req.decision
    )
    return ApplicationIdResponse(application_id=application_id)


@router.post("/{application_id}/cancel")
def cancel_application(
    application_id: str, user_code: CurrentUser, workflow: Workflow, session: Session
) -> ApplicationIdResponse:
    try:
        workflow.cancel(user_code, application_id)
    except EventServiceError as exc:
        raise to_http_exception(exc) from exc
    commit_session(session)
    return ApplicationIdResponse(application_id=application_id)


@router.get("/events/{event_id}")
def list_event_applications(
    event_id: str,
    user_code: CurrentUser,
    workflow: Workflow,
    status_filter: Annotated[ApplicationStatus | None, Query(alias="status")] = None,
) -> list[EventApplicationItem]:
    """주최자용 신청 목록."""
    try:
        items = workflow.list_for_event(user_code, event_id, status_filter)
    except EventServiceError as exc:
        raise to_http_exception(exc) from exc
    return [EventApplicationItem.from_domain(item) for item in items]


@router.get("/mine")
def list_my_applications(
    user_code: CurrentUser,
    workflow: Workflow,
    status_filter: Annotated[ApplicationStatus | None, Query(alias="status")] = None,
) -> list[MyApplicationItem]:
    return [
        MyApplicationItem.from_domain(item)
        for item in workflow.list_mine(user_code, status_filter)
    ]


# -------- Event Publishing Helpers --------


def _publish_application_submitted_event(
    bus: EventBus, application: EventApplication
) -> None:
    """application.submitted 이벤트 발행."""
    event_id = str(uuid.uuid4())
    event = ApplicationSubmittedEvent(
        id=event_id,
        type=ApplicationEventType.APPLICATION_SUBMITTED,
        timestamp=datetime.now(timezone.utc).isoformat(),
        source="event-service",
        version="1.0",
        application_id=application.id or "",
        event_id=application.event_id,
        applicant_code=application.applicant_code,
    )
    _publish(bus, asdict(event), event_id)


def _publish_application_decided_event(
    bus: EventBus,
    application: EventApplication,
    owner_code: str,
    decision: ApplicationDecision,
) -> None:
    """application.approved / application.rejected 이벤트 발행."""
    event_id = str(uuid.uuid4())
    event_type = (
        ApplicationEventType.APPLICATION_APPROVED
        if decision == ApplicationDecision.APPROVED
        else ApplicationEventType.APPLICATION_REJECTED
    )
    event = ApplicationDecidedEvent(
        id=event_id,
        type=event_type,
        timestamp=datetime.now(timezone.utc).isoformat(),
        source="event-service",
        version="1.0",
        application_id=application.id or "",
        event_id=application.event_id,
        applicant_code=application.applicant_code,
        owner_code=owner_code,
        owner_response=application.owner_response,
    )
    _publish(bus, asdict(event), event_id)


def _publish(bus: EventBus, payload: dict, event_id: str) -> None:
    wrapped = new_json_event(payload=payload, event_id=event_id)
    try:
        bus.publish(TOPIC_APPLICATION.base, wrapped)
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "failed to publish %s event: %s",
            payload.get("type"),
            exc,
            extra={"topic": TOPIC_APPLICATION.base},
        )
