"""노쇼 환불 API 라우터.

심사(review)와 대기 목록 조회는 admin 역할 유저만 가능하다.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, status
from pymongo.client_session import ClientSession

from common.eventbus.core import EventBus
from common.eventbus.helpers import new_json_event
from common.eventbus.topics import TOPIC_REFUND
from common.mongo.session import commit_session, get_mongo_session
from common.events.refund import (
    RefundEventType,
    RefundReviewedEvent,
    RefundSubmittedEvent,
)

from ...exceptions import EventServiceError
from ...models.refund import RefundRequest, RefundStatus
from ...services.refunds_service import RefundReviewService, get_refund_review_service
from ..dependencies import get_current_user_code, get_event_bus
from ..errors import to_http_exception
from ..schemas.refunds import (
    RefundRequestResponse,
    ReviewRefundRequest,
    ReviewRefundResponse,
    SubmitRefundRequest,
    SubmitRefundResponse,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/refunds", tags=["refunds"])

CurrentUser = Annotated[str, Depends(get_current_user_code)]
Refunds = Annotated[RefundReviewService, Depends(get_refund_review_service)]
Bus = Annotated[EventBus, Depends(get_event_bus)]
Session = Annotated[ClientSession, Depends(get_mongo_session)]


@router.post("", status_code=status.HTTP_201_CREATED)
def submit_refund_request(
    req: SubmitRefundRequest,
    user_code: CurrentUser,
    service: Refunds,
    bus: Bus,
    session: Session,
    background_tasks: BackgroundTasks,
) -> SubmitRefundResponse:
    """이벤트 주최자의 노쇼 환불 요청. 이미 시작한 이벤트의 승인된 참가자에 한한다."""
    try:
        request = service.submit(
            owner_code=user_code,
            event_id=req.event_id,
            application_id=req.application_id,
            participant_user_code=req.participant_user_code,
            reason=req.reason,
            evidence_images=req.evidence_images,
        )
    except EventServiceError as exc:
        raise to_http_exception(exc) from exc
    commit_session(session)

    background_tasks.add_task(_publish_refund_submitted_event, bus, request)
    return SubmitRefundResponse(refund_request_id=request.id or "")


@router.get("/mine")
def list_my_refund_requests(
    user_code: CurrentUser, service: Refunds
) -> list[RefundRequestResponse]:
    return [RefundRequestResponse.from_domain(r) for r in service.list_mine(user_code)]


@router.get("/pending")
def list_pending_refund_requests(
    user_code: CurrentUser, service: Refunds
) -> list[RefundRequestResponse]:
    try:
        requests = service.list_pending(user_code)
    except EventServiceError as exc:
        raise to_http_exception(exc) from exc
    return [RefundRequestResponse.from_domain(r) for r in requests]


@router.get("/{refund_request_id}")
def get_refund_request(
    refund_request_id: str, user_code: CurrentUser, service: Refunds
) -> RefundRequestResponse:
    try:
        request = service.get(user_code, refund_request_id)
    except EventServiceError as exc:
        raise to_http_exception(exc) from exc
    return RefundRequestResponse.from_domain(request)


@router.post("/{refund_request_id}/review")
def review_refund_request(
    refund_request_id: str,
    req: ReviewRefundRequest,
    user_code: CurrentUser,
    service: Refunds,
    bus: Bus,
    session: Session,
    background_tasks: BackgroundTasks,
) -> ReviewRefundResponse:
    """관리자 심사. 승인하면 요청자에게 크레딧을 되돌린다."""
    try:
        request = service.review(
            user_code, refund_request_id, req.decision, req.admin_notes
        )
    except EventServiceError as exc:
        raise to_http_exception(exc) from exc
    commit_session(session)

    background_tasks.add_task(_publish_refund_reviewed_event, bus, request)
    return ReviewRefundResponse(decision=req.decision)


# -------- Event Publishing Helpers --------


def _publish_refund_submitted_event(bus: EventBus, request: RefundRequest) -> None:
    """refund.submitted 이벤트 발행."""
    event_id = str(uuid.uuid4())
    event = RefundSubmittedEvent(
        id=event_id,
        type=RefundEventType.REFUND_SUBMITTED,
        timestamp=datetime.now(timezone.utc).isoformat(),
        source="event-service",
        version="1.0",
        refund_request_id=request.id or "",
        user_code=request.user_code,
        event_id=request.event_id,
        application_id=request.application_id,
        credits_to_refund=request.credits_to_refund,
    )
    _publish(bus, asdict(event), event_id)


def _publish_refund_reviewed_event(bus: EventBus, request: RefundRequest) -> None:
    """refund.reviewed 이벤트 발행."""
    event_id = str(uuid.uuid4())
    approved = request.status == RefundStatus.APPROVED
    event = RefundReviewedEvent(
        id=event_id,
        type=RefundEventType.REFUND_REVIEWED,
        timestamp=datetime.now(timezone.utc).isoformat(),
        source="event-service",
        version="1.0",
        refund_request_id=request.id or "",
        user_code=request.user_code,
        reviewed_by=request.reviewed_by or "",
        decision=request.status,
        credits_restored=request.credits_to_refund if approved else 0,
    )
    _publish(bus, asdict(event), event_id)


def _publish(bus: EventBus, payload: dict, event_id: str) -> None:
    wrapped = new_json_event(payload=payload, event_id=event_id)
    try:
        bus.publish(TOPIC_REFUND.base, wrapped)
    except Exception as exc:  # noqa: BLE001
        logger.error(
            "failed to publish %s event: %s",
            payload.get("type"),
            exc,
            extra={"topic": TOPIC_REFUND.base},
        )
