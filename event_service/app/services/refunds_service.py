"""노쇼 환불 요청/심사.

이벤트 주최자가 승인했던 참가자가 나타나지 않았을 때, 이미 시작된 이벤트에 한해
크레딧 1개 환불을 요청한다. admin 역할의 유저가 심사하며, 승인 시 원장의 restore 로
주최자에게 크레딧을 돌려준다.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import Depends
from pymongo.client_session import ClientSession
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from common.models.user import User
from common.mongo.client import get_database
from common.mongo.session import get_mongo_session

from ..config import AppConfig, get_config
from ..exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    InvalidStateError,
    NotFoundError,
)
from ..models.application import ApplicationStatus
from ..models.audit import AuditEventType, AuditSeverity
from ..models.refund import RefundDecision, RefundRequest, RefundStatus
from ..repositories.interfaces import (
    ApplicationRepositoryInterface,
    EventRepositoryInterface,
    RefundRequestRepositoryInterface,
    UserRepositoryInterface,
)
from ..repositories.refund_repository import RefundRequestRepository
from .applications_service import get_application_repository, get_user_repository
from .audit_trail import AuditTrail, get_audit_trail
from .chat_roster import get_event_repository
from .credit_ledger import CreditLedger, get_credit_ledger


logger = logging.getLogger(__name__)


class RefundReviewService:
    def __init__(
        self,
        refund_repo: RefundRequestRepositoryInterface,
        event_repo: EventRepositoryInterface,
        application_repo: ApplicationRepositoryInterface,
        user_repo: UserRepositoryInterface,
        ledger: CreditLedger,
        audit: AuditTrail,
        credits_per_refund: int = 1,
    ) -> None:
        self._refund_repo = refund_repo
        self._event_repo = event_repo
        self._application_repo = application_repo
        self._user_repo = user_repo
        self._ledger = ledger
        self._audit = audit
        self._credits_per_refund = credits_per_refund

    def submit(
        self,
        owner_code: str,
        event_id: str,
        application_id: str,
        participant_user_code: str,
        reason: str,
        evidence_images: list[str] | None = None,
    ) -> RefundRequest:
        """노쇼 환불 요청을 만든다.

        검사 순서: 이벤트 존재/소유 -> 신청 존재/승인 상태/일치 -> 중복 요청 -> 이벤트 시작 여부.
        시작 시각이 없는 이벤트는 '지난 이벤트'로 볼 수 없으므로 거부한다.
        """
        event = self._event_repo.find_by_id(event_id)
        if event is None:
            raise NotFoundError("Event not found")
        if event.owner_code != owner_code:
            raise ForbiddenError("Only event owner can request refunds")

        application = self._application_repo.find_by_id(application_id)
        if application is None:
            raise NotFoundError("Application not found")
        if application.status != ApplicationStatus.APPROVED:
            raise InvalidStateError("Can only request refund for approved applications")
        if application.event_id != event_id:
            raise InvalidRequestError("Application does not match event")
        if application.applicant_code != participant_user_code:
            raise InvalidRequestError(
                "Participant user ID does not match application"
            )

        if self._refund_repo.find_by_application_id(application_id) is not None:
            raise ConflictError("Refund request already exists for this application")

        now = datetime.now(timezone.utc)
        if event.start_time is None or event.start_time > now:
            raise ForbiddenError("Cannot request refund for future events")

        cleaned_reason = reason.strip()
        if not cleaned_reason:
            raise InvalidRequestError("Refund reason is required")

        try:
            request = self._refund_repo.insert(
                RefundRequest(
                    user_code=owner_code,
                    event_id=event_id,
                    application_id=application_id,
                    participant_user_code=participant_user_code,
                    credits_to_refund=self._credits_per_refund,
                    reason=cleaned_reason,
                    evidence_images=list(evidence_images or []),
                    status=RefundStatus.PENDING,
                    submitted_at=now,
                    created_at=now,
                    updated_at=now,
                )
            )
        except DuplicateKeyError as exc:
            # 여기서 요청 트랜잭션은 서버 쪽에서 이미 중단되었다
            raise ConflictError(
                "Refund request already exists for this application"
            ) from exc

        self._audit.record(
            AuditEventType.REFUND_REQUEST_SUBMITTED,
            owner_code,
            metadata={
                "refund_request_id": request.id,
                "event_id": event_id,
                "application_id": application_id,
                "participant_user_code": participant_user_code,
            },
            severity=AuditSeverity.MEDIUM,
        )
        logger.info(
            "refund request submitted",
            extra={
                "user_code": owner_code,
                "event_id": event_id,
                "application_id": application_id,
                "refund_request_id": request.id,
            },
        )
        return request

    def review(
        self,
        admin_code: str,
        refund_request_id: str,
        decision: RefundDecision,
        admin_notes: str | None = None,
    ) -> RefundRequest:
        """pending 요청을 승인/거절한다. 승인 시 요청자에게 credits_to_refund 만큼 되돌린다."""
        self._require_admin(admin_code)

        request = self._refund_repo.find_by_id(refund_request_id)
        if request is None:
            raise NotFoundError("Refund request not found")
        if request.status != RefundStatus.PENDING:
            raise InvalidStateError("Refund request is not in pending status")

        now = datetime.now(timezone.utc)
        approved = decision == RefundDecision.APPROVED
        notes = admin_notes.strip() if admin_notes else None
        reviewed = self._refund_repo.update_review(
            request.model_copy(
                update={
                    "status": RefundStatus(decision.value),
                    "admin_notes": notes or None,
                    "reviewed_by": admin_code,
                    "reviewed_at": now,
                    "processed_at": now if approved else None,
                    "updated_at": now,
                }
            )
        )

        if approved:
            self._ledger.restore(
                request.user_code,
                request.credits_to_refund,
                event_id=request.event_id,
                application_id=request.application_id,
            )

        self._audit.record(
            AuditEventType.REFUND_REQUEST_REVIEWED,
            admin_code,
            metadata={
                "refund_request_id": refund_request_id,
                "decision": decision.value,
                "requester_user_code": request.user_code,
                "credits_restored": request.credits_to_refund if approved else 0,
            },
            severity=AuditSeverity.MEDIUM,
        )
        logger.info(
            "refund request %s",
            decision.value,
            extra={
                "user_code": admin_code,
                "refund_request_id": refund_request_id,
                "amount": request.credits_to_refund if approved else 0,
            },
        )
        return reviewed

    def list_mine(self, user_code: str) -> list[RefundRequest]:
        return self._refund_repo.list_by_user(user_code)

    def list_pending(self, admin_code: str) -> list[RefundRequest]:
        """심사 대기 중인 요청 (오래된 순). admin 만 조회할 수 있다."""
        self._require_admin(admin_code)
        return self._refund_repo.list_by_status(RefundStatus.PENDING)

    def get(self, user_code: str, refund_request_id: str) -> RefundRequest:
        """요청자 본인 또는 admin 만 조회할 수 있다."""
        request = self._refund_repo.find_by_id(refund_request_id)
        if request is None:
            raise NotFoundError("Refund request not found")
        if request.user_code != user_code:
            self._require_admin(user_code)
        return request

    def _require_admin(self, user_code: str) -> User:
        user = self._user_repo.find_by_user_code(user_code)
        if user is None or not user.is_admin:
            raise ForbiddenError("Admin role required")
        return user


def get_refund_request_repository(
    db: Database = Depends(get_database),
    session: ClientSession = Depends(get_mongo_session),
) -> RefundRequestRepositoryInterface:
    """FastAPI DI용 RefundRequestRepository 팩토리."""

    return RefundRequestRepository(db, session)


def get_refund_review_service(
    refund_repo: RefundRequestRepositoryInterface = Depends(
        get_refund_request_repository
    ),
    event_repo: EventRepositoryInterface = Depends(get_event_repository),
    application_repo: ApplicationRepositoryInterface = Depends(
        get_application_repository
    ),
    user_repo: UserRepositoryInterface = Depends(get_user_repository),
    ledger: CreditLedger = Depends(get_credit_ledger),
    audit: AuditTrail = Depends(get_audit_trail),
    config: AppConfig = Depends(get_config),
) -> RefundReviewService:
    """FastAPI DI용 RefundReviewService 팩토리."""

    return RefundReviewService(
        refund_repo=refund_repo,
        event_repo=event_repo,
        application_repo=application_repo,
        user_repo=user_repo,
        ledger=ledger,
        audit=audit,
        credits_per_refund=config.refunds.credits_per_refund,
    )
