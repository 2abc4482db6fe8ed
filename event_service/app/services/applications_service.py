"""이벤트 참가 신청 워크플로.

신청(apply) -> 주최자 응답(respond) 또는 신청자 취소(cancel).
승인은 한 트랜잭션 안에서 상태 변경, 커넥션 생성, 크레딧 1 차감, 채팅 명단 추가를 함께 수행한다.
중간 단계가 실패하면 예외가 요청 트랜잭션을 중단시켜 아무 것도 남지 않는다.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

from fastapi import Depends
from pymongo.client_session import ClientSession
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from common.models.user import User
from common.mongo.client import get_database
from common.mongo.session import get_mongo_session

from ..exceptions import (
    AgeRestrictedError,
    ConflictError,
    EventFullError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)
from ..models.application import (
    ApplicantSummary,
    ApplicationDecision,
    ApplicationStatus,
    ApplicationWithApplicant,
    ApplicationWithEvent,
    EventApplication,
)
from ..models.audit import AuditEventType
from ..models.event import ChatParticipantRole, Connection, Event
from ..repositories.application_repository import (
    ApplicationRepository,
    ConnectionRepository,
)
from ..repositories.interfaces import (
    ApplicationRepositoryInterface,
    ConnectionRepositoryInterface,
    EventRepositoryInterface,
    UserRepositoryInterface,
)
from ..repositories.user_repository import UserRepository
from .audit_trail import AuditTrail, get_audit_trail
from .chat_roster import ChatRoster, get_chat_roster, get_event_repository
from .credit_ledger import CreditLedger, get_credit_ledger


logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.25


def calculate_age(date_of_birth: datetime, now: datetime | None = None) -> int:
    """만 나이. 윤년을 평균 365.25일로 근사한다."""
    now = now or datetime.now(timezone.utc)
    if date_of_birth.tzinfo is None:
        date_of_birth = date_of_birth.replace(tzinfo=timezone.utc)
    elapsed_days = (now - date_of_birth).total_seconds() / 86400
    return math.floor(elapsed_days / DAYS_PER_YEAR)


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ApplicationWorkflow:
    """참가 신청 상태 전이와 그에 따른 크레딧/커넥션/채팅 처리를 담당한다."""

    def __init__(
        self,
        application_repo: ApplicationRepositoryInterface,
        event_repo: EventRepositoryInterface,
        user_repo: UserRepositoryInterface,
        connection_repo: ConnectionRepositoryInterface,
        ledger: CreditLedger,
        roster: ChatRoster,
        audit: AuditTrail,
    ) -> None:
        self._application_repo = application_repo
        self._event_repo = event_repo
        self._user_repo = user_repo
        self._connection_repo = connection_repo
        self._ledger = ledger
        self._roster = roster
        self._audit = audit

    def apply(
        self, applicant_code: str, event_id: str, message: str | None = None
    ) -> EventApplication:
        event = self._event_repo.find_by_id(event_id)
        if event is None or not event.is_active:
            raise NotFoundError("Event not found or inactive")

        if event.owner_code == applicant_code:
            raise ForbiddenError("Cannot apply to your own event")

        if (
            self._application_repo.find_by_event_and_applicant(event_id, applicant_code)
            is not None
        ):
            raise ConflictError("Already applied to this event")

        if event.min_age is not None or event.max_age is not None:
            self._check_age(applicant_code, event)

        self._check_capacity(event_id, event.max_guests)

        now = datetime.now(timezone.utc)
        try:
            application = self._application_repo.insert(
                EventApplication(
                    event_id=event_id,
                    applicant_code=applicant_code,
                    status=ApplicationStatus.PENDING,
                    message=_clean_text(message),
                    event_title=event.title,
                    event_start_time=event.start_time,
                    room_title=event.room_title,
                    created_at=now,
                    updated_at=now,
                )
            )
        except DuplicateKeyError as exc:
            # 여기서 요청 트랜잭션은 서버 쪽에서 이미 중단되었다
            raise ConflictError("Already applied to this event") from exc

        self._audit.record(
            AuditEventType.APPLICATION_SUBMITTED,
            applicant_code,
            metadata={"event_id": event_id, "application_id": application.id},
        )
        logger.info(
            "application submitted",
            extra={
                "user_code": applicant_code,
                "event_id": event_id,
                "application_id": application.id,
            },
        )
        return application

    def respond(
        self,
        owner_code: str,
        application_id: str,
        decision: ApplicationDecision,
        owner_response: str | None = None,
    ) -> EventApplication:
        application = self._application_repo.find_by_id(application_id)
        if application is None:
            raise NotFoundError("Application not found")

        event = self._event_repo.find_by_id(application.event_id)
        if event is None:
            raise NotFoundError("Event not found")

        if event.owner_code != owner_code:
            raise ForbiddenError("Only event owner can respond to applications")

        if application.status != ApplicationStatus.PENDING:
            raise InvalidStateError("Can only respond to pending applications")

        if decision == ApplicationDecision.APPROVED:
            self._check_capacity(application.event_id, event.max_guests)

        updated = self._application_repo.update_status(
            application_id,
            ApplicationStatus(decision.value),
            owner_response=_clean_text(owner_response),
        )
        if updated is None:
            raise NotFoundError("Application not found")

        if decision == ApplicationDecision.APPROVED:
            self._connect(application.event_id, owner_code, application.applicant_code)
            self._ledger.deduct(owner_code, application.event_id, application_id)
            self._roster.join(
                application.event_id,
                [
                    (owner_code, ChatParticipantRole.OWNER, event.created_at),
                    (application.applicant_code, ChatParticipantRole.PARTICIPANT, None),
                ],
            )

        logger.info(
            "application %s",
            decision.value,
            extra={
                "user_code": owner_code,
                "event_id": application.event_id,
                "application_id": application_id,
            },
        )
        return updated

    def cancel(self, applicant_code: str, application_id: str) -> EventApplication:
        application = self._application_repo.find_by_id(application_id)
        if application is None:
            raise NotFoundError("Application not found")

        if application.applicant_code != applicant_code:
            raise ForbiddenError("Only applicant can cancel their application")

        if application.status != ApplicationStatus.PENDING:
            raise InvalidStateError("Can only cancel pending applications")

        updated = self._application_repo.update_status(
            application_id, ApplicationStatus.CANCELLED
        )
        if updated is None:
            raise NotFoundError("Application not found")

        logger.info(
            "application cancelled",
            extra={
                "user_code": applicant_code,
                "event_id": application.event_id,
                "application_id": application_id,
            },
        )
        return updated

    def list_for_event(
        self,
        owner_code: str,
        event_id: str,
        status: ApplicationStatus | None = None,
    ) -> list[ApplicationWithApplicant]:
        """주최자용: 이벤트의 신청 목록과 신청자 프로필."""
        event = self._event_repo.find_by_id(event_id)
        if event is None:
            raise NotFoundError("Event not found")
        if event.owner_code != owner_code:
            raise ForbiddenError("Only event owner can view applications")

        items: list[ApplicationWithApplicant] = []
        for application in self._application_repo.list_by_event(event_id, status):
            user = self._user_repo.find_by_user_code(application.applicant_code)
            items.append(
                ApplicationWithApplicant(
                    application=application,
                    applicant=_to_applicant_summary(user) if user else None,
                )
            )
        return items

    def list_mine(
        self, applicant_code: str, status: ApplicationStatus | None = None
    ) -> list[ApplicationWithEvent]:
        """신청자용: 내 신청 목록(최신순)과 각 이벤트. 이벤트가 사라진 신청은 건너뛴다."""
        items: list[ApplicationWithEvent] = []
        for application in self._application_repo.list_by_applicant(
            applicant_code, status
        ):
            event = self._event_repo.find_by_id(application.event_id)
            if event is None:
                continue
            items.append(ApplicationWithEvent(application=application, event=event))
        return items

    # 내부 util -------------------------------------------------------------
    def _check_age(self, applicant_code: str, event: Event) -> None:
        user = self._user_repo.find_by_user_code(applicant_code)
        if user is None or user.date_of_birth is None:
            raise AgeRestrictedError("Date of birth required for age-restricted events")

        age = calculate_age(user.date_of_birth)
        if event.min_age is not None and age < event.min_age:
            raise AgeRestrictedError(
                f"Must be at least {event.min_age} years old to apply"
            )
        if event.max_age is not None and age > event.max_age:
            raise AgeRestrictedError(
                f"Must be {event.max_age} years old or younger to apply"
            )

    def _check_capacity(self, event_id: str, max_guests: int) -> None:
        approved = self._application_repo.count_by_event_and_status(
            event_id, ApplicationStatus.APPROVED
        )
        if approved >= max_guests:
            raise EventFullError("Event is at full capacity")

    def _connect(
        self, event_id: str, owner_code: str, applicant_code: str
    ) -> Connection:
        existing = self._connection_repo.find_between(owner_code, applicant_code)
        if existing is not None:
            return existing

        owner = self._user_repo.find_by_user_code(owner_code)
        applicant = self._user_repo.find_by_user_code(applicant_code)
        now = datetime.now(timezone.utc)
        connection = self._connection_repo.insert(
            Connection(
                user1_code=owner_code,
                user2_code=applicant_code,
                connected_via_event_id=event_id,
                user1_display_name=owner.name if owner else None,
                user2_display_name=applicant.name if applicant else None,
                user1_profile_image=(owner.profile_image or None) if owner else None,
                user2_profile_image=(applicant.profile_image or None)
                if applicant
                else None,
                created_at=now,
                updated_at=now,
            )
        )
        self._audit.record(
            AuditEventType.CONNECTION_CREATED,
            owner_code,
            metadata={
                "connection_id": connection.id,
                "other_user_code": applicant_code,
                "event_id": event_id,
            },
        )
        return connection


def _to_applicant_summary(user: User) -> ApplicantSummary:
    return ApplicantSummary(
        user_code=user.user_code,
        name=user.name,
        profile_image=user.profile_image or None,
    )


def get_application_repository(
    db: Database = Depends(get_database),
    session: ClientSession = Depends(get_mongo_session),
) -> ApplicationRepositoryInterface:
    """FastAPI DI용 ApplicationRepository 팩토리."""

    return ApplicationRepository(db, session)


def get_connection_repository(
    db: Database = Depends(get_database),
    session: ClientSession = Depends(get_mongo_session),
) -> ConnectionRepositoryInterface:
    """FastAPI DI용 ConnectionRepository 팩토리."""

    return ConnectionRepository(db, session)


def get_user_repository(
    db: Database = Depends(get_database),
    session: ClientSession = Depends(get_mongo_session),
) -> UserRepositoryInterface:
    """FastAPI DI용 UserRepository 팩토리."""

    return UserRepository(db, session)


def get_application_workflow(
    application_repo: ApplicationRepositoryInterface = Depends(
        get_application_repository
    ),
    event_repo: EventRepositoryInterface = Depends(get_event_repository),
    user_repo: UserRepositoryInterface = Depends(get_user_repository),
    connection_repo: ConnectionRepositoryInterface = Depends(get_connection_repository),
    ledger: CreditLedger = Depends(get_credit_ledger),
    roster: ChatRoster = Depends(get_chat_roster),
    audit: AuditTrail = Depends(get_audit_trail),
) -> ApplicationWorkflow:
    """FastAPI DI용 ApplicationWorkflow 팩토리."""

    return ApplicationWorkflow(
        application_repo=application_repo,
        event_repo=event_repo,
        user_repo=user_repo,
        connection_repo=connection_repo,
        ledger=ledger,
        roster=roster,
        audit=audit,
    )
