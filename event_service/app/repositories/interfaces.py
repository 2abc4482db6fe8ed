from __future__ import annotations

from typing import Protocol

from common.models.user import User

from ..models.application import ApplicationStatus, EventApplication
from ..models.audit import AuditEvent
from ..models.credit import CreditAccount, CreditHold, CreditTransaction
from ..models.event import ChatParticipant, Connection, Event, Room
from ..models.refund import RefundRequest, RefundStatus


class CreditAccountRepositoryInterface(Protocol):
    """credit_accounts 접근 계약.

    잔액 필드는 CreditLedger 만 update_balances 로 쓴다.
    """

    def find_by_user_code(
        self, user_code: str
    ) -> CreditAccount | None:  # pragma: no cover - Protocol
        ...

    def insert(
        self, account: CreditAccount
    ) -> CreditAccount:  # pragma: no cover - Protocol
        """user_code 가 이미 있으면 pymongo DuplicateKeyError."""
        ...

    def update_balances(
        self, account: CreditAccount
    ) -> CreditAccount:  # pragma: no cover - Protocol
        ...


class CreditHoldRepositoryInterface(Protocol):
    def find_active(
        self, user_code: str, event_id: str
    ) -> CreditHold | None:  # pragma: no cover - Protocol
        ...

    def insert(self, hold: CreditHold) -> CreditHold:  # pragma: no cover - Protocol
        ...

    def update(self, hold: CreditHold) -> CreditHold:  # pragma: no cover - Protocol
        """credits_used / status / released_at 을 갱신한다."""
        ...

    def list_active_by_user(
        self, user_code: str
    ) -> list[CreditHold]:  # pragma: no cover - Protocol
        ...


class CreditTransactionRepositoryInterface(Protocol):
    def create(
        self, tx: CreditTransaction
    ) -> CreditTransaction:  # pragma: no cover - Protocol
        ...

    def list_by_user(
        self, user_code: str, limit: int
    ) -> list[CreditTransaction]:  # pragma: no cover - Protocol
        """최신순."""
        ...

    def find_by_payment_transaction_id(
        self, payment_transaction_id: str
    ) -> CreditTransaction | None:  # pragma: no cover - Protocol
        ...


class RoomRepositoryInterface(Protocol):
    def find_by_id(self, room_id: str) -> Room | None:  # pragma: no cover - Protocol
        ...


class EventRepositoryInterface(Protocol):
    def find_by_id(self, event_id: str) -> Event | None:  # pragma: no cover - Protocol
        ...

    def insert(self, event: Event) -> Event:  # pragma: no cover - Protocol
        ...

    def deactivate(self, event_id: str) -> bool:  # pragma: no cover - Protocol
        ...

    def increment_chat_participant_count(
        self, event_id: str, delta: int
    ) -> None:  # pragma: no cover - Protocol
        ...


class ChatParticipantRepositoryInterface(Protocol):
    def find(
        self, event_id: str, user_code: str
    ) -> ChatParticipant | None:  # pragma: no cover - Protocol
        ...

    def insert(
        self, participant: ChatParticipant
    ) -> ChatParticipant:  # pragma: no cover - Protocol
        ...


class ApplicationRepositoryInterface(Protocol):
    def find_by_id(
        self, application_id: str
    ) -> EventApplication | None:  # pragma: no cover - Protocol
        ...

    def find_by_event_and_applicant(
        self, event_id: str, applicant_code: str
    ) -> EventApplication | None:  # pragma: no cover - Protocol
        ...

    def insert(
        self, application: EventApplication
    ) -> EventApplication:  # pragma: no cover - Protocol
        ...

    def update_status(
        self,
        application_id: str,
        status: ApplicationStatus,
        owner_response: str | None = None,
    ) -> EventApplication | None:  # pragma: no cover - Protocol
        ...

    def count_by_event_and_status(
        self, event_id: str, status: ApplicationStatus
    ) -> int:  # pragma: no cover - Protocol
        ...

    def list_by_event(
        self, event_id: str, status: ApplicationStatus | None = None
    ) -> list[EventApplication]:  # pragma: no cover - Protocol
        ...

    def list_by_applicant(
        self, applicant_code: str, status: ApplicationStatus | None = None
    ) -> list[EventApplication]:  # pragma: no cover - Protocol
        """최신순."""
        ...

    def cancel_pending_by_event(self, event_id: str) -> int:  # pragma: no cover - Protocol
        """이벤트의 pending 신청을 모두 cancelled 로 바꾸고 바뀐 개수를 반환한다."""
        ...


class ConnectionRepositoryInterface(Protocol):
    def find_between(
        self, user_a: str, user_b: str
    ) -> Connection | None:  # pragma: no cover - Protocol
        """두 유저 사이의 커넥션을 순서와 무관하게 찾는다."""
        ...

    def insert(self, connection: Connection) -> Connection:  # pragma: no cover - Protocol
        ...


class RefundRequestRepositoryInterface(Protocol):
    def find_by_id(
        self, refund_request_id: str
    ) -> RefundRequest | None:  # pragma: no cover - Protocol
        ...

    def find_by_application_id(
        self, application_id: str
    ) -> RefundRequest | None:  # pragma: no cover - Protocol
        ...

    def insert(
        self, request: RefundRequest
    ) -> RefundRequest:  # pragma: no cover - Protocol
        ...

    def update_review(
        self, request: RefundRequest
    ) -> RefundRequest:  # pragma: no cover - Protocol
        """status / admin_notes / reviewed_by / reviewed_at / processed_at 을 갱신한다."""
        ...

    def list_by_user(
        self, user_code: str
    ) -> list[RefundRequest]:  # pragma: no cover - Protocol
        """최신순."""
        ...

    def list_by_status(
        self, status: RefundStatus
    ) -> list[RefundRequest]:  # pragma: no cover - Protocol
        """오래된 순."""
        ...


class UserRepositoryInterface(Protocol):
    def find_by_user_code(
        self, user_code: str
    ) -> User | None:  # pragma: no cover - Protocol
        ...


class AuditEventRepositoryInterface(Protocol):
    def create(self, event: AuditEvent) -> None:  # pragma: no cover - Protocol
        ...
