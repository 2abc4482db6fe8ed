"""크레딧 원장 도메인 모델.

유저당 하나의 CreditAccount 가 잔액(available/held)과 누적치(purchased/used)를 가진다.
이벤트를 만들면 max_guests 만큼 available 에서 held 로 옮기는 CreditHold 가 생기고,
참가 승인마다 held 에서 1씩 소진되며, 이벤트 삭제 시 남은 held 가 available 로 돌아간다.
모든 변화는 CreditTransaction 으로 append-only 기록된다. 잔액 계산에 로그를 다시 읽지는 않는다.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel


class CreditTransactionType(StrEnum):
    PURCHASE = "purchase"
    DEDUCTION = "deduction"
    REFUND = "refund"
    INITIAL_GRANT = "initial_grant"
    HOLD = "hold"
    RELEASE = "release"


class HoldStatus(StrEnum):
    ACTIVE = "active"
    RELEASED = "released"


class CreditAccount(BaseModel):
    """유저 크레딧 잔액. 원장(CreditLedger)만 갱신한다."""

    id: str | None = None
    user_code: str
    available_credits: int
    held_credits: int
    total_purchased: int
    total_used: int
    created_at: datetime
    updated_at: datetime


class CreditHold(BaseModel):
    """이벤트 하나에 묶인 크레딧. 이벤트당 active 홀드는 최대 하나다."""

    id: str | None = None
    user_code: str
    event_id: str
    credits_held: int
    max_guests: int
    credits_used: int = 0
    status: HoldStatus = HoldStatus.ACTIVE
    released_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def remaining(self) -> int:
        return self.credits_held - self.credits_used


class CreditTransaction(BaseModel):
    """크레딧 변동 로그. amount 는 available 기준 부호를 가진다 (hold/deduction 은 음수)."""

    id: str | None = None
    user_code: str
    type: CreditTransactionType
    amount: int
    description: str
    related_event_id: str | None = None
    related_application_id: str | None = None
    payment_transaction_id: str | None = None
    created_at: datetime
    updated_at: datetime


class CreditBalance(BaseModel):
    """잔액 조회 결과. 계정이 없으면 모두 0 이다."""

    available_credits: int = 0
    held_credits: int = 0
    total_purchased: int = 0
    total_used: int = 0


class CreditSufficiency(BaseModel):
    sufficient: bool
    available_credits: int
    required_credits: int
    shortfall: int


class CreditPurchase(BaseModel):
    """구매 반영 결과. 같은 결제 건이 다시 들어오면 duplicate=True 로 이전 결과를 돌려준다."""

    credits_granted: int
    duplicate: bool = False
    transaction_id: str | None = None
