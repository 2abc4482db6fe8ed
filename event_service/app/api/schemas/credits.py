from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ...models.credit import CreditHold, CreditTransaction


class InitializeCreditsResponse(BaseModel):
    success: bool = True
    credits_granted: int


class CreditBalanceResponse(BaseModel):
    available_credits: int
    held_credits: int
    total_purchased: int
    total_used: int


class CreditSufficiencyResponse(BaseModel):
    sufficient: bool
    available_credits: int
    required_credits: int
    shortfall: int


class HoldCreditsRequest(BaseModel):
    event_id: str
    max_guests: int = Field(ge=1)
    event_title: str | None = None


class HoldCreditsResponse(BaseModel):
    success: bool = True
    credits_held: int


class DeductCreditRequest(BaseModel):
    event_id: str
    application_id: str


class DeductCreditResponse(BaseModel):
    success: bool = True
    credits_deducted: int


class ReleaseCreditsRequest(BaseModel):
    event_id: str
    description: str | None = None
    throw_on_missing_hold: bool = True


class ReleaseCreditsResponse(BaseModel):
    success: bool = True
    credits_released: int


class PurchaseCreditsRequest(BaseModel):
    """결제 게이트웨이 -> 내부 API. payment_transaction_id 기준으로 멱등하다."""

    user_code: str
    credits: int = Field(ge=1)
    payment_transaction_id: str | None = None
    amount_cents: int | None = Field(default=None, ge=0)


class PurchaseCreditsResponse(BaseModel):
    success: bool = True
    credits_granted: int
    duplicate: bool = False


class CreditTransactionResponse(BaseModel):
    id: str | None
    type: str
    amount: int
    description: str
    related_event_id: str | None
    related_application_id: str | None
    created_at: datetime

    @classmethod
    def from_domain(cls, tx: CreditTransaction) -> "CreditTransactionResponse":
        return cls(
            id=tx.id,
            type=tx.type,
            amount=tx.amount,
            description=tx.description,
            related_event_id=tx.related_event_id,
            related_application_id=tx.related_application_id,
            created_at=tx.created_at,
        )


class CreditHoldResponse(BaseModel):
    id: str | None
    event_id: str
    credits_held: int
    credits_used: int
    max_guests: int
    status: str
    created_at: datetime

    @classmethod
    def from_domain(cls, hold: CreditHold) -> "CreditHoldResponse":
        return cls(
            id=hold.id,
            event_id=hold.event_id,
            credits_held=hold.credits_held,
            credits_used=hold.credits_used,
            max_guests=hold.max_guests,
            status=hold.status,
            created_at=hold.created_at,
        )
