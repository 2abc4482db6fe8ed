"""크레딧 원장 MongoDB 도큐먼트."""

from __future__ import annotations

from common.mongo.types import (
    BaseDocument,
    MongoDateTime,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.credit import CreditAccount, CreditHold, CreditTransaction


class CreditAccountDocument(BaseDocument):
    """credit_accounts 컬렉션 도큐먼트. user_code 당 하나."""

    user_code: str
    available_credits: int
    held_credits: int
    total_purchased: int
    total_used: int

    @classmethod
    def from_domain(cls, account: CreditAccount) -> "CreditAccountDocument":
        return cls.model_validate(build_document_data_from_domain(account))

    def to_domain(self) -> CreditAccount:
        return CreditAccount(
            id=from_object_id(self.id),
            **self.model_dump(exclude={"id"}),
        )


class CreditHoldDocument(BaseDocument):
    """credit_holds 컬렉션 도큐먼트."""

    user_code: str
    event_id: str
    credits_held: int
    max_guests: int
    credits_used: int
    status: str
    released_at: MongoDateTime | None = None

    @classmethod
    def from_domain(cls, hold: CreditHold) -> "CreditHoldDocument":
        return cls.model_validate(build_document_data_from_domain(hold))

    def to_domain(self) -> CreditHold:
        return CreditHold(
            id=from_object_id(self.id),
            **self.model_dump(exclude={"id"}),
        )


class CreditTransactionDocument(BaseDocument):
    """credit_transactions 컬렉션 도큐먼트. 삽입만 한다."""

    user_code: str
    type: str
    amount: int
    description: str
    related_event_id: str | None = None
    related_application_id: str | None = None
    payment_transaction_id: str | None = None

    @classmethod
    def from_domain(cls, tx: CreditTransaction) -> "CreditTransactionDocument":
        return cls.model_validate(build_document_data_from_domain(tx))

    def to_domain(self) -> CreditTransaction:
        return CreditTransaction(
            id=from_object_id(self.id),
            **self.model_dump(exclude={"id"}),
        )
