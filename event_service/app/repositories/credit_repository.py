"""크레딧 원장 레포지토리 구현체.

모든 쿼리는 요청 단위 ClientSession 으로 실행되어 같은 트랜잭션에 묶인다.
"""

from __future__ import annotations

from pymongo import ReturnDocument
from pymongo.client_session import ClientSession
from pymongo.database import Database

from common.mongo.types import parse_object_id

from ..models.credit import CreditAccount, CreditHold, CreditTransaction, HoldStatus
from .documents.credit_document import (
    CreditAccountDocument,
    CreditHoldDocument,
    CreditTransactionDocument,
)
from .interfaces import (
    CreditAccountRepositoryInterface,
    CreditHoldRepositoryInterface,
    CreditTransactionRepositoryInterface,
)


class CreditAccountRepository(CreditAccountRepositoryInterface):
    """credit_accounts 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._col = database["credit_accounts"]
        self._session = session

    def find_by_user_code(self, user_code: str) -> CreditAccount | None:
        doc = self._col.find_one({"user_code": user_code}, session=self._session)
        if not doc:
            return None
        return CreditAccountDocument.model_validate(doc).to_domain()

    def insert(self, account: CreditAccount) -> CreditAccount:
        payload = CreditAccountDocument.from_domain(account).to_mongo_record()
        result = self._col.insert_one(payload, session=self._session)
        return account.model_copy(update={"id": str(result.inserted_id)})

    def update_balances(self, account: CreditAccount) -> CreditAccount:
        doc = self._col.find_one_and_update(
            {"user_code": account.user_code},
            {
                "$set": {
                    "available_credits": account.available_credits,
                    "held_credits": account.held_credits,
                    "total_purchased": account.total_purchased,
                    "total_used": account.total_used,
                    "updated_at": account.updated_at,
                }
            },
            return_document=ReturnDocument.AFTER,
            session=self._session,
        )
        if not doc:
            raise LookupError(f"credit account not found: {account.user_code}")
        return CreditAccountDocument.model_validate(doc).to_domain()


class CreditHoldRepository(CreditHoldRepositoryInterface):
    """credit_holds 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._col = database["credit_holds"]
        self._session = session

    def find_active(self, user_code: str, event_id: str) -> CreditHold | None:
        doc = self._col.find_one(
            {"user_code": user_code, "event_id": event_id, "status": HoldStatus.ACTIVE},
            session=self._session,
        )
        if not doc:
            return None
        return CreditHoldDocument.model_validate(doc).to_domain()

    def insert(self, hold: CreditHold) -> CreditHold:
        payload = CreditHoldDocument.from_domain(hold).to_mongo_record()
        result = self._col.insert_one(payload, session=self._session)
        return hold.model_copy(update={"id": str(result.inserted_id)})

    def update(self, hold: CreditHold) -> CreditHold:
        object_id = parse_object_id(hold.id)
        if object_id is None:
            raise LookupError(f"invalid credit hold id: {hold.id!r}")
        self._col.update_one(
            {"_id": object_id},
            {
                "$set": {
                    "credits_used": hold.credits_used,
                    "status": hold.status,
                    "released_at": hold.released_at,
                    "updated_at": hold.updated_at,
                }
            },
            session=self._session,
        )
        return hold

    def list_active_by_user(self, user_code: str) -> list[CreditHold]:
        cursor = self._col.find(
            {"user_code": user_code, "status": HoldStatus.ACTIVE},
            sort=[("created_at", -1), ("_id", -1)],
            session=self._session,
        )
        return [CreditHoldDocument.model_validate(doc).to_domain() for doc in cursor]


class CreditTransactionRepository(CreditTransactionRepositoryInterface):
    """credit_transactions 컬렉션에 대한 MongoDB 접근 레이어. 삽입과 조회만 한다."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._col = database["credit_transactions"]
        self._session = session

    def create(self, tx: CreditTransaction) -> CreditTransaction:
        payload = CreditTransactionDocument.from_domain(tx).to_mongo_record()
        result = self._col.insert_one(payload, session=self._session)
        return tx.model_copy(update={"id": str(result.inserted_id)})

    def list_by_user(self, user_code: str, limit: int) -> list[CreditTransaction]:
        cursor = self._col.find(
            {"user_code": user_code},
            sort=[("created_at", -1), ("_id", -1)],
            limit=limit,
            session=self._session,
        )
        return [
            CreditTransactionDocument.model_validate(raw).to_domain() for raw in cursor
        ]

    def find_by_payment_transaction_id(
        self, payment_transaction_id: str
    ) -> CreditTransaction | None:
        doc = self._col.find_one(
            {"payment_transaction_id": payment_transaction_id},
            session=self._session,
        )
        if not doc:
            return None
        return CreditTransactionDocument.model_validate(doc).to_domain()
