"""크레딧 원장 서비스.

유저 잔액(available/held/total_purchased/total_used)과 이벤트별 홀드, 변동 로그를 관리한다.
잔액 필드를 쓰는 곳은 이 클래스뿐이다. 신청 승인/이벤트 삭제/환불 승인은 모두
같은 요청 트랜잭션 안에서 이 원장을 호출한다.

    hold    : available -= n, held += n        (이벤트 생성)
    deduct  : held -= 1, total_used += 1        (참가 승인)
    release : held -= 남은 수, available += 남은 수 (이벤트 삭제/만료)
    restore : available += n, total_used -= n   (노쇼 환불 승인)
    purchase: available += n, total_purchased += n
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import Depends
from pymongo.client_session import ClientSession
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from common.mongo.client import get_database
from common.mongo.session import get_mongo_session

from ..config import AppConfig, get_config
from ..exceptions import (
    ConflictError,
    HoldExhaustedError,
    InsufficientCreditsError,
    InvalidRequestError,
    LedgerIntegrityError,
    NoActiveHoldError,
    NotFoundError,
)
from ..models.credit import (
    CreditAccount,
    CreditBalance,
    CreditHold,
    CreditPurchase,
    CreditSufficiency,
    CreditTransaction,
    CreditTransactionType,
    HoldStatus,
)
from ..repositories.credit_repository import (
    CreditAccountRepository,
    CreditHoldRepository,
    CreditTransactionRepository,
)
from ..repositories.interfaces import (
    CreditAccountRepositoryInterface,
    CreditHoldRepositoryInterface,
    CreditTransactionRepositoryInterface,
)


logger = logging.getLogger(__name__)

DEFAULT_WELCOME_GRANT = 4
DEFAULT_HISTORY_LIMIT = 50


class CreditLedger:
    """크레딧 hold/deduct/release/restore 원장."""

    def __init__(
        self,
        account_repo: CreditAccountRepositoryInterface,
        hold_repo: CreditHoldRepositoryInterface,
        transaction_repo: CreditTransactionRepositoryInterface,
        welcome_grant: int = DEFAULT_WELCOME_GRANT,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        self._account_repo = account_repo
        self._hold_repo = hold_repo
        self._transaction_repo = transaction_repo
        self._welcome_grant = welcome_grant
        self._history_limit = history_limit

    # 조회 -----------------------------------------------------------------
    def balance(self, user_code: str) -> CreditBalance:
        """잔액 조회. 계정이 없으면 모두 0 을 돌려주고 실패하지 않는다."""
        account = self._account_repo.find_by_user_code(user_code)
        if account is None:
            return CreditBalance()
        return CreditBalance(
            available_credits=account.available_credits,
            held_credits=account.held_credits,
            total_purchased=account.total_purchased,
            total_used=account.total_used,
        )

    def sufficient_for(self, user_code: str, required_credits: int) -> CreditSufficiency:
        account = self._account_repo.find_by_user_code(user_code)
        available = account.available_credits if account else 0
        return CreditSufficiency(
            sufficient=available >= required_credits,
            available_credits=available,
            required_credits=required_credits,
            shortfall=max(0, required_credits - available),
        )

    def list_transactions(
        self, user_code: str, limit: int | None = None
    ) -> list[CreditTransaction]:
        """최신순 변동 로그."""
        if limit is None or limit <= 0:
            limit = self._history_limit
        return self._transaction_repo.list_by_user(user_code, limit)

    def list_active_holds(self, user_code: str) -> list[CreditHold]:
        return self._hold_repo.list_active_by_user(user_code)

    # 변경 -----------------------------------------------------------------
    def initialize(self, user_code: str) -> int:
        """가입 보너스를 지급하며 계정을 만든다. 지급한 크레딧 수를 반환한다."""
        if self._account_repo.find_by_user_code(user_code) is not None:
            raise ConflictError("User already has credit record")

        now = datetime.now(timezone.utc)
        account = CreditAccount(
            user_code=user_code,
            available_credits=self._welcome_grant,
            held_credits=0,
            total_purchased=self._welcome_grant,
            total_used=0,
            created_at=now,
            updated_at=now,
        )
        try:
            self._account_repo.insert(account)
        except DuplicateKeyError as exc:
            # 여기서 요청 트랜잭션은 서버 쪽에서 이미 중단되었다
            raise ConflictError("User already has credit record") from exc

        self._log_transaction(
            user_code=user_code,
            tx_type=CreditTransactionType.INITIAL_GRANT,
            amount=self._welcome_grant,
            description=(
                f"Welcome bonus - {self._welcome_grant} free connection credits"
            ),
        )
        logger.info(
            "credit account initialized",
            extra={"user_code": user_code, "amount": self._welcome_grant},
        )
        return self._welcome_grant

    def hold(
        self,
        user_code: str,
        event_id: str,
        max_guests: int,
        event_title: str | None = None,
    ) -> int:
        """이벤트 정원만큼 크레딧을 묶는다. 묶은 크레딧 수를 반환한다."""
        if max_guests < 1:
            raise InvalidRequestError("max_guests must be at least 1")

        if self._hold_repo.find_active(user_code, event_id) is not None:
            raise ConflictError("Event already has active credit hold")

        account = self._account_repo.find_by_user_code(user_code)
        available = account.available_credits if account else 0
        if account is None or available < max_guests:
            raise InsufficientCreditsError(required=max_guests, available=available)

        now = datetime.now(timezone.utc)
        self._save_balances(
            account,
            available_credits=account.available_credits - max_guests,
            held_credits=account.held_credits + max_guests,
            now=now,
        )
        try:
            self._hold_repo.insert(
                CreditHold(
                    user_code=user_code,
                    event_id=event_id,
                    credits_held=max_guests,
                    max_guests=max_guests,
                    credits_used=0,
                    status=HoldStatus.ACTIVE,
                    created_at=now,
                    updated_at=now,
                )
            )
        except DuplicateKeyError as exc:
            # 여기서 요청 트랜잭션은 서버 쪽에서 이미 중단되었다
            raise ConflictError("Event already has active credit hold") from exc

        self._log_transaction(
            user_code=user_code,
            tx_type=CreditTransactionType.HOLD,
            amount=-max_guests,
            description=(
                f'Credits held for event "{event_title or event_id}" '
                f"({max_guests} credits)"
            ),
            related_event_id=event_id,
        )
        logger.info(
            "credits held",
            extra={"user_code": user_code, "event_id": event_id, "amount": max_guests},
        )
        return max_guests

    def deduct(self, user_code: str, event_id: str, application_id: str) -> int:
        """승인된 참가자 한 명분을 홀드에서 소진한다. 항상 1 을 반환한다."""
        hold = self._hold_repo.find_active(user_code, event_id)
        if hold is None:
            raise NoActiveHoldError("No active credit hold found for this event")
        if hold.credits_used >= hold.credits_held:
            raise HoldExhaustedError("All held credits for this event are already used")

        account = self._account_repo.find_by_user_code(user_code)
        if account is None:
            raise NotFoundError("User credit record not found")

        now = datetime.now(timezone.utc)
        self._hold_repo.update(
            hold.model_copy(update={"credits_used": hold.credits_used + 1, "updated_at": now})
        )
        self._save_balances(
            account,
            held_credits=account.held_credits - 1,
            total_used=account.total_used + 1,
            now=now,
        )
        self._log_transaction(
            user_code=user_code,
            tx_type=CreditTransactionType.DEDUCTION,
            amount=-1,
            description="Credit deducted for approved participant",
            related_event_id=event_id,
            related_application_id=application_id,
        )
        logger.info(
            "credit deducted",
            extra={
                "user_code": user_code,
                "event_id": event_id,
                "application_id": application_id,
                "amount": 1,
            },
        )
        return 1

    def release(
        self,
        user_code: str,
        event_id: str,
        description: str | None = None,
        throw_on_missing_hold: bool = True,
        released_from: str = "cancelled/expired",
    ) -> int:
        """쓰이지 않은 홀드 크레딧을 돌려주고 홀드를 닫는다. 돌려준 크레딧 수를 반환한다.

        description 이 없으면 released_from("deleted" 등)으로 기본 문구를 만든다.
        active 홀드가 없으면 throw_on_missing_hold 에 따라 NoActiveHoldError 또는 0.
        같은 이벤트에 두 번 호출해도 두 번째는 아무 것도 바꾸지 않는다.
        """
        hold = self._hold_repo.find_active(user_code, event_id)
        if hold is None:
            if throw_on_missing_hold:
                raise NoActiveHoldError("No active credit hold found for this event")
            return 0

        unused = hold.credits_held - hold.credits_used
        now = datetime.now(timezone.utc)

        if unused > 0:
            account = self._account_repo.find_by_user_code(user_code)
            if account is None:
                raise NotFoundError("User credit record not found")
            self._save_balances(
                account,
                available_credits=account.available_credits + unused,
                held_credits=account.held_credits - unused,
                now=now,
            )
            self._log_transaction(
                user_code=user_code,
                tx_type=CreditTransactionType.RELEASE,
                amount=unused,
                description=description
                or (
                    f"Credits released from {released_from} event "
                    f"({unused} credits)"
                ),
                related_event_id=event_id,
            )

        self._hold_repo.update(
            hold.model_copy(
                update={
                    "status": HoldStatus.RELEASED,
                    "released_at": now,
                    "updated_at": now,
                }
            )
        )
        logger.info(
            "credit hold released",
            extra={"user_code": user_code, "event_id": event_id, "amount": unused},
        )
        return unused

    def restore(
        self,
        user_code: str,
        amount: int,
        event_id: str | None = None,
        application_id: str | None = None,
        description: str | None = None,
    ) -> int:
        """노쇼 환불 등으로 크레딧을 되돌린다. 계정이 없으면 만든다."""
        if amount < 1:
            raise InvalidRequestError("amount must be at least 1")

        now = datetime.now(timezone.utc)
        account = self._get_or_create_account(user_code, now)
        self._save_balances(
            account,
            available_credits=account.available_credits + amount,
            total_used=max(0, account.total_used - amount),
            now=now,
        )
        self._log_transaction(
            user_code=user_code,
            tx_type=CreditTransactionType.REFUND,
            amount=amount,
            description=description
            or f"Refund for no-show participant ({amount} credits)",
            related_event_id=event_id,
            related_application_id=application_id,
        )
        logger.info(
            "credits restored",
            extra={
                "user_code": user_code,
                "event_id": event_id,
                "application_id": application_id,
                "amount": amount,
            },
        )
        return amount

    def purchase(
        self,
        user_code: str,
        credits: int,
        payment_transaction_id: str | None = None,
        amount_cents: int | None = None,
        description: str | None = None,
    ) -> CreditPurchase:
        """결제 완료된 크레딧을 반영한다.

        payment_transaction_id 가 같은 요청이 다시 오면 잔액을 바꾸지 않고
        이전 결과를 duplicate=True 로 돌려준다.
        """
        if credits < 1:
            raise InvalidRequestError("credits must be at least 1")

        if payment_transaction_id:
            existing = self._transaction_repo.find_by_payment_transaction_id(
                payment_transaction_id
            )
            if existing is not None:
                if existing.user_code != user_code:
                    raise ConflictError(
                        "Payment transaction already applied to another user"
                    )
                logger.info(
                    "duplicate credit purchase ignored",
                    extra={"user_code": user_code, "amount": existing.amount},
                )
                return CreditPurchase(
                    credits_granted=existing.amount,
                    duplicate=True,
                    transaction_id=existing.id,
                )

        if description is None:
            description = f"Purchased {credits} credits"
            if amount_cents is not None:
                description += f" for ${amount_cents / 100:.2f}"

        now = datetime.now(timezone.utc)
        account = self._get_or_create_account(user_code, now)
        self._save_balances(
            account,
            available_credits=account.available_credits + credits,
            total_purchased=account.total_purchased + credits,
            now=now,
        )
        tx = self._log_transaction(
            user_code=user_code,
            tx_type=CreditTransactionType.PURCHASE,
            amount=credits,
            description=description,
            payment_transaction_id=payment_transaction_id,
        )
        logger.info(
            "credits purchased", extra={"user_code": user_code, "amount": credits}
        )
        return CreditPurchase(credits_granted=credits, transaction_id=tx.id)

    # 내부 util -------------------------------------------------------------
    def _get_or_create_account(self, user_code: str, now: datetime) -> CreditAccount:
        account = self._account_repo.find_by_user_code(user_code)
        if account is not None:
            return account
        return self._account_repo.insert(
            CreditAccount(
                user_code=user_code,
                available_credits=0,
                held_credits=0,
                total_purchased=0,
                total_used=0,
                created_at=now,
                updated_at=now,
            )
        )

    def _save_balances(
        self,
        account: CreditAccount,
        *,
        now: datetime,
        available_credits: int | None = None,
        held_credits: int | None = None,
        total_purchased: int | None = None,
        total_used: int | None = None,
    ) -> CreditAccount:
        updated = account.model_copy(
            update={
                "available_credits": (
                    account.available_credits
                    if available_credits is None
                    else available_credits
                ),
                "held_credits": (
                    account.held_credits if held_credits is None else held_credits
                ),
                "total_purchased": (
                    account.total_purchased
                    if total_purchased is None
                    else total_purchased
                ),
                "total_used": account.total_used if total_used is None else total_used,
                "updated_at": now,
            }
        )
        if updated.available_credits < 0 or updated.held_credits < 0:
            logger.error(
                "ledger write would make balance negative",
                extra={"user_code": account.user_code},
            )
            raise LedgerIntegrityError(
                f"credit balance would become negative for {account.user_code}"
            )
        return self._account_repo.update_balances(updated)

    def _log_transaction(
        self,
        *,
        user_code: str,
        tx_type: CreditTransactionType,
        amount: int,
        description: str,
        related_event_id: str | None = None,
        related_application_id: str | None = None,
        payment_transaction_id: str | None = None,
    ) -> CreditTransaction:
        now = datetime.now(timezone.utc)
        return self._transaction_repo.create(
            CreditTransaction(
                user_code=user_code,
                type=tx_type,
                amount=amount,
                description=description,
                related_event_id=related_event_id,
                related_application_id=related_application_id,
                payment_transaction_id=payment_transaction_id,
                created_at=now,
                updated_at=now,
            )
        )


def get_credit_account_repository(
    db: Database = Depends(get_database),
    session: ClientSession = Depends(get_mongo_session),
) -> CreditAccountRepositoryInterface:
    """FastAPI DI용 CreditAccountRepository 팩토리."""

    return CreditAccountRepository(db, session)


def get_credit_hold_repository(
    db: Database = Depends(get_database),
    session: ClientSession = Depends(get_mongo_session),
) -> CreditHoldRepositoryInterface:
    """FastAPI DI용 CreditHoldRepository 팩토리."""

    return CreditHoldRepository(db, session)


def get_credit_transaction_repository(
    db: Database = Depends(get_database),
    session: ClientSession = Depends(get_mongo_session),
) -> CreditTransactionRepositoryInterface:
    """FastAPI DI용 CreditTransactionRepository 팩토리."""

    return CreditTransactionRepository(db, session)


def get_credit_ledger(
    account_repo: CreditAccountRepositoryInterface = Depends(
        get_credit_account_repository
    ),
    hold_repo: CreditHoldRepositoryInterface = Depends(get_credit_hold_repository),
    transaction_repo: CreditTransactionRepositoryInterface = Depends(
        get_credit_transaction_repository
    ),
    config: AppConfig = Depends(get_config),
) -> CreditLedger:
    """FastAPI DI용 CreditLedger 팩토리. 같은 요청 안에서는 하나의 인스턴스를 공유한다."""

    return CreditLedger(
        account_repo=account_repo,
        hold_repo=hold_repo,
        transaction_repo=transaction_repo,
        welcome_grant=config.credits.welcome_grant,
        history_limit=config.credits.transaction_history_limit,
    )
