"""크레딧 원장 API 라우터.

호출자는 X-User-Code 헤더로 식별한다. 구매 반영은 결제 게이트웨이 전용 내부 API 다.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pymongo.client_session import ClientSession

from common.mongo.session import commit_session, get_mongo_session

from ...exceptions import EventServiceError
from ...services.credit_ledger import CreditLedger, get_credit_ledger
from ..dependencies import get_current_user_code, require_service_token
from ..errors import to_http_exception
from ..schemas.credits import (
    CreditBalanceResponse,
    CreditHoldResponse,
    CreditSufficiencyResponse,
    CreditTransactionResponse,
    DeductCreditRequest,
    DeductCreditResponse,
    HoldCreditsRequest,
    HoldCreditsResponse,
    InitializeCreditsResponse,
    PurchaseCreditsRequest,
    PurchaseCreditsResponse,
    ReleaseCreditsRequest,
    ReleaseCreditsResponse,
)


router = APIRouter(prefix="/credits", tags=["credits"])

CurrentUser = Annotated[str, Depends(get_current_user_code)]
Ledger = Annotated[CreditLedger, Depends(get_credit_ledger)]
Session = Annotated[ClientSession, Depends(get_mongo_session)]


@router.post("/initialize", status_code=status.HTTP_201_CREATED)
def initialize_credits(
    user_code: CurrentUser, ledger: Ledger, session: Session
) -> InitializeCreditsResponse:
    """가입 보너스 지급과 함께 크레딧 계정을 만든다. 이미 있으면 409."""
    try:
        granted = ledger.initialize(user_code)
    except EventServiceError as exc:
        raise to_http_exception(exc) from exc
    commit_session(session)
    return InitializeCreditsResponse(credits_granted=granted)


@router.get("/balance")
def get_balance(user_code: CurrentUser, ledger: Ledger) -> CreditBalanceResponse:
    balance = ledger.balance(user_code)
    return CreditBalanceResponse(**balance.model_dump())


@router.get("/check")
def check_sufficient_credits(
    user_code: CurrentUser,
    ledger: Ledger,
    required_credits: int = Query(ge=0),
) -> CreditSufficiencyResponse:
    result = ledger.sufficient_for(user_code, required_credits)
    return CreditSufficiencyResponse(**result.model_dump())


@router.get("/transactions")
def list_transactions(
    user_code: CurrentUser,
    ledger: Ledger,
    limit: int | None = Query(default=None, ge=1, le=200),
) -> list[CreditTransactionResponse]:
    """크레딧 변동 이력 (최신순)."""
    return [
        CreditTransactionResponse.from_domain(tx)
        for tx in ledger.list_transactions(user_code, limit)
    ]


@router.get("/holds")
def list_active_holds(user_code: CurrentUser, ledger: Ledger) -> list[CreditHoldResponse]:
    return [CreditHoldResponse.from_domain(h) for h in ledger.list_active_holds(user_code)]


@router.post("/holds")
def hold_credits(
    req: HoldCreditsRequest, user_code: CurrentUser, ledger: Ledger, session: Session
) -> HoldCreditsResponse:
    """잔액 부족 시 402 와 함께 required/available/shortfall 을 돌려준다."""
    try:
        held = ledger.hold(user_code, req.event_id, req.max_guests, req.event_title)
    except EventServiceError as exc:
        raise to_http_exception(exc) from exc
    commit_session(session)
    return HoldCreditsResponse(credits_held=held)


@router.post("/deductions")
def deduct_credit(
    req: DeductCreditRequest, user_code: CurrentUser, ledger: Ledger, session: Session
) -> DeductCreditResponse:
    try:
        deducted = ledger.deduct(user_code, req.event_id, req.application_id)
    except EventServiceError as exc:
        raise to_http_exception(exc) from exc
    commit_session(session)
    return DeductCreditResponse(credits_deducted=deducted)


@router.post("/releases")
def release_credits(
    req: ReleaseCreditsRequest, user_code: CurrentUser, ledger: Ledger, session: Session
) -> ReleaseCreditsResponse:
    try:
        released = ledger.release(
            user_code,
            req.event_id,
            description=req.description,
            throw_on_missing_hold=req.throw_on_missing_hold,
        )
    except EventServiceError as exc:
        raise to_http_exception(exc) from exc
    commit_session(session)
    return ReleaseCreditsResponse(credits_released=released)


@router.post("/purchases", dependencies=[Depends(require_service_token)])
def purchase_credits(
    req: PurchaseCreditsRequest, ledger: Ledger, session: Session
) -> PurchaseCreditsResponse:
    """결제 완료 반영 (내부 API). 같은 payment_transaction_id 는 한 번만 반영된다."""
    try:
        result = ledger.purchase(
            req.user_code,
            req.credits,
            payment_transaction_id=req.payment_transaction_id,
            amount_cents=req.amount_cents,
        )
    except EventServiceError as exc:
        raise to_http_exception(exc) from exc
    commit_session(session)
    return PurchaseCreditsResponse(
        credits_granted=result.credits_granted,
        duplicate=result.duplicate,
    )
