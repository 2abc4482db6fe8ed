from __future__ import annotations

import logging
from typing import Iterator

from fastapi import Depends
from pymongo import MongoClient
from pymongo.client_session import ClientSession

from .client import get_client
from .config import use_transactions


logger = logging.getLogger(__name__)


def get_mongo_session(
    client: MongoClient = Depends(get_client),
) -> Iterator[ClientSession]:
    """요청 하나를 하나의 MongoDB 트랜잭션으로 묶는 FastAPI yield 의존성.

    - 같은 요청에서 만들어진 레포지토리는 모두 이 세션을 공유한다.
    - 커밋은 핸들러가 응답을 만들기 전에 commit_session() 으로 직접 한다.
      yield 이후 코드는 응답 전송 뒤에 실행될 수 있으므로 여기서는 커밋하지 않는다.
    - 커밋되지 않은 채 남은 트랜잭션(예외, 조회 전용 요청)은 중단한다.
    """

    with client.start_session() as session:
        if not use_transactions():
            yield session
            return

        session.start_transaction()
        try:
            yield session
        except Exception:
            logger.info("aborting MongoDB transaction after request failure")
            raise
        finally:
            if session.in_transaction:
                session.abort_transaction()


def commit_session(session: ClientSession) -> None:
    """요청 트랜잭션을 커밋한다. 실패하면 예외가 그대로 올라가 요청이 실패한다."""

    if session.in_transaction:
        session.commit_transaction()
