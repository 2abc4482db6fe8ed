from __future__ import annotations

from pymongo.client_session import ClientSession
from pymongo.database import Database

from common.models.user import User

from .documents.user_document import UserDocument
from .interfaces import UserRepositoryInterface


class UserRepository(UserRepositoryInterface):
    """users 컬렉션 조회 전용 레이어. 프로필/역할/생년월일을 읽는다."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._col = database["users"]
        self._session = session

    def find_by_user_code(self, user_code: str) -> User | None:
        doc = self._col.find_one({"user_code": user_code}, session=self._session)
        if not doc:
            return None
        return UserDocument.model_validate(doc).to_domain()
