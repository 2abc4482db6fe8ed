from __future__ import annotations

from common.models.user import User
from common.mongo.types import BaseDocument, MongoDateTime


class UserDocument(BaseDocument):
    """MongoDB users 컬렉션 도큐먼트 모델. user-service 가 소유하고 여기서는 읽기만 한다."""

    user_code: str
    provider: str
    provider_sub: str
    email: str
    name: str
    profile_image: str = ""
    role: str = "user"
    date_of_birth: MongoDateTime | None = None

    def to_domain(self) -> User:
        return User(**self.model_dump(exclude={"id"}))
