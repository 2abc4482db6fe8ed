from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class UserRole(StrEnum):
    USER = "user"
    ADMIN = "admin"


class User(BaseModel):
    """유저 도메인 모델.

    - Mongo users 컬렉션과 1:1로 매핑되는 공용 모델이다. 이 서비스는 읽기만 한다.
    - user_code("<provider>:<uuid>")가 서비스 전반의 유저 식별자다.
    - role 이 admin 인 유저만 환불 요청을 심사할 수 있다.
    """

    user_code: str = Field(alias="user_code")
    provider: str = Field(alias="provider")
    provider_sub: str = Field(alias="provider_sub")
    email: str = Field(alias="email")
    name: str = Field(alias="name")
    profile_image: str = Field(default="", alias="profile_image")
    role: str = Field(default=UserRole.USER, alias="role")
    date_of_birth: datetime | None = Field(default=None, alias="date_of_birth")
    created_at: datetime = Field(alias="created_at")
    updated_at: datetime = Field(alias="updated_at")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
