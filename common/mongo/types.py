from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated


def ensure_utc_datetime(value: datetime) -> datetime:
    """naive datetime 은 UTC 로 간주하고, aware datetime 은 UTC 로 변환한다."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_object_id(value: Any) -> ObjectId:
    """str/ObjectId 를 ObjectId 로 변환한다. 형식이 틀리면 bson 예외가 그대로 올라간다."""

    if isinstance(value, ObjectId):
        return value
    if value is None:
        raise TypeError("ObjectId cannot be None")
    return ObjectId(str(value))


def parse_object_id(value: str | None) -> ObjectId | None:
    """외부 입력으로 들어온 id 문자열을 ObjectId 로 바꾼다.

    형식이 틀린 id 는 '존재하지 않는 문서'와 같게 취급하기 위해 None 을 돌려준다.
    """

    if value is None or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


def from_object_id(value: Optional[ObjectId]) -> Optional[str]:
    if value is None:
        return None
    return str(value)


PyObjectId = Annotated[ObjectId, BeforeValidator(to_object_id)]
MongoDateTime = Annotated[datetime, BeforeValidator(ensure_utc_datetime)]


class BaseDocument(BaseModel):
    """MongoDB 도큐먼트 공통 베이스.

    - _id 는 id 필드로 alias 되어 있고, 저장 시 None 이면 Mongo 가 생성한다.
    - 모든 도큐먼트는 created_at / updated_at 을 UTC 로 가진다.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    created_at: MongoDateTime
    updated_at: MongoDateTime

    def to_mongo_record(self) -> dict[str, Any]:
        """insert_one 에 넘길 dict. _id=None 같은 빈 필드는 제거한다."""

        return self.model_dump(by_alias=True, exclude_none=True)


def build_document_data_from_domain(domain_model: BaseModel) -> dict[str, Any]:
    """도메인 모델을 도큐먼트 검증용 dict 로 바꾼다.

    도메인의 문자열 id 는 _id 로 옮겨 ObjectId 로 검증되게 한다.
    """

    data = domain_model.model_dump()
    domain_id = data.pop("id", None)
    if domain_id is not None:
        data["_id"] = domain_id
    return data
