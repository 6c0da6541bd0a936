from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from common.models.user import User
from common.mongo.types import MongoDateTime, PyObjectId, from_object_id


class UserDocument(BaseModel):
    """users 컬렉션 도큐먼트 (계정 서비스 스키마, camelCase 필드).

    계정 서비스의 도큐먼트에는 created_at/updated_at 이 없으므로 BaseDocument 를 쓰지 않는다.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True, populate_by_name=True, extra="ignore"
    )

    id: PyObjectId = Field(alias="_id")
    user_name: str = Field(default="", alias="userName")
    email: Optional[str] = Field(default=None, alias="emailID")
    roles: list[int] = Field(default_factory=list)
    last_reward_date: Optional[MongoDateTime] = Field(
        default=None, alias="lastRewardDate"
    )

    def to_domain(self) -> User:
        return User(
            id=from_object_id(self.id),
            user_name=self.user_name or "",
            email=self.email,
            roles=self.roles,
            last_reward_date=self.last_reward_date,
        )
