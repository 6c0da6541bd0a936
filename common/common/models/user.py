from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from common.types.objectid import ObjectIdStr


class User(BaseModel):
    """유저 도메인 모델 (리워드/지갑에서 필요한 필드만).

    - users 컬렉션은 계정 서비스가 소유하며, 이 서비스는 조회와 last_reward_date 갱신만 한다.
    - id 는 users._id(ObjectId) 의 문자열 표현이다.
    """

    id: ObjectIdStr
    user_name: str = ""
    email: str | None = None
    roles: list[int] = Field(default_factory=list)
    # 마지막 리워드 발급 시각. 발급 주기 제한(15일)에 사용한다.
    last_reward_date: datetime | None = None
