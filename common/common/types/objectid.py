from __future__ import annotations

from typing import Annotated, Any

from pydantic.functional_validators import BeforeValidator


def _to_object_id_str(value: Any) -> Any:
    """_id / user_id 처럼 ObjectId 로 저장된 참조를 문자열 ID 로 맞춘다.

    bookings 처럼 다른 서비스가 쓰는 컬렉션은 user_id 를 ObjectId 로 저장하기도 한다.
    """

    if value is None or isinstance(value, str):
        return value
    return str(value)


ObjectIdStr = Annotated[str, BeforeValidator(_to_object_id_str)]
