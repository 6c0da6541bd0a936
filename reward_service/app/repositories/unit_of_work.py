"""원자적 작업 단위(Unit of Work).

리워드 발급과 사용은 여러 컬렉션(users, rewards, wallets)을 함께 바꾸므로
MongoDB 멀티 도큐먼트 트랜잭션 하나로 묶는다. 작업 콜백은 세션에 묶인 레포지토리 묶음
(RewardStores)을 받아 읽기/쓰기를 수행하고, 콜백이 끝나면 커밋된다.

- 콜백이 RewardServiceError 를 던지면 트랜잭션을 abort 하고 그대로 전파한다.
- 쓰기 충돌(TransientTransactionError)은 콜백 전체를 max_attempts 까지 재실행한다.
  treasury 지갑처럼 경합이 심한 도큐먼트에서 무한 재시도로 굶지 않도록 상한을 둔다.
- 커밋 결과를 모르는 경우(UnknownTransactionCommitResult)는 커밋만 다시 시도한다.
- 그 밖의 pymongo 오류(재시도 소진 포함)나 스키마에 맞지 않는 도큐먼트는 abort 후 StoreError 로 보고한다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol, TypeVar

from pydantic import ValidationError
from pymongo import MongoClient
from pymongo.client_session import ClientSession
from pymongo.database import Database
from pymongo.errors import PyMongoError
from pymongo.read_concern import ReadConcern
from pymongo.read_preferences import ReadPreference
from pymongo.write_concern import WriteConcern

from common.mongo.client import get_client, get_database

from ..config import load_config
from ..exceptions import RewardServiceError, StoreError
from .booking_repository import BookingRepository
from .interfaces import (
    BookingRepositoryInterface,
    RewardRepositoryInterface,
    UserRepositoryInterface,
    WalletRepositoryInterface,
)
from .reward_repository import RewardRepository
from .user_repository import UserRepository
from .wallet_repository import WalletRepository


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_MAX_COMMIT_ATTEMPTS = 3

TRANSIENT_TRANSACTION_ERROR = "TransientTransactionError"
UNKNOWN_COMMIT_RESULT = "UnknownTransactionCommitResult"


@dataclass(slots=True)
class RewardStores:
    """한 작업 단위 안에서 사용하는 레포지토리 묶음."""

    users: UserRepositoryInterface
    bookings: BookingRepositoryInterface
    wallets: WalletRepositoryInterface
    rewards: RewardRepositoryInterface


class UnitOfWorkInterface(Protocol):
    def run(self, work: Callable[[RewardStores], T]) -> T:  # pragma: no cover - Protocol
        """work 를 하나의 원자적 단위로 실행하고 그 반환값을 돌려준다."""
        ...


class MongoUnitOfWork(UnitOfWorkInterface):
    """MongoDB ClientSession 트랜잭션 기반 UnitOfWork."""

    def __init__(
        self,
        client: MongoClient,
        database: Database,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        max_commit_attempts: int = DEFAULT_MAX_COMMIT_ATTEMPTS,
    ) -> None:
        self._client = client
        self._db = database
        self._max_attempts = max(1, max_attempts)
        self._max_commit_attempts = max(1, max_commit_attempts)

    def run(self, work: Callable[[RewardStores], T]) -> T:
        last_error: PyMongoError | None = None

        for attempt in range(1, self._max_attempts + 1):
            with self._client.start_session() as session:
                try:
                    session.start_transaction(
                        read_concern=ReadConcern("snapshot"),
                        write_concern=WriteConcern("majority"),
                        read_preference=ReadPreference.PRIMARY,
                    )
                    result = work(self._bind(session))
                    self._commit(session)
                    return result
                except RewardServiceError:
                    self._abort(session)
                    raise
                except ValidationError as exc:
                    # 운영자가 직접 넣은 도큐먼트 등 스키마에 맞지 않는 도큐먼트
                    self._abort(session)
                    raise StoreError(f"malformed document: {exc}") from exc
                except PyMongoError as exc:
                    self._abort(session)
                    if not exc.has_error_label(TRANSIENT_TRANSACTION_ERROR):
                        raise StoreError(f"transaction failed: {exc}") from exc
                    last_error = exc
                    logger.warning(
                        "transient transaction error, retrying (attempt %d/%d): %s",
                        attempt,
                        self._max_attempts,
                        exc,
                        extra={"attempt": attempt},
                    )

        raise StoreError(
            f"transaction aborted after {self._max_attempts} attempts: {last_error}"
        ) from last_error

    def _bind(self, session: ClientSession) -> RewardStores:
        return RewardStores(
            users=UserRepository(self._db, session=session),
            bookings=BookingRepository(self._db, session=session),
            wallets=WalletRepository(self._db, session=session),
            rewards=RewardRepository(self._db, session=session),
        )

    def _commit(self, session: ClientSession) -> None:
        for attempt in range(1, self._max_commit_attempts + 1):
            try:
                session.commit_transaction()
                return
            except PyMongoError as exc:
                if (
                    exc.has_error_label(UNKNOWN_COMMIT_RESULT)
                    and attempt < self._max_commit_attempts
                ):
                    logger.warning(
                        "unknown commit result, retrying commit (attempt %d/%d): %s",
                        attempt,
                        self._max_commit_attempts,
                        exc,
                        extra={"attempt": attempt},
                    )
                    continue
                raise

    @staticmethod
    def _abort(session: ClientSession) -> None:
        if not session.in_transaction:
            return
        try:
            session.abort_transaction()
        except PyMongoError as exc:
            # 서버가 이미 트랜잭션을 정리한 경우. 세션 종료 시 어차피 폐기된다.
            logger.warning("failed to abort transaction: %s", exc)


def get_unit_of_work() -> UnitOfWorkInterface:
    """FastAPI DI용 UnitOfWork 팩토리."""

    return MongoUnitOfWork(
        get_client(),
        get_database(),
        max_attempts=load_config().txn_max_attempts,
    )
