"""지갑 라우터 (내부용).

계정 서비스가 계정 활성화/삭제 시 호출한다.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from ...exceptions import RewardServiceError, WalletMissingError
from ...services.wallet_service import WalletService, get_wallet_service
from ..errors import to_http_exception
from ..schemas.common import PaginatedResponse
from ..schemas.wallets import WalletResponse, WalletTransactionResponse


router = APIRouter(prefix="/wallets", tags=["wallets"])


def _wallet_http_exception(exc: RewardServiceError) -> HTTPException:
    # 지갑 라우트에서는 지갑 누락이 404 다.
    if isinstance(exc, WalletMissingError):
        return to_http_exception(exc, status_code=status.HTTP_404_NOT_FOUND)
    return to_http_exception(exc)


@router.post("/{user_id}", summary="지갑 생성 (이미 있으면 기존 지갑)")
def open_wallet(
    user_id: str,
    service: Annotated[WalletService, Depends(get_wallet_service)],
) -> WalletResponse:
    try:
        wallet = service.open_wallet(user_id)
    except RewardServiceError as exc:
        raise _wallet_http_exception(exc) from exc
    return WalletResponse.from_domain(wallet)


@router.get("/{user_id}", summary="지갑 조회")
def get_wallet(
    user_id: str,
    service: Annotated[WalletService, Depends(get_wallet_service)],
) -> WalletResponse:
    try:
        wallet = service.get_wallet(user_id)
    except RewardServiceError as exc:
        raise _wallet_http_exception(exc) from exc
    return WalletResponse.from_domain(wallet)


@router.get("/{user_id}/transactions", summary="지갑 거래 이력 (최신순)")
def get_wallet_transactions(
    user_id: str,
    service: Annotated[WalletService, Depends(get_wallet_service)],
    page: int = 1,
    page_size: int = 20,
) -> PaginatedResponse[WalletTransactionResponse]:
    try:
        history = service.get_history(user_id, page, page_size)
    except RewardServiceError as exc:
        raise _wallet_http_exception(exc) from exc
    return PaginatedResponse(
        items=[WalletTransactionResponse.from_domain(tx) for tx in history.items],
        total=history.total,
        page=history.page,
        page_size=history.page_size,
    )


@router.delete("/{user_id}", summary="지갑 삭제 (유저 삭제 연동)")
def close_wallet(
    user_id: str,
    service: Annotated[WalletService, Depends(get_wallet_service)],
) -> dict[str, str]:
    try:
        deleted = service.close_wallet(user_id)
    except RewardServiceError as exc:
        raise _wallet_http_exception(exc) from exc
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "wallet_missing", "message": "wallet not found"},
        )
    return {"message": "wallet_deleted"}
