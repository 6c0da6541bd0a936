from fastapi import APIRouter

from .rewards import router as rewards_router
from .wallets import router as wallets_router

api_router = APIRouter()
# prefix 는 각 router 파일 내부에서 정의되어 있음 (/rewards, /wallets)
api_router.include_router(rewards_router)
api_router.include_router(wallets_router)
