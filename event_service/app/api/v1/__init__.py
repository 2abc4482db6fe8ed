from fastapi import APIRouter

from .applications import router as applications_router
from .credits import router as credits_router
from .events import router as events_router
from .refunds import router as refunds_router

# 각 라우터의 prefix 는 라우터 파일 내부에서 정의한다.
api_router = APIRouter()
api_router.include_router(credits_router)
api_router.include_router(events_router)
api_router.include_router(applications_router)
api_router.include_router(refunds_router)
