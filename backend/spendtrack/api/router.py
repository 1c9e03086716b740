from fastapi import APIRouter

from spendtrack.api.analytics import router as analytics_router
from spendtrack.api.chatbot import router as chatbot_router
from spendtrack.api.expenses import router as expenses_router

api_router = APIRouter()
api_router.include_router(analytics_router)
api_router.include_router(chatbot_router)
api_router.include_router(expenses_router)
