from fastapi import APIRouter
from academy.api import auth
from academy.core.config import settings

api_router = APIRouter(prefix=settings.API_PREFIX)

api_router.include_router(auth.router)
