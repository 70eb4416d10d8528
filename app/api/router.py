from fastapi import APIRouter

from app.api.auth import auth_router
from app.api.requests import requests_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(requests_router)
