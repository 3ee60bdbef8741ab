"""API routes."""
from fastapi import APIRouter
from skyearth.api import auth

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
