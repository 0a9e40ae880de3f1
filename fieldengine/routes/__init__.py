"""APIRouter registration for the field engine service."""

from __future__ import annotations

from fastapi import APIRouter

from fieldengine.routes.documents import router as documents_router

api_router = APIRouter()
api_router.include_router(documents_router, tags=["Documents", "Fields"])

__all__ = ["api_router"]
