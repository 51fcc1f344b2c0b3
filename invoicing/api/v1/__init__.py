"""
API v1 router initialization and setup.
"""
from fastapi import APIRouter
from .endpoints import payments, documents, invitations

api_router = APIRouter()

api_router.include_router(
    payments.router,
    prefix="/payments",
    tags=["payments"]
)

api_router.include_router(
    documents.router,
    prefix="/documents",
    tags=["documents"]
)

api_router.include_router(
    invitations.router,
    prefix="/invitations",
    tags=["invitations"]
)
