"""
Dependencies for authentication, database sessions, request context and
per-entity resource handlers.
"""
from functools import lru_cache
from typing import Generator, Optional
from fastapi import Depends, HTTPException, status, Query, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from invoicing import database
from invoicing.config import HASHING_SETTINGS, PAGINATION_SETTINGS
from invoicing.models.db import Document, Payment, User
from invoicing.repositories import DocumentRepository, PaymentRepository
from invoicing.services.context import RequestContext
from invoicing.services.resource_handler import ResourceHandler
from invoicing.transformers import DocumentTransformer, PaymentTransformer, parse_includes
from invoicing.utils import get_logger, IdentifierEncoder

logger = get_logger(__name__)
security = HTTPBearer()


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.
    Ensures proper session lifecycle management with automatic cleanup.

    Yields:
        Session: SQLAlchemy database session
    """
    db = database.SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error("Database session error", error=str(e), exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()


def _key_prefix(api_key: str) -> str:
    return api_key[:6] + "..." if len(api_key) > 6 else api_key


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the calling company user from the Bearer API key.

    Raises:
        HTTPException: 401 if the API key is unknown or the user is inactive
    """
    api_key = credentials.credentials

    user = db.query(User).filter(
        User.api_key == api_key,
        User.is_active.is_(True)
    ).first()

    if not user:
        logger.warning(
            "Authentication failed: invalid or inactive API key",
            api_key_prefix=_key_prefix(api_key)
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or inactive API key",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug("User authenticated", user_id=user.id, company_id=user.company_id)
    return user


def get_request_context(
    request: Request,
    user: User = Depends(get_current_user)
) -> RequestContext:
    request_id = getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID", "unknown")
    return RequestContext(user=user, company_id=user.company_id, request_id=request_id)


@lru_cache(maxsize=1)
def get_identifier_encoder() -> IdentifierEncoder:
    return IdentifierEncoder(
        str(HASHING_SETTINGS["salt"]),
        tag_bytes=int(HASHING_SETTINGS.get("tag_bytes", 4)),
    )


class PaginationParams:
    def __init__(
        self,
        page: int = Query(1, ge=1, description="1-based page number"),
        per_page: int = Query(
            PAGINATION_SETTINGS["default_per_page"],
            ge=1,
            le=PAGINATION_SETTINGS["max_per_page"],
            description="Items per page",
        ),
    ):
        self.page = page
        self.per_page = per_page


def get_payment_repository(
    encoder: IdentifierEncoder = Depends(get_identifier_encoder)
) -> PaymentRepository:
    return PaymentRepository(encoder)


def get_payment_handler(
    encoder: IdentifierEncoder = Depends(get_identifier_encoder),
    repository: PaymentRepository = Depends(get_payment_repository)
) -> ResourceHandler:
    return ResourceHandler(Payment, "payment", repository, PaymentTransformer(encoder))


def get_document_handler(
    encoder: IdentifierEncoder = Depends(get_identifier_encoder)
) -> ResourceHandler:
    return ResourceHandler(Document, "document", DocumentRepository(), DocumentTransformer(encoder))


def get_job_queue(request: Request):
    """Queue created in the application lifespan (tests install their own)."""
    queue = getattr(request.app.state, "job_queue", None)
    if queue is None:
        logger.error("Job queue not initialized")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Job queue not available"
        )
    return queue


def parse_include_param(include: Optional[str] = Query(None, description="Comma separated related collections")) -> list[str]:
    return parse_includes(include)
