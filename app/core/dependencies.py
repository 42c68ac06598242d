from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from app.core.config import settings
from app.core.security import verify_access_token
from app.db.core import get_session
from app.db.store import ProvenanceStore, SQLModelStore

from app.services.stakeholder import StakeholderService
from app.services.product import ProductService
from app.services.journal import JournalService
from app.services.provenance import ProvenanceService
from app.services.events import EventService

bearer_scheme = HTTPBearer(auto_error=False)


def get_store(session: Session = Depends(get_session)) -> ProvenanceStore:
    """Wraps the request's DB session in the registry store."""
    return SQLModelStore(session)


def get_stakeholder_service(store: ProvenanceStore = Depends(get_store)) -> StakeholderService:
    return StakeholderService(store)


def get_product_service(store: ProvenanceStore = Depends(get_store)) -> ProductService:
    return ProductService(store, include_nonce=settings.handle_include_nonce)


def get_journal_service(store: ProvenanceStore = Depends(get_store)) -> JournalService:
    return JournalService(store)


def get_provenance_service(store: ProvenanceStore = Depends(get_store)) -> ProvenanceService:
    return ProvenanceService(store)


def get_event_service(store: ProvenanceStore = Depends(get_store)) -> EventService:
    return EventService(store)


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> str:
    """
    Validates the bearer token and returns the caller's principal.
    Whether that principal may act is decided by the services.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    principal = verify_access_token(credentials.credentials)
    if not principal:
        raise credentials_exception

    return principal
