"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from provisioning_service.infrastructure.database.session import get_db
from provisioning_service.services.criteria_service import CriteriaService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_criteria_service(db: Session = Depends(get_db)) -> CriteriaService:
    """Provide a criteria service bound to the request's session"""
    return CriteriaService.for_session(db)
