"""Shared dependencies for API routes."""

from typing import Optional
from fastapi import HTTPException
from service import TreasuryService

# Global service instance
_service: Optional[TreasuryService] = None


def set_service(service: Optional[TreasuryService]) -> None:
    """Set the global service instance."""
    global _service
    _service = service


def get_service() -> TreasuryService:
    """Get the service instance dependency."""
    if not _service:
        raise HTTPException(status_code=503, detail="Treasury service not initialized")
    return _service
