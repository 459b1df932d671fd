"""FastAPI dependencies for the relay endpoints."""

from fastapi import Depends

from app.services.claid_client import ClaidClient
from app.services.relay_service import RelayService


def get_claid_client() -> ClaidClient:
    """Upstream client built from the global settings.

    Tests override this to inject a stub transport.
    """
    return ClaidClient()


def get_relay_service(client: ClaidClient = Depends(get_claid_client)) -> RelayService:
    """Dependency injection for RelayService."""
    return RelayService(client=client)
