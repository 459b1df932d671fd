"""
Services package - Business Logic Layer

Contains the relay logic and the upstream API client, separated from HTTP/API concerns.
"""
from app.services.claid_client import ClaidClient, UpstreamImage
from app.services.relay_service import RelayService

__all__ = ["ClaidClient", "UpstreamImage", "RelayService"]
