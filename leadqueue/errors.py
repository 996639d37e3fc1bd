"""Exception types shared by the remote clients and the lead pipeline."""

from __future__ import annotations


class ZokoConfigurationError(RuntimeError):
    """Raised when the messaging CRM credentials are missing."""


class ZokoAPIError(RuntimeError):
    """Raised when a messaging CRM request fails."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ShopifyConfigurationError(RuntimeError):
    """Raised when the store domain or admin token is not configured."""


class ShopifyAPIError(RuntimeError):
    """Raised for HTTP failures and GraphQL ``errors`` payloads."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DatabaseConfigurationError(RuntimeError):
    """Raised when no ``DATABASE_URL`` is available for the lead store."""


class LeadExistsError(RuntimeError):
    """Raised when a lead with the same customer and first image already exists."""


__all__ = [
    "DatabaseConfigurationError",
    "LeadExistsError",
    "ShopifyAPIError",
    "ShopifyConfigurationError",
    "ZokoAPIError",
    "ZokoConfigurationError",
]
