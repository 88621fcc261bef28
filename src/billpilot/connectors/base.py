"""
Base connector — abstract interface for bill stores.

Connectors are the bridge between BillPilot and wherever bills live: a
spreadsheet export, an application database, an accounting system. They
answer "find bills matching a filter" with normalized BillRecords.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from billpilot.models.bill import BillFilter, BillRecord


class BaseConnector(ABC):
    """Abstract base class for all bill store connectors.

    To create a new connector, subclass this and implement:
    - `name`: Unique connector identifier.
    - `fetch_bills()`: Async method returning the bills matching a filter.
    - `validate_credentials()`: Check that the store is reachable.

    Example::

        class MyStoreConnector(BaseConnector):
            name = "my_store"

            async def fetch_bills(self, bill_filter: BillFilter | None = None) -> list[BillRecord]:
                ...

            async def validate_credentials(self) -> bool:
                ...
    """

    name: str = "base"
    description: str = "Base connector"

    def __init__(self, credentials: dict[str, Any] | None = None, **options: Any) -> None:
        self.credentials = credentials or {}
        self.options = options

    @abstractmethod
    async def fetch_bills(self, bill_filter: BillFilter | None = None) -> list[BillRecord]:
        """Return the bills matching ``bill_filter`` (all bills when None)."""
        ...

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Validate that credentials are correct and the store is accessible."""
        ...

    async def health_check(self) -> dict[str, Any]:
        """Check connector health and connectivity."""
        try:
            valid = await self.validate_credentials()
            return {"connector": self.name, "healthy": valid, "error": None}
        except Exception as e:
            return {"connector": self.name, "healthy": False, "error": str(e)}
