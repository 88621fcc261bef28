"""
SQL Connector — load bills from any SQL database.

Works with PostgreSQL, MySQL, SQLite, SQL Server, etc. via SQLAlchemy.
"""

from __future__ import annotations

import logging
from typing import Any

import pandas as pd
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from billpilot.connectors.csv_connector import CSVConnector
from billpilot.models.bill import BillFilter, BillRecord

logger = logging.getLogger("billpilot.connectors.sql")


class SQLConnector(CSVConnector):
    """Load bills from a SQL database.

    Uses SQLAlchemy for broad database compatibility. The query must return
    one row per bill; columns are detected the same way as for CSV files.

    Usage::

        connector = SQLConnector(
            credentials={"connection_string": "postgresql://..."},
            query="SELECT * FROM bills WHERE user_id = 42",
        )
        bills = await connector.fetch_bills(BillFilter(is_recurring=True))
    """

    name = "sql"
    description = "Load bills from SQL databases"

    def __init__(
        self,
        credentials: dict[str, Any] | None = None,
        query: str | None = None,
        **options: Any,
    ) -> None:
        super().__init__(credentials, **options)
        self.connection_string = (credentials or {}).get("connection_string", "")
        self.query = query or options.get("query", "SELECT * FROM bills")

    async def fetch_bills(self, bill_filter: BillFilter | None = None) -> list[BillRecord]:
        """Execute the query and return the bills matching ``bill_filter``."""
        engine = create_engine(self.connection_string)
        try:
            with engine.connect() as conn:
                df = pd.read_sql(text(self.query), conn)
        finally:
            engine.dispose()

        df.columns = df.columns.str.strip().str.lower()
        col_map = self._detect_columns(df)
        bills = self._parse_bills(df, col_map)
        if bill_filter is not None:
            bills = bill_filter.apply(bills)

        logger.info("Loaded %d bills from SQL", len(bills))
        return bills

    async def validate_credentials(self) -> bool:
        """Test database connectivity."""
        try:
            engine = create_engine(self.connection_string)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            engine.dispose()
            return True
        except (SQLAlchemyError, ValueError) as e:
            logger.debug("SQL connectivity check failed: %s", e)
            return False
