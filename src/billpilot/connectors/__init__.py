"""Connectors package — bill store integrations."""
from billpilot.connectors.base import BaseConnector
from billpilot.connectors.csv_connector import CSVConnector
from billpilot.connectors.registry import ConnectorRegistry
from billpilot.connectors.sql_connector import SQLConnector

__all__ = [
    "BaseConnector",
    "CSVConnector",
    "ConnectorRegistry",
    "SQLConnector",
]
