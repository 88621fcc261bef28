"""
Connector Registry — discovers and manages bill store connectors.

Supports auto-discovery from config and manual registration of custom connectors.
"""

from __future__ import annotations

import importlib
import logging

from billpilot.config import BillPilotConfig, ConnectorConfig
from billpilot.connectors.base import BaseConnector

logger = logging.getLogger("billpilot.connectors.registry")

# Built-in connector type mapping
_BUILTIN_CONNECTORS: dict[str, str] = {
    "csv": "billpilot.connectors.csv_connector.CSVConnector",
    "sql": "billpilot.connectors.sql_connector.SQLConnector",
}


class ConnectorRegistry:
    """Manages all active bill store connectors.

    Supports:
    - Auto-discovery from config file.
    - Manual registration of custom connectors.
    - Plugin-style loading from a dotted class path.
    """

    def __init__(self) -> None:
        self._connectors: dict[str, BaseConnector] = {}

    def __len__(self) -> int:
        return len(self._connectors)

    @property
    def active_connectors(self) -> list[BaseConnector]:
        """Return all active connectors."""
        return list(self._connectors.values())

    def register(self, connector: BaseConnector) -> None:
        """Register a connector instance, replacing one with the same name."""
        self._connectors[connector.name] = connector
        logger.info("Registered connector: %s", connector.name)

    def get(self, name: str) -> BaseConnector | None:
        """Get a connector by name."""
        return self._connectors.get(name)

    def auto_discover(self, config: BillPilotConfig) -> None:
        """Instantiate and register the enabled connectors listed in config."""
        for conn_config in config.connectors:
            if not conn_config.enabled:
                continue
            connector = self._create_connector(conn_config)
            if connector:
                self.register(connector)

    def _create_connector(self, config: ConnectorConfig) -> BaseConnector | None:
        """Instantiate a connector from config."""
        connector_path = _BUILTIN_CONNECTORS.get(config.type, config.type)
        if "." not in connector_path:
            logger.error("Unknown connector type '%s'", config.type)
            return None

        try:
            module_path, class_name = connector_path.rsplit(".", 1)
            module = importlib.import_module(module_path)
            connector_cls = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            logger.error("Cannot load connector '%s': %s", config.type, e)
            return None

        if not (isinstance(connector_cls, type) and issubclass(connector_cls, BaseConnector)):
            logger.error("Connector '%s' is not a BaseConnector", config.type)
            return None

        try:
            return connector_cls(credentials=config.credentials, **config.options)
        except (TypeError, ValueError) as e:
            logger.error("Failed to create connector '%s': %s", config.type, e)
            return None
