"""
app/connectors package marker.
"""

from app.connectors.base import BaseConnector, ConnectorFetchResult, ConnectorRequestError
from app.connectors.connpass_connector import ConnpassConnector
from app.connectors.doorkeeper_connector import DoorkeeperConnector

__all__ = [
    "BaseConnector",
    "ConnectorFetchResult",
    "ConnectorRequestError",
    "ConnpassConnector",
    "DoorkeeperConnector",
]
