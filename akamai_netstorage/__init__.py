"""Akamai NetStorage adapter for resource storage and publishing targets."""

from akamai_netstorage.connector import Connector, ConnectorConfig, DeleteResult

__all__ = ["Connector", "ConnectorConfig", "DeleteResult"]
