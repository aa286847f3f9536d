"""Shared Redis client with reconnect backoff and connection-state tracking."""

from cache_client.client import CacheConnectionManager
from cache_client.events import ConnectionEvent, ConnectionEvents, ConnectionStatus

__all__ = ["CacheConnectionManager", "ConnectionEvent", "ConnectionEvents", "ConnectionStatus"]
