"""Ethereum JSON-RPC access with endpoint failover."""

from chain.node import EthereumNode
from chain.selector import select_endpoint
from chain.connection import Connection, ConnectionManager

__all__ = [
    "EthereumNode",
    "select_endpoint",
    "Connection",
    "ConnectionManager",
]
