from __future__ import annotations

from .clients import AzureOperationError, Clients, build_clients

__all__ = ["AzureOperationError", "Clients", "build_clients"]
