from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from azure.core.credentials import TokenCredential
from azure.core.exceptions import (
    AzureError,
    ClientAuthenticationError,
    HttpResponseError,
    ResourceNotFoundError,
    ServiceRequestError,
    ServiceResponseError,
)
from azure.mgmt.resource import ResourceManagementClient
from azure.mgmt.servicebus import ServiceBusManagementClient

from servicebus_sample.core.azure_auth import build_credential, resolve_subscription_id
from servicebus_sample.core.config import Settings
from servicebus_sample.core.exceptions import ExternalServiceException
from servicebus_sample.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Clients:
    subscription_id: str
    cred: TokenCredential
    res: ResourceManagementClient
    sb: ServiceBusManagementClient

    async def run(
        self, fn: Callable[..., Any] | Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any
    ) -> Any:
        if inspect.iscoroutinefunction(fn):
            return await fn(*args, **kwargs)
        res = await asyncio.to_thread(fn, *args, **kwargs)
        if inspect.isawaitable(res):
            return await res
        return res

    async def close(self) -> None:
        for attr in ("res", "sb"):
            try:
                close = getattr(getattr(self, attr, None), "close", None)
                if callable(close):
                    await asyncio.to_thread(close)
            except Exception as e:
                logger.debug("azure_clients.close_error", client=attr, error=str(e))

        try:
            cclose = getattr(self.cred, "close", None)
            if callable(cclose):
                await asyncio.to_thread(cclose)
        except Exception as e:
            logger.debug("azure_clients.credential_close_error", error=str(e))


class AzureOperationError(ExternalServiceException):
    def __init__(
        self, *, code: str, message: str, status_code: int | None, retryable: bool
    ) -> None:
        super().__init__(
            message,
            retryable=retryable,
            details={"code": code, "status_code": status_code},
        )
        self.code = code
        self.status_code = status_code


def build_clients(settings: Settings) -> Clients:
    sid = resolve_subscription_id(settings.azure)
    logger.debug("azure_clients.build.start", subscription_id=sid)
    cred = build_credential(settings.azure)
    clients = Clients(
        subscription_id=sid,
        cred=cred,
        res=ResourceManagementClient(cred, sid),
        sb=ServiceBusManagementClient(cred, sid),
    )
    logger.debug("azure_clients.build.end", subscription_id=sid)
    return clients


def _http_status(e: BaseException) -> int | None:
    if isinstance(e, HttpResponseError):
        sc = getattr(e, "status_code", None)
        if sc is not None:
            return int(sc)
        resp = getattr(e, "response", None)
        if resp is not None:
            sc = getattr(resp, "status_code", None)
            if sc is not None:
                return int(sc)
    return None


def classify(e: BaseException) -> tuple[bool, str, int | None]:
    """Return ``(retryable, code, http_status)`` for an SDK exception."""
    if isinstance(e, ClientAuthenticationError):
        return False, "auth_error", _http_status(e)
    if isinstance(e, ResourceNotFoundError):
        return False, "not_found", _http_status(e)
    if isinstance(e, ServiceRequestError | ServiceResponseError | TimeoutError | OSError):
        return True, "transient_io", _http_status(e)
    if isinstance(e, HttpResponseError):
        sc = _http_status(e)
        if sc in (408, 429) or (sc is not None and 500 <= sc <= 599):
            return True, f"http_{sc}", sc
        return False, f"http_{sc}" if sc is not None else "http_error", sc
    if isinstance(e, AzureError):
        return False, "azure_error", _http_status(e)
    return False, "unknown_error", _http_status(e)


def is_poller(obj: Any) -> bool:
    return hasattr(obj, "result") and hasattr(obj, "status")


async def call(
    clients: Clients,
    fn: Callable[..., Any] | Callable[..., Awaitable[Any]],
    *args: Any,
    **kwargs: Any,
) -> Any:
    try:
        return await clients.run(fn, *args, **kwargs)
    except AzureOperationError:
        raise
    except Exception as e:
        raise _wrap(clients, fn, e) from e


async def run_poller(
    clients: Clients,
    fn: Callable[..., Any] | Callable[..., Awaitable[Any]],
    *args: Any,
    **kwargs: Any,
) -> Any:
    poller = await call(clients, fn, *args, **kwargs)
    if not is_poller(poller):
        return poller
    try:
        return await clients.run(poller.result)
    except Exception as e:
        raise _wrap(clients, fn, e) from e


def _wrap(clients: Clients, fn: Callable[..., Any], e: Exception) -> AzureOperationError:
    retryable, code, sc = classify(e)
    logger.error(
        "azure_clients.operation.error",
        operation=getattr(fn, "__name__", type(fn).__name__),
        subscription_id=clients.subscription_id,
        error_type=type(e).__name__,
        error_code=code,
        http_status=sc,
    )
    return AzureOperationError(code=code, message=str(e), status_code=sc, retryable=retryable)
