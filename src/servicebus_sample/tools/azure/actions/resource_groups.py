from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from servicebus_sample.core.config import DEFAULT_ALLOWED_LOCATIONS
from servicebus_sample.core.exceptions import ValidationException
from servicebus_sample.core.logging import get_logger

from ..clients import Clients, call, run_poller
from ..validators import normalize_location, validate_location, validate_name

logger = get_logger(__name__)


async def create_resource_group(
    *,
    clients: Clients,
    resource_group: str,
    location: str,
    tags: dict[str, str] | None = None,
    allowed_locations: Iterable[str] | None = None,
) -> Any:
    allowed = list(allowed_locations or DEFAULT_ALLOWED_LOCATIONS)
    if not validate_location(location, allowed):
        logger.error(f"Invalid location provided: {location}")
        raise ValidationException(
            f"Invalid location {location!r}. Use one of: {', '.join(allowed)}",
            details={"location": location},
        )
    if not validate_name("resource_group", resource_group):
        raise ValidationException(
            f"Invalid resource group name {resource_group!r}",
            details={"resource_group": resource_group},
        )

    logger.info(f"Creating resource group {resource_group} in {location}")
    result = await call(
        clients,
        clients.res.resource_groups.create_or_update,
        resource_group,
        {"location": normalize_location(location), "tags": tags or {}},
    )
    logger.info(f"Created resource group {resource_group}")
    return result


async def delete_resource_group(
    *,
    clients: Clients,
    resource_group: str,
    wait: bool = False,
) -> Any:
    """Delete ``resource_group`` and everything in it.

    With ``wait`` false the deletion is only started and the poller is
    returned; otherwise the call blocks until Azure reports completion.
    """
    logger.info(f"Deleting resource group {resource_group}", wait=wait)
    if wait:
        return await run_poller(clients, clients.res.resource_groups.begin_delete, resource_group)
    return await call(clients, clients.res.resource_groups.begin_delete, resource_group)
