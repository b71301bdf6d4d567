from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from azure.mgmt.servicebus.models import (
    SBAuthorizationRule,
    SBNamespace,
    SBQueue,
    SBSku,
    SBSubscription,
    SBTopic,
)

from servicebus_sample.core.config import DEFAULT_ALLOWED_LOCATIONS
from servicebus_sample.core.exceptions import ValidationException
from servicebus_sample.core.logging import get_logger

from ..clients import Clients, call, run_poller
from ..validators import normalize_location, validate_location, validate_name, validate_rights

logger = get_logger(__name__)


def _require_name(kind: str, value: str) -> None:
    if not validate_name(kind, value):
        raise ValidationException(
            f"Invalid {kind.replace('_', ' ')} name {value!r}", details={kind: value}
        )


async def create_namespace(
    *,
    clients: Clients,
    resource_group: str,
    name: str,
    location: str,
    sku: str = "Standard",
    capacity: int | None = None,
    tags: dict[str, str] | None = None,
    allowed_locations: Iterable[str] | None = None,
) -> Any:
    allowed = list(allowed_locations or DEFAULT_ALLOWED_LOCATIONS)
    if not validate_location(location, allowed):
        raise ValidationException(
            f"Invalid location {location!r}. Use one of: {', '.join(allowed)}",
            details={"location": location},
        )
    _require_name("namespace", name)

    params = SBNamespace(
        location=normalize_location(location),
        sku=SBSku(name=sku, tier=sku, capacity=capacity),
        tags=tags or {},
    )
    logger.info("servicebus.namespace.create", namespace=name, resource_group=resource_group, sku=sku)
    return await run_poller(
        clients, clients.sb.namespaces.begin_create_or_update, resource_group, name, params
    )


async def get_namespace(*, clients: Clients, resource_group: str, name: str) -> Any:
    return await call(clients, clients.sb.namespaces.get, resource_group, name)


async def delete_namespace(*, clients: Clients, resource_group: str, name: str) -> Any:
    logger.info("servicebus.namespace.delete", namespace=name, resource_group=resource_group)
    return await run_poller(clients, clients.sb.namespaces.begin_delete, resource_group, name)


async def create_queue(
    *,
    clients: Clients,
    resource_group: str,
    namespace: str,
    name: str,
    max_size_mb: int = 1024,
) -> Any:
    _require_name("queue", name)
    logger.info("servicebus.queue.create", queue=name, namespace=namespace, max_size_mb=max_size_mb)
    return await call(
        clients,
        clients.sb.queues.create_or_update,
        resource_group,
        namespace,
        name,
        SBQueue(max_size_in_megabytes=max_size_mb),
    )


async def get_queue(*, clients: Clients, resource_group: str, namespace: str, name: str) -> Any:
    return await call(clients, clients.sb.queues.get, resource_group, namespace, name)


async def create_topic(
    *,
    clients: Clients,
    resource_group: str,
    namespace: str,
    name: str,
    max_size_mb: int = 1024,
) -> Any:
    _require_name("topic", name)
    logger.info("servicebus.topic.create", topic=name, namespace=namespace, max_size_mb=max_size_mb)
    return await call(
        clients,
        clients.sb.topics.create_or_update,
        resource_group,
        namespace,
        name,
        SBTopic(max_size_in_megabytes=max_size_mb),
    )


async def get_topic(*, clients: Clients, resource_group: str, namespace: str, name: str) -> Any:
    return await call(clients, clients.sb.topics.get, resource_group, namespace, name)


async def create_subscription(
    *,
    clients: Clients,
    resource_group: str,
    namespace: str,
    topic: str,
    name: str,
    requires_session: bool = False,
) -> Any:
    _require_name("subscription", name)
    logger.info(
        "servicebus.subscription.create",
        subscription=name,
        topic=topic,
        requires_session=requires_session,
    )
    return await call(
        clients,
        clients.sb.subscriptions.create_or_update,
        resource_group,
        namespace,
        topic,
        name,
        SBSubscription(requires_session=requires_session),
    )


async def get_subscription(
    *, clients: Clients, resource_group: str, namespace: str, topic: str, name: str
) -> Any:
    return await call(clients, clients.sb.subscriptions.get, resource_group, namespace, topic, name)


def _rule_scope(
    clients: Clients, namespace: str, queue: str | None, topic: str | None
) -> tuple[Any, tuple[str, ...]]:
    if queue and topic:
        raise ValidationException(
            "An authorization rule is scoped to a queue or a topic, not both",
            details={"queue": queue, "topic": topic},
        )
    if queue:
        return clients.sb.queues, (namespace, queue)
    if topic:
        return clients.sb.topics, (namespace, topic)
    return clients.sb.namespaces, (namespace,)


async def create_authorization_rule(
    *,
    clients: Clients,
    resource_group: str,
    namespace: str,
    name: str,
    rights: Sequence[str],
    queue: str | None = None,
    topic: str | None = None,
) -> Any:
    """Create a rule on the namespace, or on ``queue``/``topic`` when one is given."""
    _require_name("authorization_rule", name)
    if not validate_rights(rights):
        raise ValidationException(
            f"Invalid access rights {list(rights)!r}", details={"rights": list(rights)}
        )
    ops, scope = _rule_scope(clients, namespace, queue, topic)
    logger.info(
        "servicebus.authorization_rule.create",
        rule=name,
        scope="/".join(scope),
        rights=list(rights),
    )
    return await call(
        clients,
        ops.create_or_update_authorization_rule,
        resource_group,
        *scope,
        name,
        SBAuthorizationRule(rights=list(rights)),
    )


async def list_authorization_rule_keys(
    *,
    clients: Clients,
    resource_group: str,
    namespace: str,
    name: str,
    queue: str | None = None,
    topic: str | None = None,
) -> Any:
    ops, scope = _rule_scope(clients, namespace, queue, topic)
    logger.info("servicebus.authorization_rule.list_keys", rule=name, scope="/".join(scope))
    return await call(clients, ops.list_keys, resource_group, *scope, name)
