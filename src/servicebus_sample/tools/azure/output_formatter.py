from __future__ import annotations

from typing import Any
from urllib.parse import urlparse


def _attr(obj: Any, path: str) -> Any:
    current = obj
    for part in path.split("."):
        if current is None:
            return None
        current = getattr(current, part, None)
    return current


def _id_segment(resource_id: str | None, key: str) -> str | None:
    """Return the segment that follows ``key`` in an ARM resource id."""
    if not resource_id:
        return None
    parts = [p for p in resource_id.split("/") if p]
    for i, part in enumerate(parts[:-1]):
        if part.lower() == key.lower():
            return parts[i + 1]
    return None


def resource_group_of(resource_id: str | None) -> str | None:
    return _id_segment(resource_id, "resourceGroups")


def namespace_of(resource_id: str | None) -> str | None:
    return _id_segment(resource_id, "namespaces")


def _block(title: str, obj: Any, rows: list[tuple[str, Any]]) -> str:
    lines = [f"{title}: {_attr(obj, 'id')}"]
    lines.extend(f"\t{label}: {value}" for label, value in rows)
    return "\n".join(lines)


def _common_rows(obj: Any) -> list[tuple[str, Any]]:
    return [
        ("Name", _attr(obj, "name")),
        ("ResourceGroupName", resource_group_of(_attr(obj, "id"))),
        ("CreatedAt", _attr(obj, "created_at")),
        ("UpdatedAt", _attr(obj, "updated_at")),
    ]


def format_namespace(ns: Any) -> str:
    endpoint = _attr(ns, "service_bus_endpoint")
    fqdn = urlparse(endpoint).hostname if endpoint else None
    rows = [
        ("Name", _attr(ns, "name")),
        ("Region", _attr(ns, "location")),
        ("ResourceGroupName", resource_group_of(_attr(ns, "id"))),
        ("CreatedAt", _attr(ns, "created_at")),
        ("UpdatedAt", _attr(ns, "updated_at")),
        ("DnsLabel", fqdn.split(".", 1)[0] if fqdn else None),
        ("FQDN", fqdn),
        ("Sku", ""),
        ("\tCapacity", _attr(ns, "sku.capacity")),
        ("\tSkuName", _attr(ns, "sku.name")),
        ("\tTier", _attr(ns, "sku.tier")),
    ]
    return _block("Service bus Namespace", ns, rows)


def format_queue(queue: Any) -> str:
    rows = _common_rows(queue) + [
        ("AccessedAt", _attr(queue, "accessed_at")),
        ("ActiveMessageCount", _attr(queue, "count_details.active_message_count")),
        ("CurrentSizeInBytes", _attr(queue, "size_in_bytes")),
        ("DeadLetterMessageCount", _attr(queue, "count_details.dead_letter_message_count")),
        ("DefaultMessageTtlDuration", _attr(queue, "default_message_time_to_live")),
        (
            "DuplicateMessageDetectionHistoryDuration",
            _attr(queue, "duplicate_detection_history_time_window"),
        ),
        ("IsBatchedOperationsEnabled", _attr(queue, "enable_batched_operations")),
        (
            "IsDeadLetteringEnabledForExpiredMessages",
            _attr(queue, "dead_lettering_on_message_expiration"),
        ),
        ("IsDuplicateDetectionEnabled", _attr(queue, "requires_duplicate_detection")),
        ("IsExpressEnabled", _attr(queue, "enable_express")),
        ("IsPartitioningEnabled", _attr(queue, "enable_partitioning")),
        ("IsSessionEnabled", _attr(queue, "requires_session")),
        ("DeleteOnIdleDuration", _attr(queue, "auto_delete_on_idle")),
        ("MaxDeliveryCountBeforeDeadLetteringMessage", _attr(queue, "max_delivery_count")),
        ("MaxSizeInMB", _attr(queue, "max_size_in_megabytes")),
        ("MessageCount", _attr(queue, "message_count")),
        ("ScheduledMessageCount", _attr(queue, "count_details.scheduled_message_count")),
        ("Status", _attr(queue, "status")),
        ("TransferMessageCount", _attr(queue, "count_details.transfer_message_count")),
        ("LockDuration", _attr(queue, "lock_duration")),
        (
            "TransferDeadLetterMessageCount",
            _attr(queue, "count_details.transfer_dead_letter_message_count"),
        ),
    ]
    return _block("Service bus Queue", queue, rows)


def format_topic(topic: Any) -> str:
    rows = _common_rows(topic) + [
        ("AccessedAt", _attr(topic, "accessed_at")),
        ("ActiveMessageCount", _attr(topic, "count_details.active_message_count")),
        ("CurrentSizeInBytes", _attr(topic, "size_in_bytes")),
        ("DeadLetterMessageCount", _attr(topic, "count_details.dead_letter_message_count")),
        ("DefaultMessageTtlDuration", _attr(topic, "default_message_time_to_live")),
        (
            "DuplicateMessageDetectionHistoryDuration",
            _attr(topic, "duplicate_detection_history_time_window"),
        ),
        ("IsBatchedOperationsEnabled", _attr(topic, "enable_batched_operations")),
        ("IsDuplicateDetectionEnabled", _attr(topic, "requires_duplicate_detection")),
        ("IsExpressEnabled", _attr(topic, "enable_express")),
        ("IsPartitioningEnabled", _attr(topic, "enable_partitioning")),
        ("DeleteOnIdleDuration", _attr(topic, "auto_delete_on_idle")),
        ("MaxSizeInMB", _attr(topic, "max_size_in_megabytes")),
        ("ScheduledMessageCount", _attr(topic, "count_details.scheduled_message_count")),
        ("Status", _attr(topic, "status")),
        ("TransferMessageCount", _attr(topic, "count_details.transfer_message_count")),
        ("SubscriptionCount", _attr(topic, "subscription_count")),
        (
            "TransferDeadLetterMessageCount",
            _attr(topic, "count_details.transfer_dead_letter_message_count"),
        ),
    ]
    return _block("Service bus topic", topic, rows)


def format_subscription(sub: Any) -> str:
    rows = _common_rows(sub) + [
        ("AccessedAt", _attr(sub, "accessed_at")),
        ("ActiveMessageCount", _attr(sub, "count_details.active_message_count")),
        ("DeadLetterMessageCount", _attr(sub, "count_details.dead_letter_message_count")),
        ("DefaultMessageTtlDuration", _attr(sub, "default_message_time_to_live")),
        ("IsBatchedOperationsEnabled", _attr(sub, "enable_batched_operations")),
        ("DeleteOnIdleDuration", _attr(sub, "auto_delete_on_idle")),
        ("ScheduledMessageCount", _attr(sub, "count_details.scheduled_message_count")),
        ("Status", _attr(sub, "status")),
        ("TransferMessageCount", _attr(sub, "count_details.transfer_message_count")),
        (
            "IsDeadLetteringEnabledForExpiredMessages",
            _attr(sub, "dead_lettering_on_message_expiration"),
        ),
        ("IsSessionEnabled", _attr(sub, "requires_session")),
        ("LockDuration", _attr(sub, "lock_duration")),
        ("MaxDeliveryCountBeforeDeadLetteringMessage", _attr(sub, "max_delivery_count")),
        (
            "IsDeadLetteringEnabledForFilterEvaluationFailedMessages",
            _attr(sub, "dead_lettering_on_filter_evaluation_exceptions"),
        ),
        (
            "TransferDeadLetterMessageCount",
            _attr(sub, "count_details.transfer_dead_letter_message_count"),
        ),
    ]
    return _block("Service bus subscription", sub, rows)


def format_authorization_rule(rule: Any) -> str:
    rule_id = _attr(rule, "id")
    rights = list(_attr(rule, "rights") or [])
    lines = [
        f"Service bus authorization rule: {rule_id}",
        f"\tName: {_attr(rule, 'name')}",
        f"\tResourceGroupName: {resource_group_of(rule_id)}",
        f"\tNamespace Name: {namespace_of(rule_id)}",
        f"\tNumber of access rights: {len(rights)}",
    ]
    for right in rights:
        lines.append("\t\tAccessRight: ")
        lines.append(f"\t\t\tName :{getattr(right, 'value', right)}")
    return "\n".join(lines)


def format_keys(keys: Any) -> str:
    return "\n".join(
        [
            "Authorization keys: ",
            f"\tPrimaryKey: {_attr(keys, 'primary_key')}",
            f"\tPrimaryConnectionString: {_attr(keys, 'primary_connection_string')}",
            f"\tSecondaryKey: {_attr(keys, 'secondary_key')}",
            f"\tSecondaryConnectionString: {_attr(keys, 'secondary_connection_string')}",
        ]
    )
