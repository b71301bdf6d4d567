from __future__ import annotations

import uuid
from dataclasses import dataclass

from servicebus_sample.core.config import ServiceBusConfig


def random_resource_name(prefix: str, max_len: int) -> str:
    """Return ``prefix`` followed by a random lowercase hex suffix, at most ``max_len`` long."""
    if max_len <= len(prefix):
        raise ValueError(f"max_len {max_len} leaves no room for a suffix after {prefix!r}")
    suffix = uuid.uuid4().hex + uuid.uuid4().hex
    return (prefix + suffix)[:max_len]


@dataclass(frozen=True)
class ScenarioNames:
    resource_group: str
    namespace: str
    queue: str
    topic: str
    subscription1: str
    subscription2: str
    namespace_rule: str
    queue_rule: str
    topic_rule: str

    @classmethod
    def generate(cls, cfg: ServiceBusConfig | None = None) -> ScenarioNames:
        cfg = cfg or ServiceBusConfig()
        return cls(
            resource_group=random_resource_name("rgSB03_", 24),
            namespace=random_resource_name("namespace", 20),
            queue=random_resource_name("queue1_", 24),
            topic=random_resource_name("topic_", 24),
            subscription1=random_resource_name("sub1_", 24),
            subscription2=random_resource_name("sub2_", 24),
            namespace_rule=cfg.namespace_rule_name,
            queue_rule=cfg.queue_rule_name,
            topic_rule=cfg.topic_rule_name,
        )
