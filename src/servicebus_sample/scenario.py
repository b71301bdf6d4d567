"""Azure Service Bus basic scenario.

- Create a resource group, then a namespace with a queue and a topic
- Create 2 subscriptions on the topic
- Create a send authorization rule on the namespace
- Create a send rule for the queue and a send and listen rule for the topic
- Get the keys from the namespace authorization rule
- Delete the namespace, then the resource group
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from servicebus_sample.core.config import Settings
from servicebus_sample.core.exceptions import ExternalServiceException, record_error
from servicebus_sample.core.logging import get_logger
from servicebus_sample.tools.azure.actions import resource_groups, servicebus
from servicebus_sample.tools.azure.clients import Clients
from servicebus_sample.tools.azure.naming import ScenarioNames
from servicebus_sample.tools.azure.output_formatter import (
    format_authorization_rule,
    format_keys,
    format_namespace,
    format_queue,
    format_subscription,
    format_topic,
)

logger = get_logger(__name__)

NOTHING_TO_CLEAN_UP = "Did not create any resources in Azure. No clean up is necessary"


class ScenarioState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ScenarioReport:
    names: ScenarioNames
    state: ScenarioState = ScenarioState.PENDING
    steps: list[str] = field(default_factory=list)
    resource_group: str | None = None
    keys: Any = None
    cleanup_attempted: bool = False
    cleanup_error: str | None = None


class ServiceBusScenario:
    def __init__(
        self,
        clients: Clients,
        settings: Settings,
        names: ScenarioNames | None = None,
    ) -> None:
        self.clients = clients
        self.settings = settings
        self.names = names or ScenarioNames.generate(settings.servicebus)
        self.report = ScenarioReport(names=self.names)

    def _done(self, step: str) -> None:
        self.report.steps.append(step)
        logger.debug("scenario.step.done", step=step)

    async def run(self) -> ScenarioReport:
        """Run every step in order; cleanup always runs once, errors propagate after it."""
        self.report.state = ScenarioState.RUNNING
        try:
            await self._provision()
            self.report.state = ScenarioState.COMPLETED
        except BaseException:
            self.report.state = ScenarioState.FAILED
            raise
        finally:
            await self._cleanup()
        return self.report

    async def _provision(self) -> None:
        n = self.names
        azure = self.settings.azure
        sb = self.settings.servicebus
        common = {"clients": self.clients, "resource_group": n.resource_group}

        await resource_groups.create_resource_group(
            clients=self.clients,
            resource_group=n.resource_group,
            location=azure.location,
            tags=azure.tags,
            allowed_locations=azure.allowed_locations,
        )
        self.report.resource_group = n.resource_group
        self._done("create_resource_group")

        logger.info(
            f"Creating name space {n.namespace} along with a queue {n.queue} and a topic "
            f"{n.topic} in resource group {n.resource_group}..."
        )
        namespace = await servicebus.create_namespace(
            **common,
            name=n.namespace,
            location=azure.location,
            sku=sb.sku,
            capacity=sb.capacity,
            tags=azure.tags,
            allowed_locations=azure.allowed_locations,
        )
        self._done("create_namespace")
        await servicebus.create_queue(
            **common, namespace=n.namespace, name=n.queue, max_size_mb=sb.queue_max_size_mb
        )
        self._done("create_queue")
        await servicebus.create_topic(
            **common, namespace=n.namespace, name=n.topic, max_size_mb=sb.topic_max_size_mb
        )
        self._done("create_topic")
        logger.info(f"Created service bus {getattr(namespace, 'name', n.namespace)} (with queue and topic)")

        namespace = await servicebus.get_namespace(**common, name=n.namespace)
        logger.info(format_namespace(namespace))
        queue = await servicebus.get_queue(**common, namespace=n.namespace, name=n.queue)
        logger.info(format_queue(queue))
        topic = await servicebus.get_topic(**common, namespace=n.namespace, name=n.topic)
        logger.info(format_topic(topic))
        self._done("read_back_entities")

        logger.info("Creating a subscription in the topic")
        await servicebus.create_subscription(
            **common,
            namespace=n.namespace,
            topic=n.topic,
            name=n.subscription1,
            requires_session=sb.requires_session,
        )
        self._done("create_subscription1")
        logger.info("Creating another subscription in the topic")
        await servicebus.create_subscription(
            **common,
            namespace=n.namespace,
            topic=n.topic,
            name=n.subscription2,
            requires_session=sb.requires_session,
        )
        self._done("create_subscription2")
        for sub_name in (n.subscription1, n.subscription2):
            sub = await servicebus.get_subscription(
                **common, namespace=n.namespace, topic=n.topic, name=sub_name
            )
            logger.info(format_subscription(sub))

        logger.info("Create authorization rule for namespace ...")
        rule = await servicebus.create_authorization_rule(
            **common, namespace=n.namespace, name=n.namespace_rule, rights=["Send"]
        )
        logger.info(format_authorization_rule(rule))
        self._done("create_namespace_rule")

        queue_rule = await servicebus.create_authorization_rule(
            **common, namespace=n.namespace, queue=n.queue, name=n.queue_rule, rights=["Send"]
        )
        logger.info(format_authorization_rule(queue_rule))
        self._done("create_queue_rule")
        topic_rule = await servicebus.create_authorization_rule(
            **common,
            namespace=n.namespace,
            topic=n.topic,
            name=n.topic_rule,
            rights=["Send", "Listen"],
        )
        logger.info(format_authorization_rule(topic_rule))
        self._done("create_topic_rule")

        logger.info("Getting keys for authorization rule ...")
        keys = await servicebus.list_authorization_rule_keys(
            **common, namespace=n.namespace, name=n.namespace_rule
        )
        missing = [
            attr
            for attr in (
                "primary_key",
                "secondary_key",
                "primary_connection_string",
                "secondary_connection_string",
            )
            if not getattr(keys, attr, None)
        ]
        if missing:
            raise ExternalServiceException(
                f"Authorization rule {n.namespace_rule} returned no {', '.join(missing)}",
                details={"rule": n.namespace_rule, "missing": missing},
            )
        self.report.keys = keys
        # Secret material is printed because this is a demo.
        logger.info(format_keys(keys))
        self._done("list_keys")

        if self.settings.scenario.delete_namespace:
            await self._delete_namespace()

    async def _delete_namespace(self) -> None:
        n = self.names
        logger.info(
            f"Deleting namespace {n.namespace} "
            "[topic, queues and subscription will delete along with that]..."
        )
        try:
            await servicebus.delete_namespace(
                clients=self.clients, resource_group=n.resource_group, name=n.namespace
            )
        except Exception as exc:
            record_error(exc, module=__name__, handled=True)
            logger.debug("scenario.namespace_delete.ignored", error=str(exc))
        logger.info(f"Deleted namespace {n.namespace}...")
        self._done("delete_namespace")

    async def _cleanup(self) -> None:
        self.report.cleanup_attempted = True
        rg = self.report.resource_group
        if rg is None:
            logger.info(NOTHING_TO_CLEAN_UP)
            return
        try:
            logger.info(f"Deleting Resource Group: {rg}")
            await resource_groups.delete_resource_group(
                clients=self.clients,
                resource_group=rg,
                wait=self.settings.scenario.wait_for_cleanup,
            )
            logger.info(f"Deleted Resource Group: {rg}")
        except Exception as exc:
            record_error(exc, module=__name__, handled=True)
            self.report.cleanup_error = str(exc)
            logger.exception("Resource group cleanup failed", resource_group=rg)


async def run_sample(
    clients: Clients,
    *,
    settings: Settings,
    names: ScenarioNames | None = None,
) -> ScenarioReport:
    return await ServiceBusScenario(clients, settings, names).run()
