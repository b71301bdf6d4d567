import asyncio

import pytest
from azure.core.exceptions import HttpResponseError
from structlog.testing import capture_logs

from servicebus_sample.core.exceptions import ExternalServiceException
from servicebus_sample.scenario import (
    NOTHING_TO_CLEAN_UP,
    ScenarioState,
    ServiceBusScenario,
    run_sample,
)
from servicebus_sample.tools.azure.clients import AzureOperationError
from servicebus_sample.tools.azure.naming import ScenarioNames

CREATE_OPS = [
    "resource_groups.create_or_update",
    "namespaces.begin_create_or_update",
    "queues.create_or_update",
    "topics.create_or_update",
    "subscriptions.create_or_update",
]


def _names() -> ScenarioNames:
    return ScenarioNames(
        resource_group="rgSB03_test",
        namespace="namespacetest01",
        queue="queue1_test",
        topic="topic_test",
        subscription1="sub1_test",
        subscription2="sub2_test",
        namespace_rule="SendRule",
        queue_rule="QueueSendRule",
        topic_rule="TopicSendListenRule",
    )


def _run(scenario: ServiceBusScenario):
    return asyncio.run(scenario.run())


def test_successful_run_creates_each_resource_once_in_parent_order(fake_azure, settings) -> None:
    report = asyncio.run(run_sample(fake_azure.clients(), settings=settings, names=_names()))

    ops = fake_azure.ops()
    assert report.state is ScenarioState.COMPLETED
    for op in CREATE_OPS[:4]:
        assert ops.count(op) == 1
    assert ops.count("subscriptions.create_or_update") == 2

    first = [ops.index(op) for op in CREATE_OPS]
    assert first == sorted(first)

    sub_names = [args[3] for op, args in fake_azure.calls if op == "subscriptions.create_or_update"]
    assert sub_names == ["sub1_test", "sub2_test"]


def test_successful_run_deletes_namespace_then_resource_group(fake_azure, settings) -> None:
    report = _run(ServiceBusScenario(fake_azure.clients(), settings, _names()))

    ops = fake_azure.ops()
    assert ops[-2:] == ["namespaces.begin_delete", "resource_groups.begin_delete"]
    assert report.cleanup_attempted is True
    assert report.cleanup_error is None
    assert report.steps[0] == "create_resource_group"
    assert "delete_namespace" in report.steps


def test_namespace_rule_exposes_keys(fake_azure, settings) -> None:
    report = _run(ServiceBusScenario(fake_azure.clients(), settings, _names()))

    keys = report.keys
    assert keys.primary_key
    assert keys.secondary_key
    assert keys.primary_connection_string.startswith("Endpoint=sb://")
    assert keys.secondary_connection_string.startswith("Endpoint=sb://")

    rule_calls = [args for op, args in fake_azure.calls if op == "namespaces.create_or_update_authorization_rule"]
    assert len(rule_calls) == 1
    assert rule_calls[0][2] == "SendRule"
    assert list(rule_calls[0][3].rights) == ["Send"]


def test_entity_rules_are_scoped_to_queue_and_topic(fake_azure, settings) -> None:
    _run(ServiceBusScenario(fake_azure.clients(), settings, _names()))

    queue_rules = [args for op, args in fake_azure.calls if op == "queues.create_or_update_authorization_rule"]
    topic_rules = [args for op, args in fake_azure.calls if op == "topics.create_or_update_authorization_rule"]
    assert [a[2] for a in queue_rules] == ["queue1_test"]
    assert list(queue_rules[0][4].rights) == ["Send"]
    assert [a[2] for a in topic_rules] == ["topic_test"]
    assert list(topic_rules[0][4].rights) == ["Send", "Listen"]


def test_empty_keys_fail_the_run(fake_azure, settings) -> None:
    fake_azure.empty_keys = True
    scenario = ServiceBusScenario(fake_azure.clients(), settings, _names())

    with pytest.raises(ExternalServiceException):
        _run(scenario)

    assert scenario.report.state is ScenarioState.FAILED
    assert fake_azure.ops().count("resource_groups.begin_delete") == 1


def test_namespace_failure_stops_before_children(fake_azure, settings) -> None:
    fake_azure.failures["namespaces.begin_create_or_update"] = HttpResponseError(message="conflict")
    scenario = ServiceBusScenario(fake_azure.clients(), settings, _names())

    with pytest.raises(AzureOperationError):
        _run(scenario)

    ops = fake_azure.ops()
    assert "queues.create_or_update" not in ops
    assert "topics.create_or_update" not in ops
    assert "subscriptions.create_or_update" not in ops
    assert ops.count("resource_groups.begin_delete") == 1
    assert scenario.report.state is ScenarioState.FAILED
    assert scenario.report.steps == ["create_resource_group"]


@pytest.mark.parametrize(
    "failing_op",
    [
        "queues.create_or_update",
        "topics.get",
        "subscriptions.create_or_update",
        "topics.create_or_update_authorization_rule",
        "namespaces.list_keys",
    ],
)
def test_cleanup_runs_exactly_once_wherever_the_failure_happens(
    fake_azure, settings, failing_op
) -> None:
    fake_azure.failures[failing_op] = HttpResponseError(message="boom")
    scenario = ServiceBusScenario(fake_azure.clients(), settings, _names())

    with pytest.raises(AzureOperationError):
        _run(scenario)

    assert fake_azure.ops().count("resource_groups.begin_delete") == 1
    assert scenario.report.cleanup_attempted is True
    assert "namespaces.begin_delete" not in fake_azure.ops()


def test_cleanup_errors_do_not_propagate(fake_azure, settings) -> None:
    fake_azure.failures["resource_groups.begin_delete"] = HttpResponseError(message="locked")

    report = _run(ServiceBusScenario(fake_azure.clients(), settings, _names()))

    assert report.state is ScenarioState.COMPLETED
    assert report.cleanup_error is not None
    assert "locked" in report.cleanup_error


def test_cleanup_errors_do_not_mask_the_original_failure(fake_azure, settings) -> None:
    fake_azure.failures["topics.create_or_update"] = HttpResponseError(message="quota")
    fake_azure.failures["resource_groups.begin_delete"] = HttpResponseError(message="locked")
    scenario = ServiceBusScenario(fake_azure.clients(), settings, _names())

    with pytest.raises(AzureOperationError, match="quota"):
        _run(scenario)

    assert scenario.report.cleanup_error is not None


def test_namespace_delete_errors_are_swallowed(fake_azure, settings) -> None:
    fake_azure.failures["namespaces.begin_delete"] = HttpResponseError(message="gone")

    report = _run(ServiceBusScenario(fake_azure.clients(), settings, _names()))

    assert report.state is ScenarioState.COMPLETED
    assert fake_azure.ops()[-1] == "resource_groups.begin_delete"


def test_failure_before_resource_group_skips_delete(fake_azure, settings) -> None:
    fake_azure.failures["resource_groups.create_or_update"] = HttpResponseError(message="denied")
    scenario = ServiceBusScenario(fake_azure.clients(), settings, _names())

    with capture_logs() as logs, pytest.raises(AzureOperationError):
        _run(scenario)

    assert "resource_groups.begin_delete" not in fake_azure.ops()
    assert scenario.report.resource_group is None
    assert scenario.report.cleanup_attempted is True
    assert any(entry["event"] == NOTHING_TO_CLEAN_UP for entry in logs)


def test_cleanup_without_wait_only_starts_the_delete(fake_azure, settings) -> None:
    settings = settings.model_copy(
        update={"scenario": settings.scenario.model_copy(update={"wait_for_cleanup": False})}
    )
    fake_azure.failures["resource_groups.begin_delete"] = HttpResponseError(message="slow")

    report = _run(ServiceBusScenario(fake_azure.clients(), settings, _names()))

    # The poller is never waited on, so its failure is not observed.
    assert report.cleanup_error is None


def test_keep_namespace_skips_namespace_delete(fake_azure, settings) -> None:
    settings = settings.model_copy(
        update={"scenario": settings.scenario.model_copy(update={"delete_namespace": False})}
    )

    _run(ServiceBusScenario(fake_azure.clients(), settings, _names()))

    assert "namespaces.begin_delete" not in fake_azure.ops()
    assert fake_azure.ops()[-1] == "resource_groups.begin_delete"


def test_generated_names_are_used_when_none_given(fake_azure, settings) -> None:
    scenario = ServiceBusScenario(fake_azure.clients(), settings)

    _run(scenario)

    rg_args = [args for op, args in fake_azure.calls if op == "resource_groups.create_or_update"]
    assert rg_args[0][0] == scenario.names.resource_group
    assert scenario.names.resource_group.startswith("rgSB03_")
