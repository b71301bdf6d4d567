from __future__ import annotations

from types import SimpleNamespace
from typing import Any

from servicebus_sample.tools.azure.clients import Clients

SUBSCRIPTION_ID = "00000000-0000-0000-0000-000000000001"


class FakePoller:
    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self._result = result
        self._error = error

    def result(self) -> Any:
        if self._error is not None:
            raise self._error
        return self._result

    def status(self) -> str:
        return "Failed" if self._error is not None else "Succeeded"


class _Operations:
    def __init__(self, azure: FakeAzure, group: str) -> None:
        self._azure = azure
        self._group = group

    def __getattr__(self, method: str) -> Any:
        if method.startswith("_"):
            raise AttributeError(method)
        op = f"{self._group}.{method}"

        def _call(*args: Any) -> Any:
            self._azure.calls.append((op, args))
            error = self._azure.failures.get(op)
            if method.startswith("begin_"):
                return FakePoller(None if error else self._azure.result_for(op, args), error)
            if error is not None:
                raise error
            return self._azure.result_for(op, args)

        _call.__name__ = method
        return _call


class FakeAzure:
    """In-memory stand-in for the resource and Service Bus management clients."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.failures: dict[str, Exception] = {}
        self.res = SimpleNamespace(resource_groups=_Operations(self, "resource_groups"))
        self.sb = SimpleNamespace(
            namespaces=_Operations(self, "namespaces"),
            queues=_Operations(self, "queues"),
            topics=_Operations(self, "topics"),
            subscriptions=_Operations(self, "subscriptions"),
        )
        self.empty_keys = False

    def clients(self) -> Clients:
        return Clients(subscription_id=SUBSCRIPTION_ID, cred=object(), res=self.res, sb=self.sb)

    def ops(self) -> list[str]:
        return [op for op, _ in self.calls]

    def result_for(self, op: str, args: tuple[Any, ...]) -> Any:
        group, method = op.split(".", 1)
        if method.startswith("begin_delete"):
            return None
        rg = args[0]
        base = f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{rg}"
        if group == "resource_groups":
            return SimpleNamespace(id=base, name=rg, location=args[1]["location"])

        ns = args[1]
        ns_id = f"{base}/providers/Microsoft.ServiceBus/namespaces/{ns}"
        if method == "list_keys":
            if self.empty_keys:
                return SimpleNamespace(
                    primary_key="",
                    secondary_key=None,
                    primary_connection_string="",
                    secondary_connection_string=None,
                )
            return SimpleNamespace(
                key_name=args[-1],
                primary_key="cHJpbWFyeQ==",
                secondary_key="c2Vjb25kYXJ5",
                primary_connection_string=f"Endpoint=sb://{ns}.servicebus.windows.net/;SharedAccessKeyName={args[-1]};SharedAccessKey=cHJpbWFyeQ==",
                secondary_connection_string=f"Endpoint=sb://{ns}.servicebus.windows.net/;SharedAccessKeyName={args[-1]};SharedAccessKey=c2Vjb25kYXJ5",
            )
        if method == "create_or_update_authorization_rule":
            name, params = args[-2], args[-1]
            scope = {"queues": f"/queues/{args[2]}", "topics": f"/topics/{args[2]}"}.get(group, "")
            return SimpleNamespace(
                id=f"{ns_id}{scope}/authorizationRules/{name}",
                name=name,
                rights=list(params.rights),
            )
        if group == "namespaces":
            return SimpleNamespace(
                id=ns_id,
                name=ns,
                location="westus",
                sku=SimpleNamespace(name="Standard", tier="Standard", capacity=None),
                service_bus_endpoint=f"https://{ns}.servicebus.windows.net:443/",
                created_at="2024-01-01T00:00:00Z",
                updated_at="2024-01-01T00:00:00Z",
            )
        if group in ("queues", "topics"):
            name = args[2]
            params = args[3] if len(args) > 3 else None
            return SimpleNamespace(
                id=f"{ns_id}/{group}/{name}",
                name=name,
                max_size_in_megabytes=getattr(params, "max_size_in_megabytes", 1024),
                status="Active",
            )
        if group == "subscriptions":
            topic, name = args[2], args[3]
            params = args[4] if len(args) > 4 else None
            return SimpleNamespace(
                id=f"{ns_id}/topics/{topic}/subscriptions/{name}",
                name=name,
                requires_session=getattr(params, "requires_session", False),
                status="Active",
            )
        raise AssertionError(f"unexpected operation {op}")


