from __future__ import annotations

import pytest
from fakes import SUBSCRIPTION_ID, FakeAzure

from servicebus_sample.core.config import AzureConfig, ScenarioConfig, Settings


@pytest.fixture
def fake_azure() -> FakeAzure:
    return FakeAzure()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        azure=AzureConfig(subscription_id=SUBSCRIPTION_ID, location="westus", auth_file=None),
        scenario=ScenarioConfig(wait_for_cleanup=True),
    )
