"""Shared fixtures for analytics engine tests"""

from datetime import datetime

import pytest

from analytics_engine.models import MetricDefinition, MetricThreshold
from tests.helpers import FakeClock


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 4, 12, 0, 0))


@pytest.fixture
def ctr_definition():
    return MetricDefinition(
        id="ctr",
        name="Click-Through Rate",
        unit="%",
        threshold=MetricThreshold(warning=2.0, critical=1.0),
    )
