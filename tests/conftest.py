"""Root conftest -- shared fixtures for topology tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import structlog

from svcmap.topology.memory import InMemoryApplicationCache, InMemoryComponentCatalog
from svcmap.topology.models import Application, ApplicationComponent, Step, TimeWindow


@pytest.fixture(autouse=True)
def _reset_structlog():
    """CLI tests reconfigure structlog globally; restore defaults after each test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def applications() -> list[Application]:
    return [
        Application(application_id=1, application_code="User"),
        Application(application_id=2, application_code="order-service"),
        Application(application_id=3, application_code="payment-service"),
        Application(application_id=4, application_code="10.0.0.5:3306", is_address=True),
        Application(application_id=5, application_code="10.0.0.6:3306", is_address=True),
        Application(application_id=6, application_code="gateway.example.com:443", is_address=True),
        Application(application_id=9, application_code="mysql-cluster"),
    ]


@pytest.fixture
def application_cache(applications: list[Application]) -> InMemoryApplicationCache:
    return InMemoryApplicationCache(applications)


@pytest.fixture
def catalog() -> InMemoryComponentCatalog:
    return InMemoryComponentCatalog(
        components={1: "Tomcat", 2: "HttpClient", 5: "Mysql", 7: "Redis"},
        component_servers={1: 101, 5: 105, 7: 107},
        servers={101: "Tomcat", 105: "MySQL", 107: "Redis"},
    )


@pytest.fixture
def components() -> list[ApplicationComponent]:
    return [
        ApplicationComponent(application_id=2, component_id=1),
        ApplicationComponent(application_id=3, component_id=1),
        ApplicationComponent(application_id=4, component_id=5),
        ApplicationComponent(application_id=5, component_id=5),
        ApplicationComponent(application_id=6, component_id=2),
    ]


@pytest.fixture
def window() -> TimeWindow:
    """Ten minutes: 12:00:00 to 12:10:00 on 2018-01-30."""
    return TimeWindow(
        step=Step.MINUTE,
        start_time_bucket=201801301200,
        end_time_bucket=201801301210,
        start_second_time_bucket=20180130120000,
        end_second_time_bucket=20180130121000,
    )


@pytest.fixture
def snapshot_data() -> dict[str, Any]:
    return {
        "applications": [
            {"application_id": 1, "application_code": "User"},
            {"application_id": 2, "application_code": "order-service"},
            {"application_id": 3, "application_code": "payment-service"},
            {"application_id": 4, "application_code": "10.0.0.5:3306", "is_address": True},
            {"application_id": 5, "application_code": "10.0.0.6:3306", "is_address": True},
            {"application_id": 9, "application_code": "mysql-cluster"},
        ],
        "components": [
            {"application_id": 2, "component_id": 1},
            {"application_id": 3, "component_id": 1},
            {"application_id": 4, "component_id": 5},
            {"application_id": 5, "component_id": 5},
        ],
        "component_catalog": {
            "components": {"1": "Tomcat", "5": "Mysql"},
            "component_servers": {"1": 101, "5": 105},
            "servers": {"101": "Tomcat", "105": "MySQL"},
        },
        "mappings": [{"application_id": 9, "mapping_application_id": 5}],
        "application_metrics": [
            {
                "id": 2,
                "calls": 100,
                "error_calls": 5,
                "durations": 50000,
                "satisfied_count": 90,
                "tolerating_count": 10,
                "frustrated_count": 0,
            },
        ],
        "caller_metrics": [
            {"source": 2, "target": 3, "calls": 60, "durations": 1800},
            {"source": 2, "target": 4, "calls": 30, "durations": 300},
            {"source": 2, "target": 5, "calls": 20, "durations": 200},
            {"source": 0, "target": 2, "calls": 10, "durations": 100},
        ],
        "callee_metrics": [
            {"source": 1, "target": 2, "calls": 100, "durations": 50000},
        ],
        "servers": [
            {
                "id": 11,
                "application_id": 2,
                "register_time_bucket": 20180130100000,
                "heartbeat_time_bucket": 20180130120500,
            },
        ],
        "alarms": {
            "instance": [{"id": "i1", "time_bucket": 20180130120300}],
        },
        "window": {
            "step": "minute",
            "start_time_bucket": 201801301200,
            "end_time_bucket": 201801301209,
            "start_second_time_bucket": 20180130120000,
            "end_second_time_bucket": 20180130121000,
        },
    }


@pytest.fixture
def write_snapshot(tmp_path: Path, snapshot_data: dict[str, Any]) -> Callable[..., Path]:
    """Write a snapshot file; defaults to ``snapshot_data``."""

    def _write(data: dict[str, Any] | None = None) -> Path:
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps(data if data is not None else snapshot_data))
        return path

    return _write
