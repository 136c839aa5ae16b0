"""JSON snapshots of one dashboard window.

A snapshot bundles the metric rows of a window with the collaborator data
needed to build its topology, so a graph can be rebuilt offline.
"""

from __future__ import annotations

import json
from pathlib import Path

import pydantic
import structlog
from pydantic import BaseModel, Field

from svcmap.config import Settings
from svcmap.exceptions import SnapshotError
from svcmap.topology.builder import TopologyBuilder
from svcmap.topology.memory import (
    InMemoryAlarmService,
    InMemoryApplicationCache,
    InMemoryComponentCatalog,
    InMemoryServerService,
)
from svcmap.topology.models import (
    AlarmItem,
    AlarmScope,
    Application,
    ApplicationComponent,
    ApplicationMapping,
    ApplicationMetric,
    ApplicationReferenceMetric,
    ServerInstance,
    TimeWindow,
    Topology,
)
from svcmap.topology.time_buckets import TimeBucketDateBetweenService

logger = structlog.get_logger()


class ComponentCatalogData(BaseModel):
    components: dict[int, str] = Field(default_factory=dict)
    component_servers: dict[int, int] = Field(default_factory=dict)
    servers: dict[int, str] = Field(default_factory=dict)


class AlarmData(BaseModel):
    application: list[AlarmItem] = Field(default_factory=list)
    instance: list[AlarmItem] = Field(default_factory=list)
    service: list[AlarmItem] = Field(default_factory=list)

    def items(self) -> list[AlarmItem]:
        scoped: list[AlarmItem] = []
        for scope, items in (
            (AlarmScope.APPLICATION, self.application),
            (AlarmScope.INSTANCE, self.instance),
            (AlarmScope.SERVICE, self.service),
        ):
            scoped.extend(item.model_copy(update={"scope": scope}) for item in items)
        return scoped


class Snapshot(BaseModel):
    applications: list[Application] = Field(default_factory=list)
    components: list[ApplicationComponent] = Field(default_factory=list)
    component_catalog: ComponentCatalogData = Field(default_factory=ComponentCatalogData)
    mappings: list[ApplicationMapping] = Field(default_factory=list)
    application_metrics: list[ApplicationMetric] = Field(default_factory=list)
    caller_metrics: list[ApplicationReferenceMetric] = Field(default_factory=list)
    callee_metrics: list[ApplicationReferenceMetric] = Field(default_factory=list)
    servers: list[ServerInstance] = Field(default_factory=list)
    alarms: AlarmData = Field(default_factory=AlarmData)
    window: TimeWindow


def load_snapshot(path: str | Path) -> Snapshot:
    """Read and validate a snapshot file."""
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise SnapshotError(f"Cannot read snapshot {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Snapshot {path} is not valid JSON: {e}") from e

    try:
        snapshot = Snapshot.model_validate(raw)
    except pydantic.ValidationError as e:
        raise SnapshotError(
            f"Snapshot {path} does not match the expected schema",
            extra={"errors": e.errors(include_url=False)},
        ) from e

    logger.info(
        "snapshot_loaded",
        path=str(path),
        applications=len(snapshot.applications),
        application_metrics=len(snapshot.application_metrics),
        caller_metrics=len(snapshot.caller_metrics),
        callee_metrics=len(snapshot.callee_metrics),
    )
    return snapshot


def builder_for_snapshot(snapshot: Snapshot, settings: Settings | None = None) -> TopologyBuilder:
    """Wire a builder to in-memory services holding the snapshot's data."""
    application_cache = InMemoryApplicationCache(snapshot.applications)
    catalog = snapshot.component_catalog
    return TopologyBuilder(
        application_cache=application_cache,
        component_catalog=InMemoryComponentCatalog(
            components=catalog.components,
            component_servers=catalog.component_servers,
            servers=catalog.servers,
        ),
        server_service=InMemoryServerService(snapshot.servers),
        date_between_service=TimeBucketDateBetweenService(application_cache),
        alarm_service=InMemoryAlarmService(snapshot.alarms.items()),
        settings=settings,
    )


def build_from_snapshot(snapshot: Snapshot, settings: Settings | None = None) -> Topology:
    window = snapshot.window
    return builder_for_snapshot(snapshot, settings).build(
        application_components=snapshot.components,
        application_mappings=snapshot.mappings,
        application_metrics=snapshot.application_metrics,
        caller_reference_metrics=snapshot.caller_metrics,
        callee_reference_metrics=snapshot.callee_metrics,
        step=window.step,
        start_time_bucket=window.start_time_bucket,
        end_time_bucket=window.end_time_bucket,
        start_second_time_bucket=window.start_second_time_bucket,
        end_second_time_bucket=window.end_second_time_bucket,
    )
