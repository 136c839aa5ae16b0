"""Data models for the service topology graph.

Input rows mirror what the metric DAOs return for one dashboard window;
output models are the graph handed to the presentation layer.
"""

from __future__ import annotations

import enum
from fractions import Fraction
from typing import Annotated, Literal

from pydantic import BaseModel, Field

# -- Enums --------------------------------------------------------------------


class Step(enum.StrEnum):
    MONTH = "month"
    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"
    SECOND = "second"


class NodeKind(enum.StrEnum):
    APPLICATION = "application"
    CONJECTURAL = "conjectural"
    USER = "user"


class AlarmScope(enum.StrEnum):
    APPLICATION = "application"
    INSTANCE = "instance"
    SERVICE = "service"


# -- Metadata -----------------------------------------------------------------


class Application(BaseModel):
    """Registered application (or address) as held by the metadata cache."""

    application_id: int
    application_code: str
    is_address: bool = False
    register_time_bucket: int | None = None


class ServerInstance(BaseModel):
    id: int
    application_id: int
    host_name: str = ""
    register_time_bucket: int = 0
    heartbeat_time_bucket: int = 0


class AlarmItem(BaseModel):
    id: str = ""
    title: str = ""
    content: str = ""
    scope: AlarmScope = AlarmScope.APPLICATION
    time_bucket: int = 0


class Alarm(BaseModel):
    items: list[AlarmItem] = Field(default_factory=list)
    total: int = 0


# -- Metric rows --------------------------------------------------------------


class TimeWindow(BaseModel):
    """Dashboard query window.

    ``start_time_bucket``/``end_time_bucket`` are at ``step`` granularity;
    the second buckets bound the same window at second granularity.
    """

    step: Step
    start_time_bucket: int
    end_time_bucket: int
    start_second_time_bucket: int
    end_second_time_bucket: int


class ApplicationComponent(BaseModel):
    application_id: int
    component_id: int


class ApplicationMapping(BaseModel):
    """Maps a duplicate address application onto its canonical application."""

    application_id: int
    mapping_application_id: int


class ApplicationMetric(BaseModel):
    id: int
    calls: int = 0
    error_calls: int = 0
    durations: int = 0
    error_durations: int = 0
    satisfied_count: int = 0
    tolerating_count: int = 0
    frustrated_count: int = 0


class ApplicationReferenceMetric(BaseModel):
    source: int
    target: int
    calls: int = 0
    error_calls: int = 0
    durations: int = 0
    error_durations: int = 0


# -- Graph --------------------------------------------------------------------


class ApplicationNode(BaseModel):
    kind: Literal[NodeKind.APPLICATION] = NodeKind.APPLICATION
    id: int
    name: str
    type: str
    sla: int = 0
    cpm: int = 0
    avg_response_time: Fraction = Fraction(0)  # exact durations / calls
    apdex: int = 0
    alarm: bool = False
    num_of_server: int = 0
    num_of_server_alarm: int = 0
    num_of_service_alarm: int = 0


class ConjecturalNode(BaseModel):
    """Un-instrumented endpoint (database, cache, third-party host)."""

    kind: Literal[NodeKind.CONJECTURAL] = NodeKind.CONJECTURAL
    id: int
    name: str
    type: str


class VisualUserNode(BaseModel):
    """Anonymous end-user traffic entering the instrumented system."""

    kind: Literal[NodeKind.USER] = NodeKind.USER
    id: int
    name: str
    type: str


Node = Annotated[
    ApplicationNode | ConjecturalNode | VisualUserNode,
    Field(discriminator="kind"),
]


class Call(BaseModel):
    source: int
    source_name: str
    target: int
    target_name: str
    call_type: str
    cpm: int = 0
    avg_response_time: Fraction = Fraction(0)
    alert: bool = False


class Topology(BaseModel):
    nodes: list[Node] = Field(default_factory=list)
    calls: list[Call] = Field(default_factory=list)

    def node_ids(self) -> set[int]:
        return {node.id for node in self.nodes}

    def get_node(self, node_id: int) -> ApplicationNode | ConjecturalNode | VisualUserNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None
