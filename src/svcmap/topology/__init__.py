"""Service dependency topology for svcmap.

Builds the dashboard graph of instrumented applications, conjectural
external endpoints and end users from one window of metric rows.
"""

from svcmap.topology.builder import TopologyBuilder
from svcmap.topology.models import (
    ApplicationNode,
    Call,
    ConjecturalNode,
    Node,
    NodeKind,
    Topology,
    VisualUserNode,
)

__all__ = [
    "ApplicationNode",
    "Call",
    "ConjecturalNode",
    "Node",
    "NodeKind",
    "Topology",
    "TopologyBuilder",
    "VisualUserNode",
]
