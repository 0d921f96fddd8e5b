"""
Domain models for topology nodes, links and metric values.

All models are frozen: the engine only ever reads a topology, and every
derived structure is rebuilt from scratch on each pipeline run.
"""
from typing import Optional, List, Dict
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from plantscope.topology.types import NodeType, TopologyType, VariableKind


class Variable(BaseModel):
    """A measurable property such as power or temperature."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    kind: VariableKind
    unit: str
    sit: int = Field(default=0, ge=0, description="Minimum sample interval in minutes")
    integrated: bool = False  # Part of branch-level consolidation


class MetricValue(BaseModel):
    """A measurement of a variable for a node at a point in time."""
    model_config = ConfigDict(frozen=True)

    value: float
    timestamp: datetime
    variable: Variable


class Node(BaseModel):
    """An infrastructure component (UPS, PDU, server, ...)."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: NodeType
    topologies: List[TopologyType] = Field(default_factory=list)
    parents: List[str] = Field(default_factory=list)
    children: List[str] = Field(default_factory=list)
    metrics: List[MetricValue] = Field(default_factory=list)
    alerts: Optional[List[str]] = None
    c_sit: Optional[int] = Field(default=None, ge=0, description="Consolidated sample interval in minutes")
    rit: Optional[int] = Field(default=None, ge=0, description="Report interval in minutes")

    def has_children(self) -> bool:
        return len(self.children) > 0

    def has_parents(self) -> bool:
        return len(self.parents) > 0

    def belongs_to_topology(self, topology_type: TopologyType) -> bool:
        return topology_type in self.topologies

    def get_metric(self, variable_id: str) -> Optional[MetricValue]:
        """Get the metric value recorded for a variable, if any."""
        for metric in self.metrics:
            if metric.variable.id == variable_id:
                return metric
        return None

    def has_alerts(self) -> bool:
        return bool(self.alerts)

    def __repr__(self) -> str:
        return f"Node(id={self.id}, name={self.name}, type={self.type.value})"


class Link(BaseModel):
    """A directed parent → child connection in a topology."""
    model_config = ConfigDict(frozen=True)

    id: str
    source: str
    target: str
    topology: TopologyType = TopologyType.ELECTRICAL


class Topology(BaseModel):
    """
    An immutable plant graph: nodes keyed by id plus an explicit link list.

    Parent/child ids that are not present in ``nodes`` are treated as absent
    by every accessor below.
    """
    model_config = ConfigDict(frozen=True)

    type: TopologyType = TopologyType.ELECTRICAL
    nodes: Dict[str, Node] = Field(default_factory=dict)
    links: List[Link] = Field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[Node]:
        return self.nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def all_nodes(self) -> List[Node]:
        return list(self.nodes.values())

    def all_node_ids(self) -> List[str]:
        return list(self.nodes.keys())

    def links_between(self, source_id: str, target_id: str) -> List[Link]:
        return [link for link in self.links if link.source == source_id and link.target == target_id]

    def has_link(self, source_id: str, target_id: str) -> bool:
        return any(link.source == source_id and link.target == target_id for link in self.links)

    def connected_links(self, node_id: str) -> List[Link]:
        """Get all links entering or leaving a node."""
        return [link for link in self.links if link.source == node_id or link.target == node_id]

    def parent_nodes(self, node_id: str) -> List[Node]:
        node = self.nodes.get(node_id)
        if node is None:
            return []
        return [self.nodes[pid] for pid in node.parents if pid in self.nodes]

    def child_nodes(self, node_id: str) -> List[Node]:
        node = self.nodes.get(node_id)
        if node is None:
            return []
        return [self.nodes[cid] for cid in node.children if cid in self.nodes]

    def __repr__(self) -> str:
        return f"Topology(type={self.type.value}, nodes={len(self.nodes)}, links={len(self.links)})"


def create_link_id(source: str, target: str) -> str:
    """Build the canonical id for a link between two nodes."""
    return f"{source}->{target}"


def format_metric_value(metric: MetricValue, decimals: int = 2) -> str:
    """Format a metric for display, e.g. ``"12.50 kW"``."""
    return f"{metric.value:.{decimals}f} {metric.variable.unit}"
