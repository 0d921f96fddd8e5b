"""
Render graph: the snapshot handed to the diagram renderer.
"""
from typing import AbstractSet, Dict, FrozenSet, List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field

from plantscope.folding import MetaNode
from plantscope.links import ComposedEdge, EdgeKind
from plantscope.scope import HiddenBranchInfo, ScopeResult, get_branch_nodes, get_hidden_branches_for_node
from plantscope.topology.models import MetricValue, Node, Topology, Variable
from plantscope.topology.types import NodeType


class RenderNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: NodeType
    metric: str = ""
    tooltip_metric: str = ""
    tooltip_alerts: str = ""
    is_highlighted: bool = False
    is_msn: bool = False
    can_open_branch: bool = False
    hidden_branches: List[HiddenBranchInfo] = Field(default_factory=list)

    @property
    def has_hidden_branches(self) -> bool:
        return len(self.hidden_branches) > 0


class RenderMetaNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: NodeType
    count: int
    node_ids: List[str]
    title: str
    metric: str = ""
    can_open_branch: bool = False
    hidden_branches: List[HiddenBranchInfo] = Field(default_factory=list)

    @property
    def has_hidden_branches(self) -> bool:
        return len(self.hidden_branches) > 0


class RenderEdge(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    kind: EdgeKind
    via_nodes: List[str] = Field(default_factory=list)
    via_label: str = ""
    is_highlighted: bool = False

    @property
    def key(self) -> Tuple[str, str]:
        return (self.source, self.target)


class RenderGraph(BaseModel):
    """A complete, self-consistent view of the scope."""
    model_config = ConfigDict(frozen=True)

    scope: ScopeResult
    nodes: List[RenderNode] = Field(default_factory=list)
    meta_nodes: List[RenderMetaNode] = Field(default_factory=list)
    edges: List[RenderEdge] = Field(default_factory=list)

    def node_ids(self) -> FrozenSet[str]:
        return frozenset(node.id for node in self.nodes)

    def meta_node_ids(self) -> FrozenSet[str]:
        return frozenset(meta.id for meta in self.meta_nodes)

    def edge_keys(self) -> FrozenSet[Tuple[str, str]]:
        return frozenset(edge.key for edge in self.edges)

    def edges_of_kind(self, kind: EdgeKind) -> List[RenderEdge]:
        return [edge for edge in self.edges if edge.kind == kind]


def _metric_strings(metric: Optional[MetricValue], variable: Variable, decimals: int) -> Tuple[str, str]:
    if metric is None:
        return "", ""
    text = f"{metric.value:.{decimals}f} {metric.variable.unit}"
    return text, f"{variable.name}: {text}"


def build_render_node(
    node: Node,
    topology: Topology,
    scope: ScopeResult,
    hidden_branch_roots: AbstractSet[str],
    overlay_variable: Optional[Variable] = None,
    highlighted_ids: AbstractSet[str] = frozenset(),
    metric_decimals: int = 1
) -> RenderNode:
    metric_text, tooltip_metric = "", ""
    if overlay_variable is not None:
        metric_text, tooltip_metric = _metric_strings(
            node.get_metric(overlay_variable.id), overlay_variable, metric_decimals
        )

    tooltip_alerts = f"Alerts: {', '.join(node.alerts)}" if node.has_alerts() else ""
    branch_size = len(get_branch_nodes(node.id, topology)) if node.has_children() else 0

    return RenderNode(
        id=node.id,
        name=node.name,
        type=node.type,
        metric=metric_text,
        tooltip_metric=tooltip_metric,
        tooltip_alerts=tooltip_alerts,
        is_highlighted=node.id in highlighted_ids,
        is_msn=node.id == scope.msn,
        can_open_branch=branch_size > 1,
        hidden_branches=get_hidden_branches_for_node(node.id, hidden_branch_roots, topology),
    )


def build_render_meta_node(
    meta_node: MetaNode,
    topology: Topology,
    hidden_branch_roots: AbstractSet[str],
    overlay_variable: Optional[Variable] = None,
    metric_decimals: int = 1
) -> RenderMetaNode:
    metric_text = ""
    if overlay_variable is not None:
        metric_text, _ = _metric_strings(
            meta_node.get_metric(overlay_variable.id), overlay_variable, metric_decimals
        )

    # Hidden branches of every member, one entry per root
    hidden: Dict[str, HiddenBranchInfo] = {}
    for node_id in meta_node.node_ids:
        for info in get_hidden_branches_for_node(node_id, hidden_branch_roots, topology):
            hidden.setdefault(info.root_id, info)

    return RenderMetaNode(
        id=meta_node.id,
        type=meta_node.type,
        count=meta_node.count,
        node_ids=list(meta_node.node_ids),
        title=f"{meta_node.type.value} × {meta_node.count}",
        metric=metric_text,
        can_open_branch=False,
        hidden_branches=list(hidden.values()),
    )


def build_render_edge(edge: ComposedEdge, highlighted_ids: AbstractSet[str] = frozenset()) -> RenderEdge:
    """Render an edge; it is highlighted when both endpoints are in the highlighted branch."""
    return RenderEdge(
        source=edge.source,
        target=edge.target,
        kind=edge.kind,
        via_nodes=list(edge.via_nodes),
        via_label=(edge.description or "") if edge.kind == EdgeKind.HOP else "",
        is_highlighted=edge.source in highlighted_ids and edge.target in highlighted_ids,
    )


def highlighted_node_ids(root_id: Optional[str], topology: Topology) -> Set[str]:
    """Nodes to highlight for the selected branch root (none when no root is set)."""
    if not root_id:
        return set()
    return set(get_branch_nodes(root_id, topology))
