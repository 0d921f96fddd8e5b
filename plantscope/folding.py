"""
Folding Engine: groups same-type nodes into meta-nodes.
"""
import logging
from collections import Counter
from typing import AbstractSet, Dict, Iterable, List, NamedTuple, Optional, Set, TypeVar

from pydantic import BaseModel, ConfigDict

from plantscope.aggregator import ConsolidatedMetric, MetricAggregator
from plantscope.scope import get_branch_nodes
from plantscope.topology.models import MetricValue, Node, Topology
from plantscope.topology.types import NodeType

log = logging.getLogger(__name__)

META_PREFIX = "meta-"

DEFAULT_AUTO_FOLD_THRESHOLD = 10


class MetaNode(BaseModel):
    """A folded group of nodes of one type."""
    model_config = ConfigDict(frozen=True)

    id: str
    type: NodeType
    count: int
    node_ids: List[str]
    consolidated_metrics: List[MetricValue]

    def contains(self, node_id: str) -> bool:
        return node_id in self.node_ids

    def get_metric(self, variable_id: str) -> Optional[MetricValue]:
        for metric in self.consolidated_metrics:
            if metric.variable.id == variable_id:
                return metric
        return None

    @property
    def display_name(self) -> str:
        return f"{self.type.value} ({self.count})"


class BranchData(BaseModel):
    """Aggregated view of a node and all of its descendants."""
    model_config = ConfigDict(frozen=True)

    root_node_id: str
    node_type_counts: Dict[NodeType, int]
    consolidated_metrics: List[ConsolidatedMetric]
    total_nodes: int

    def get_node_type_count(self, node_type: NodeType) -> int:
        return self.node_type_counts.get(node_type, 0)

    def has_node_type(self, node_type: NodeType) -> bool:
        return self.get_node_type_count(node_type) > 0

    def get_metric(self, variable_id: str) -> Optional[ConsolidatedMetric]:
        for metric in self.consolidated_metrics:
            if metric.id == variable_id:
                return metric
        return None


class FoldResult(NamedTuple):
    unfolded: List[Node]
    meta_nodes: List[MetaNode]


def create_meta_node_id(node_type: NodeType) -> str:
    return f"{META_PREFIX}{NodeType(node_type).value}"


def is_meta_node_id(node_id: str) -> bool:
    return node_id.startswith(META_PREFIX)


def get_meta_node_type(node_id: str) -> Optional[NodeType]:
    """Extract the node type from a meta-node id, or None for other ids."""
    if not is_meta_node_id(node_id):
        return None
    try:
        return NodeType(node_id[len(META_PREFIX):])
    except ValueError:
        return None


L = TypeVar("L")


class FoldingEngine:
    """
    Partitions visible nodes into unfolded nodes and per-type meta-nodes.

    The engine does not care why a node is folded: callers pass the folded
    id set, typically seeded by ``auto_fold_node_ids``.
    """

    def __init__(self, aggregator: Optional[MetricAggregator] = None):
        self.aggregator = aggregator or MetricAggregator()

    def fold_node_type(self, node_type: NodeType, nodes: List[Node]) -> MetaNode:
        """
        Create a meta-node for a group of nodes of one type.

        Args:
            node_type: Type shared by every node in the group
            nodes: Nodes to fold, in display order

        Returns:
            MetaNode with one consolidated metric per distinct variable
        """
        consolidated = self.aggregator.consolidate(
            metric for node in nodes for metric in node.metrics
        )
        return MetaNode(
            id=create_meta_node_id(node_type),
            type=node_type,
            count=len(nodes),
            node_ids=[node.id for node in nodes],
            consolidated_metrics=consolidated,
        )

    def fold_nodes(self, visible_nodes: Iterable[Node], folded_ids: AbstractSet[str]) -> FoldResult:
        """
        Split visible nodes into unfolded nodes and meta-nodes.

        Meta-nodes are ordered by where their type first appears among the
        folded nodes.
        """
        unfolded = []
        folded_by_type: Dict[NodeType, List[Node]] = {}

        for node in visible_nodes:
            if node.id in folded_ids:
                folded_by_type.setdefault(node.type, []).append(node)
            else:
                unfolded.append(node)

        meta_nodes = [
            self.fold_node_type(node_type, nodes)
            for node_type, nodes in folded_by_type.items()
        ]
        if meta_nodes:
            log.debug(f"Folded {sum(m.count for m in meta_nodes)} nodes into {len(meta_nodes)} meta-nodes")
        return FoldResult(unfolded=unfolded, meta_nodes=meta_nodes)

    def auto_folded_types(
        self,
        nodes: Iterable[Node],
        threshold: int = DEFAULT_AUTO_FOLD_THRESHOLD
    ) -> Set[NodeType]:
        """Types with more than ``threshold`` nodes."""
        counts = Counter(node.type for node in nodes)
        return {node_type for node_type, count in counts.items() if count > threshold}

    def auto_fold_node_ids(
        self,
        nodes: Iterable[Node],
        threshold: int = DEFAULT_AUTO_FOLD_THRESHOLD
    ) -> Set[str]:
        """
        Determine which node ids should be folded by default.

        Args:
            nodes: Nodes currently in scope
            threshold: Maximum nodes per type before the whole type is folded

        Returns:
            Ids of every node whose type count exceeds the threshold
        """
        nodes = list(nodes)
        crowded = self.auto_folded_types(nodes, threshold)
        return {node.id for node in nodes if node.type in crowded}

    @staticmethod
    def merge_parallel_links(links: Iterable[L]) -> List[L]:
        """
        Drop links that repeat an earlier (source, target) pair.

        The first link for a pair wins; later ones are discarded, not merged.
        """
        seen = {}
        for link in links:
            key = (link.source, link.target)
            if key not in seen:
                seen[key] = link
        return list(seen.values())

    def is_parent_only_type(
        self,
        node_type: NodeType,
        children_ids: Iterable[str],
        topology: Topology
    ) -> bool:
        """True if no downstream node has this type."""
        for node_id in children_ids:
            node = topology.get_node(node_id)
            if node is not None and node.type == node_type:
                return False
        return True

    def summarize_branch(self, root_id: str, topology: Topology) -> BranchData:
        """
        Aggregate a branch: node counts per type and integrated metrics.

        Args:
            root_id: Root node of the branch
            topology: Topology to traverse

        Returns:
            BranchData for the root and all its descendants
        """
        branch_nodes = [
            topology.nodes[node_id]
            for node_id in sorted(get_branch_nodes(root_id, topology))
            if node_id in topology.nodes
        ]
        counts = Counter(node.type for node in branch_nodes)
        type_counts = {
            node_type: counts[node_type]
            for node_type in sorted(counts, key=lambda t: t.value)
        }
        metrics = self.aggregator.consolidate_integrated(
            metric for node in branch_nodes for metric in node.metrics
        )
        return BranchData(
            root_node_id=root_id,
            node_type_counts=type_counts,
            consolidated_metrics=metrics,
            total_nodes=len(branch_nodes),
        )
