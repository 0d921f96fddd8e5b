"""
Render pipeline: topology + focal node + preferences → render graph.

    scope → visibility → folding → hops → links → render graph

Every call recomputes everything from its inputs. Nothing is cached here;
callers that want memoization key it on their own inputs.
"""
import logging
from typing import FrozenSet, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field

from plantscope.config import EngineConfig
from plantscope.folding import FoldingEngine
from plantscope.hops import compute_hops
from plantscope.links import compose_links
from plantscope.render import (
    RenderGraph,
    build_render_edge,
    build_render_meta_node,
    build_render_node,
    highlighted_node_ids,
)
from plantscope.scope import compute_scope, parent_only_types
from plantscope.topology.models import Node, Topology, Variable
from plantscope.topology.types import NodeType
from plantscope.visibility import resolve_visibility

log = logging.getLogger(__name__)


class ViewPreferences(BaseModel):
    """
    User declutter preferences for one view.

    ``folded_node_ids=None`` means "not chosen yet": the pipeline then folds
    every type with more visible nodes than the auto-fold threshold.
    """
    model_config = ConfigDict(frozen=True)

    hidden_types: FrozenSet[NodeType] = frozenset()
    hidden_branch_roots: FrozenSet[str] = frozenset()
    folded_node_ids: Optional[FrozenSet[str]] = None
    overlay_variable: Optional[Variable] = None
    highlighted_branch_root: Optional[str] = None
    auto_fold_threshold: Optional[int] = Field(default=None, ge=0)

    def has_non_default_settings(self) -> bool:
        return bool(self.hidden_types or self.folded_node_ids or self.hidden_branch_roots)


class TypeNodeCount(NamedTuple):
    total: int
    folded: int
    unfolded: int
    visible: int
    hidden_branch: int


def _nodes_in_order(topology: Topology, node_ids) -> List[Node]:
    """Nodes for the given ids, in topology order."""
    return [node for node_id, node in topology.nodes.items() if node_id in node_ids]


def _threshold(preferences: ViewPreferences, config: EngineConfig) -> int:
    if preferences.auto_fold_threshold is not None:
        return preferences.auto_fold_threshold
    return config.folding.auto_fold_threshold


def compute_render_graph(
    topology: Topology,
    focal_id: str,
    preferences: Optional[ViewPreferences] = None,
    config: Optional[EngineConfig] = None
) -> RenderGraph:
    """
    Compute the render graph for a focal node.

    Args:
        topology: Read-only source topology
        focal_id: Main Scope Node id
        preferences: Hidden types, hidden branches, folded nodes and overlay
        config: Engine configuration (defaults when None)

    Returns:
        A complete RenderGraph snapshot

    Raises:
        NotFoundError: If ``focal_id`` is not in the topology
    """
    preferences = preferences or ViewPreferences()
    config = config or EngineConfig()
    folding = FoldingEngine()

    scope = compute_scope(focal_id, topology)

    visibility = resolve_visibility(
        scope, topology, preferences.hidden_types, preferences.hidden_branch_roots
    )
    visible_nodes = _nodes_in_order(topology, visibility.visible_after_branch_hide)

    folded_ids = preferences.folded_node_ids
    if folded_ids is None:
        if config.folding.auto_fold_enabled:
            folded_ids = folding.auto_fold_node_ids(visible_nodes, _threshold(preferences, config))
        else:
            folded_ids = frozenset()
    fold_result = folding.fold_nodes(visible_nodes, folded_ids)

    hop_links = compute_hops(
        topology,
        visibility.visible_before_fold,
        preferences.hidden_types,
        max_via_names=config.hops.max_via_names,
    )

    unfolded_ids = frozenset(node.id for node in fold_result.unfolded)
    edges = compose_links(topology, unfolded_ids, fold_result.meta_nodes, hop_links)

    highlighted = highlighted_node_ids(preferences.highlighted_branch_root, topology)
    decimals = config.display.metric_decimals

    graph = RenderGraph(
        scope=scope,
        nodes=[
            build_render_node(
                node, topology, scope, preferences.hidden_branch_roots,
                preferences.overlay_variable, highlighted, decimals
            )
            for node in fold_result.unfolded
        ],
        meta_nodes=[
            build_render_meta_node(
                meta_node, topology, preferences.hidden_branch_roots,
                preferences.overlay_variable, decimals
            )
            for meta_node in fold_result.meta_nodes
        ],
        edges=[build_render_edge(edge, highlighted) for edge in edges],
    )

    log.debug(
        f"Render graph for {focal_id}: scope={len(scope.nodes)}, "
        f"visible={len(visibility.visible_after_branch_hide)}/{len(visibility.visible_before_fold)}, "
        f"nodes={len(graph.nodes)}, meta_nodes={len(graph.meta_nodes)}, edges={len(graph.edges)}"
    )
    return graph


def default_preferences(
    topology: Topology,
    focal_id: str,
    threshold: int = 10
) -> ViewPreferences:
    """
    Scope defaults for a freshly selected focal node.

    Types that only appear upstream of the focal node are hidden, and every
    type with more than ``threshold`` nodes in scope is folded.
    """
    scope = compute_scope(focal_id, topology)
    scope_nodes = _nodes_in_order(topology, scope.nodes)
    return ViewPreferences(
        hidden_types=frozenset(parent_only_types(scope, topology)),
        folded_node_ids=frozenset(FoldingEngine().auto_fold_node_ids(scope_nodes, threshold)),
        auto_fold_threshold=threshold,
    )


def type_node_counts(
    topology: Topology,
    focal_id: str,
    node_type: NodeType,
    preferences: Optional[ViewPreferences] = None
) -> TypeNodeCount:
    """
    Count the nodes of one type in scope, by visibility state.

    ``visible`` counts nodes drawn individually, so it equals ``unfolded``.
    Auto-folding is not applied; only explicitly folded ids count as folded.
    """
    preferences = preferences or ViewPreferences()
    scope = compute_scope(focal_id, topology)
    visibility = resolve_visibility(
        scope, topology, preferences.hidden_types, preferences.hidden_branch_roots
    )
    folded_ids = preferences.folded_node_ids or frozenset()

    of_type = [node for node in _nodes_in_order(topology, scope.nodes) if node.type == node_type]
    hidden_branch = sum(1 for node in of_type if node.id in visibility.hidden_by_branch)

    if node_type in preferences.hidden_types:
        visible_of_type = []
    else:
        visible_of_type = [node for node in of_type if node.id in visibility.visible_after_branch_hide]

    folded = sum(1 for node in visible_of_type if node.id in folded_ids)
    unfolded = len(visible_of_type) - folded
    return TypeNodeCount(
        total=len(of_type),
        folded=folded,
        unfolded=unfolded,
        visible=unfolded,
        hidden_branch=hidden_branch,
    )
