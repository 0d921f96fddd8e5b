"""
Visibility resolution over a scope.

Two filters run in sequence:

1. Type filter: nodes whose type the user hid disappear.
2. Branch filter: subtrees the user collapsed disappear, except for nodes
   that still have a visible parent outside every collapsed subtree.
"""
import logging
from typing import AbstractSet, FrozenSet, Iterable, NamedTuple

from plantscope.scope import ScopeResult, get_branch_nodes
from plantscope.sets import difference, intersection, union
from plantscope.topology.models import Topology
from plantscope.topology.types import NodeType

log = logging.getLogger(__name__)


class VisibilityResult(NamedTuple):
    visible_before_fold: FrozenSet[str]
    visible_after_branch_hide: FrozenSet[str]
    hidden_by_branch: FrozenSet[str]


def filter_by_type(
    node_ids: Iterable[str],
    topology: Topology,
    hidden_types: AbstractSet[NodeType]
) -> FrozenSet[str]:
    """Keep the nodes whose type is not hidden. Unknown ids are dropped."""
    visible = set()
    for node_id in node_ids:
        node = topology.get_node(node_id)
        if node is not None and node.type not in hidden_types:
            visible.add(node_id)
    return frozenset(visible)


def filter_hidden_branches(
    visible_before_fold: FrozenSet[str],
    hidden_branch_roots: AbstractSet[str],
    topology: Topology
) -> FrozenSet[str]:
    """
    Remove collapsed subtrees from the visible set.

    A node inside a collapsed subtree stays visible when at least one of its
    visible parents is not itself inside a collapsed subtree. The collapsed
    roots are always removed.

    Args:
        visible_before_fold: Node ids that passed the type filter
        hidden_branch_roots: Ids the user collapsed
        topology: Topology to analyze

    Returns:
        Node ids still visible after branch hiding
    """
    if not hidden_branch_roots:
        return visible_before_fold

    active_roots = intersection(hidden_branch_roots, visible_before_fold)
    candidate_hidden = union(*(
        intersection(get_branch_nodes(root_id, topology), visible_before_fold)
        for root_id in active_roots
    ))

    final_hidden = set()
    for node_id in candidate_hidden:
        if node_id in active_roots:
            final_hidden.add(node_id)
            continue

        node = topology.get_node(node_id)
        if node is None:
            continue

        has_visible_parent = any(
            parent_id in visible_before_fold and parent_id not in candidate_hidden
            for parent_id in node.parents
        )
        if not has_visible_parent:
            final_hidden.add(node_id)

    if final_hidden:
        log.debug(f"Branch filter hid {len(final_hidden)} nodes under {len(active_roots)} roots")

    return difference(visible_before_fold, final_hidden)


def resolve_visibility(
    scope: ScopeResult,
    topology: Topology,
    hidden_types: AbstractSet[NodeType],
    hidden_branch_roots: AbstractSet[str]
) -> VisibilityResult:
    """Run the type filter and the branch filter over a scope."""
    before = filter_by_type(scope.nodes, topology, hidden_types)
    after = filter_hidden_branches(before, hidden_branch_roots, topology)
    return VisibilityResult(
        visible_before_fold=before,
        visible_after_branch_hide=after,
        hidden_by_branch=difference(before, after),
    )
