"""
Scope resolution: the bounded subgraph around a focal node.

A scope is every recursive parent of the focal node (upstream), the focal
node itself, and every recursive child (downstream).
"""
import logging
from collections import deque
from typing import Dict, FrozenSet, Iterable, List, Optional, Set

from pydantic import BaseModel, ConfigDict

from plantscope.errors import NotFoundError
from plantscope.sets import union
from plantscope.topology.models import Topology
from plantscope.topology.types import NodeType, sort_node_types

log = logging.getLogger(__name__)


class ScopeResult(BaseModel):
    """Result of a scope computation. Built fresh on every call."""
    model_config = ConfigDict(frozen=True)

    msn: str
    upstream: FrozenSet[str]
    downstream: FrozenSet[str]
    nodes: FrozenSet[str]

    @property
    def all_nodes(self) -> FrozenSet[str]:
        return self.nodes


class HiddenBranchInfo(BaseModel):
    """A collapsed subtree hanging off a visible node."""
    model_config = ConfigDict(frozen=True)

    root_id: str
    root_name: str
    node_count: int


def _walk(start_id: str, topology: Topology, upstream: bool) -> FrozenSet[str]:
    """
    Breadth-first walk from ``start_id`` along parent or child pointers.

    The start node is seeded into the visited set so it never appears in the
    result. Ids missing from the topology are skipped.
    """
    found = set()
    visited = {start_id}
    queue = deque([start_id])

    while queue:
        current = queue.popleft()
        node = topology.get_node(current)
        if node is None:
            continue
        neighbours = node.parents if upstream else node.children
        for neighbour_id in neighbours:
            if neighbour_id in visited:
                continue
            visited.add(neighbour_id)
            if not topology.has_node(neighbour_id):
                log.debug(f"Skipping dangling reference {neighbour_id} from {current}")
                continue
            found.add(neighbour_id)
            queue.append(neighbour_id)

    return frozenset(found)


def compute_upstream(msn_id: str, topology: Topology) -> FrozenSet[str]:
    """All recursive parents of a node."""
    return _walk(msn_id, topology, upstream=True)


def compute_downstream(msn_id: str, topology: Topology) -> FrozenSet[str]:
    """All recursive children of a node."""
    return _walk(msn_id, topology, upstream=False)


def compute_scope(msn_id: str, topology: Topology) -> ScopeResult:
    """
    Compute the full recursive scope for a focal node.

    Args:
        msn_id: Main Scope Node identifier
        topology: Topology to traverse

    Returns:
        ScopeResult with upstream, downstream and all scope node ids

    Raises:
        NotFoundError: If the focal node is not in the topology
    """
    if not topology.has_node(msn_id):
        raise NotFoundError(msn_id)

    upstream = compute_upstream(msn_id, topology)
    downstream = compute_downstream(msn_id, topology)

    return ScopeResult(
        msn=msn_id,
        upstream=upstream,
        downstream=downstream,
        nodes=union(upstream, [msn_id], downstream),
    )


def get_branch_nodes(root_id: str, topology: Topology) -> FrozenSet[str]:
    """
    Get a node and all of its recursive children.

    Not bounded by any scope. A root id missing from the topology yields a
    branch containing only that id.
    """
    return union([root_id], compute_downstream(root_id, topology))


def get_hidden_branches_for_node(
    node_id: str,
    hidden_branch_roots: Iterable[str],
    topology: Topology
) -> List[HiddenBranchInfo]:
    """
    Find hidden branch roots that hang directly off ``node_id``.

    Args:
        node_id: Node that may be the parent of hidden branches
        hidden_branch_roots: Ids the user collapsed
        topology: Topology to analyze

    Returns:
        One HiddenBranchInfo per hidden root whose parents include ``node_id``
    """
    hidden_branches = []
    for root_id in sorted(hidden_branch_roots):
        root_node = topology.get_node(root_id)
        if root_node is None or node_id not in root_node.parents:
            continue
        hidden_branches.append(HiddenBranchInfo(
            root_id=root_id,
            root_name=root_node.name,
            node_count=len(get_branch_nodes(root_id, topology)),
        ))
    return hidden_branches


def build_pseudo_tree(topology: Topology) -> Dict[str, Optional[str]]:
    """
    Pick one primary parent per node so a DAG can be navigated as a tree.

    The first parent id in sort order wins; roots map to None.
    """
    pseudo_tree = {}
    for node_id in sorted(topology.nodes):
        node = topology.nodes[node_id]
        pseudo_tree[node_id] = min(node.parents) if node.parents else None
    return pseudo_tree


def _types_of(node_ids: Iterable[str], topology: Topology) -> Set[NodeType]:
    types = set()
    for node_id in node_ids:
        node = topology.get_node(node_id)
        if node is not None:
            types.add(node.type)
    return types


def scope_types(scope: ScopeResult, topology: Topology) -> List[NodeType]:
    """
    Node types in scope ordered upstream → focal → downstream.

    A type that occurs both upstream and downstream is listed once, on the
    upstream side.
    """
    msn_type = topology.nodes[scope.msn].type
    upstream_types = sort_node_types(_types_of(scope.upstream, topology) - {msn_type})
    downstream_types = sort_node_types(
        _types_of(scope.downstream, topology) - {msn_type} - set(upstream_types)
    )
    return upstream_types + [msn_type] + downstream_types


def parent_only_types(scope: ScopeResult, topology: Topology) -> Set[NodeType]:
    """Types that appear upstream of the focal node but never downstream."""
    msn_type = topology.nodes[scope.msn].type
    upstream_types = _types_of(scope.upstream, topology)
    downstream_types = _types_of(scope.downstream, topology)
    return {t for t in upstream_types if t not in downstream_types and t != msn_type}
