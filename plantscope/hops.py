"""
Hop Synthesizer: bypass edges across runs of hidden-type nodes.

When the user hides a node type, a visible node and a visible descendant
that were only connected through hidden nodes would appear disconnected.
A hop edge restores the connection and records the hidden path it skips.
"""
import logging
from collections import deque
from typing import AbstractSet, Dict, List, Tuple

from plantscope.topology.models import Link, Topology
from plantscope.topology.types import NodeType

log = logging.getLogger(__name__)

DEFAULT_MAX_VIA_NAMES = 3


class HopLink(Link):
    """A link that stands in for a path through hidden nodes."""
    via_nodes: List[str]
    description: str = ""

    @property
    def is_hop(self) -> bool:
        return True


def hop_description(via_nodes: List[str], topology: Topology, max_names: int = DEFAULT_MAX_VIA_NAMES) -> str:
    """
    Human readable description of a hop path.

    Args:
        via_nodes: Hidden node ids, in traversal order
        topology: Topology for name lookup (ids are shown for unknown nodes)
        max_names: Names to show before collapsing the rest into "+N more"

    Returns:
        e.g. ``"via UPS 1, PDU Room 1"`` or ``"via A, B, C +2 more"``
    """
    if not via_nodes:
        return "Direct connection"

    names = []
    for node_id in via_nodes:
        node = topology.get_node(node_id)
        names.append(node.name if node is not None else node_id)

    if len(names) > max_names:
        shown = ", ".join(names[:max_names])
        return f"via {shown} +{len(names) - max_names} more"
    return f"via {', '.join(names)}"


def compute_hops(
    topology: Topology,
    visible_node_ids: AbstractSet[str],
    hidden_types: AbstractSet[NodeType],
    max_via_names: int = DEFAULT_MAX_VIA_NAMES
) -> List[HopLink]:
    """
    Find visible → visible connections that run only through hidden-type nodes.

    Starting from every visible node, a breadth-first search follows child
    pointers through hidden-type nodes. Reaching a visible node ends that
    branch of the search; a hop is emitted when at least one hidden node was
    crossed and the topology has no direct link for the pair. A node that is
    neither visible nor of a hidden type also ends the branch, without a hop.

    Args:
        topology: Topology to traverse
        visible_node_ids: Ids visible after the type filter
        hidden_types: Node types the user hid
        max_via_names: Names shown in each hop description

    Returns:
        Hop links, one per (source, target) pair, first discovery wins
    """
    if not hidden_types:
        return []

    direct_pairs = {(link.source, link.target) for link in topology.links}
    hops: Dict[Tuple[str, str], HopLink] = {}

    for start_id in sorted(visible_node_ids):
        if not topology.has_node(start_id):
            continue

        visited = set()
        queue = deque([(start_id, [])])

        while queue:
            node_id, path = queue.popleft()
            if node_id in visited:
                continue
            visited.add(node_id)

            node = topology.get_node(node_id)
            if node is None:
                continue

            for child_id in node.children:
                child = topology.get_node(child_id)
                if child is None:
                    continue

                if child.type in hidden_types:
                    queue.append((child_id, path + [child_id]))
                elif child_id in visible_node_ids and path:
                    key = (start_id, child_id)
                    if key in direct_pairs or key in hops:
                        continue
                    hops[key] = HopLink(
                        id=f"hop-{start_id}-{child_id}",
                        source=start_id,
                        target=child_id,
                        topology=topology.type,
                        via_nodes=path,
                        description=hop_description(path, topology, max_via_names),
                    )

    if hops:
        log.debug(f"Synthesized {len(hops)} hop links through hidden types {sorted(str(t) for t in hidden_types)}")
    return list(hops.values())


def is_hop_link(link: Link) -> bool:
    return isinstance(link, HopLink)
