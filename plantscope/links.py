"""
Link Composer: builds the final edge list of a render graph.

Three edge sources are combined, in this order:
- direct edges between unfolded visible nodes
- meta edges, with folded endpoints rewritten to their meta-node id
- hop edges, rewritten the same way
Parallel edges are then collapsed on (source, target), first one wins.
"""
import logging
from enum import Enum
from typing import AbstractSet, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from plantscope.folding import FoldingEngine, MetaNode
from plantscope.hops import HopLink
from plantscope.topology.models import Topology

log = logging.getLogger(__name__)


class EdgeKind(str, Enum):
    DIRECT = "direct"
    META = "meta"
    HOP = "hop"

    def __str__(self) -> str:
        return self.value


class ComposedEdge(BaseModel):
    """An edge of the render graph."""
    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    kind: EdgeKind
    via_nodes: List[str] = Field(default_factory=list)  # hop edges only
    description: Optional[str] = None  # hop edges only

    @property
    def key(self) -> Tuple[str, str]:
        return (self.source, self.target)


def dedupe_edges(edges: Iterable[ComposedEdge]) -> List[ComposedEdge]:
    """Keep the first edge for every (source, target) pair; later duplicates are dropped."""
    return FoldingEngine.merge_parallel_links(edges)


def _meta_membership(meta_nodes: List[MetaNode]) -> Dict[str, str]:
    """Map each folded node id to the id of the meta-node holding it."""
    membership = {}
    for meta_node in meta_nodes:
        for node_id in meta_node.node_ids:
            membership[node_id] = meta_node.id
    return membership


def direct_edges(topology: Topology, unfolded_ids: AbstractSet[str]) -> List[ComposedEdge]:
    """Topology links whose endpoints are both unfolded and visible."""
    return [
        ComposedEdge(source=link.source, target=link.target, kind=EdgeKind.DIRECT)
        for link in topology.links
        if link.source in unfolded_ids and link.target in unfolded_ids
    ]


def meta_edges(
    topology: Topology,
    unfolded_ids: AbstractSet[str],
    meta_nodes: List[MetaNode]
) -> List[ComposedEdge]:
    """
    Topology links that touch a meta-node, rewritten to the meta-node id.

    For each meta-node, a link with exactly one endpoint inside it is kept
    when the other endpoint is unfolded or inside another meta-node; that
    endpoint is rewritten too when it is folded. Links with both endpoints in
    the same meta-node never surface.
    """
    membership = _meta_membership(meta_nodes)
    edges = []

    for meta_node in meta_nodes:
        members = set(meta_node.node_ids)
        for link in topology.links:
            source_in = link.source in members
            target_in = link.target in members

            if source_in and not target_in:
                other_meta = membership.get(link.target)
                if other_meta is not None or link.target in unfolded_ids:
                    edges.append(ComposedEdge(
                        source=meta_node.id,
                        target=other_meta or link.target,
                        kind=EdgeKind.META,
                    ))
            elif target_in and not source_in:
                other_meta = membership.get(link.source)
                if other_meta is not None or link.source in unfolded_ids:
                    edges.append(ComposedEdge(
                        source=other_meta or link.source,
                        target=meta_node.id,
                        kind=EdgeKind.META,
                    ))

    return edges


def hop_edges(
    hop_links: List[HopLink],
    unfolded_ids: AbstractSet[str],
    meta_nodes: List[MetaNode]
) -> List[ComposedEdge]:
    """
    Hop links as render edges.

    Folded endpoints are rewritten to their meta-node. Hops whose endpoints
    are no longer visible (for example hidden by a collapsed branch) and hops
    that collapse onto a single meta-node are dropped.
    """
    membership = _meta_membership(meta_nodes)
    edges = []

    for hop in hop_links:
        source = membership.get(hop.source) or (hop.source if hop.source in unfolded_ids else None)
        target = membership.get(hop.target) or (hop.target if hop.target in unfolded_ids else None)
        if source is None or target is None or source == target:
            continue
        edges.append(ComposedEdge(
            source=source,
            target=target,
            kind=EdgeKind.HOP,
            via_nodes=list(hop.via_nodes),
            description=hop.description,
        ))

    return edges


def compose_links(
    topology: Topology,
    unfolded_ids: AbstractSet[str],
    meta_nodes: List[MetaNode],
    hop_links: List[HopLink]
) -> List[ComposedEdge]:
    """
    Merge direct, meta and hop edges into one deduplicated edge list.

    Args:
        topology: Source topology
        unfolded_ids: Visible node ids that are not folded
        meta_nodes: Meta-nodes produced by folding
        hop_links: Hop links from the hop synthesizer

    Returns:
        Edges ordered direct, meta, hop, with parallel duplicates removed
    """
    direct = direct_edges(topology, unfolded_ids)
    meta = meta_edges(topology, unfolded_ids, meta_nodes)
    hops = hop_edges(hop_links, unfolded_ids, meta_nodes)

    edges = dedupe_edges(direct + meta + hops)
    log.debug(
        f"Composed {len(edges)} edges from {len(direct)} direct, {len(meta)} meta, {len(hops)} hop"
    )
    return edges
