"""
Shared fixtures for the plantscope test suite.
"""
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

import pytest
import pytz

from plantscope.topology.models import Link, MetricValue, Node, Topology, Variable, create_link_id
from plantscope.topology.types import NodeType, VariableKind

TIMESTAMP = datetime(2024, 1, 15, 12, 0, tzinfo=pytz.UTC)


@pytest.fixture
def power():
    return Variable(id="power", name="Power", kind=VariableKind.EXTENSIVE, unit="kW", sit=15, integrated=True)


@pytest.fixture
def temperature():
    return Variable(id="temp", name="Temperature", kind=VariableKind.INTENSIVE, unit="°C", sit=5, integrated=True)


@pytest.fixture
def voltage():
    return Variable(id="voltage", name="Voltage", kind=VariableKind.INTENSIVE, unit="V", sit=60)


@pytest.fixture
def build_topology():
    """
    Factory for small topologies.

    ``types`` maps node id -> NodeType (insertion order is topology order),
    ``edges`` lists (parent, child) pairs. Parent/child pointers and links are
    derived from the edges unless ``links`` is given.
    """
    def _build(
        types: Dict[str, NodeType],
        edges: Iterable[Tuple[str, str]] = (),
        metrics: Optional[Dict[str, List[Tuple[Variable, float]]]] = None,
        alerts: Optional[Dict[str, List[str]]] = None,
        links: Optional[List[Tuple[str, str]]] = None,
        names: Optional[Dict[str, str]] = None
    ) -> Topology:
        edges = list(edges)
        metrics = metrics or {}
        alerts = alerts or {}
        names = names or {}

        parents: Dict[str, List[str]] = {node_id: [] for node_id in types}
        children: Dict[str, List[str]] = {node_id: [] for node_id in types}
        for parent_id, child_id in edges:
            children.setdefault(parent_id, []).append(child_id)
            parents.setdefault(child_id, []).append(parent_id)

        nodes = {
            node_id: Node(
                id=node_id,
                name=names.get(node_id, node_id),
                type=node_type,
                parents=parents[node_id],
                children=children[node_id],
                metrics=[
                    MetricValue(value=value, timestamp=TIMESTAMP, variable=variable)
                    for variable, value in metrics.get(node_id, [])
                ],
                alerts=alerts.get(node_id),
            )
            for node_id, node_type in types.items()
        }
        link_pairs = edges if links is None else links
        return Topology(
            nodes=nodes,
            links=[Link(id=create_link_id(s, t), source=s, target=t) for s, t in link_pairs],
        )

    return _build


@pytest.fixture
def electrical(build_topology):
    """
    ATS A feeds Switch Gear B and C, each feeding a UPS (D, E), both UPS
    feeding PDU F.
    """
    return build_topology(
        {
            "A": NodeType.ATS,
            "B": NodeType.SWITCH_GEAR,
            "C": NodeType.SWITCH_GEAR,
            "D": NodeType.UPS,
            "E": NodeType.UPS,
            "F": NodeType.PDU,
        },
        [("A", "B"), ("A", "C"), ("B", "D"), ("C", "E"), ("D", "F"), ("E", "F")],
        names={"D": "UPS D", "E": "UPS E"},
    )


@pytest.fixture
def server_rack(build_topology, power, temperature):
    """One Rack PDU under a PDU, feeding 15 servers with power and temperature."""
    types = {"pdu-1": NodeType.PDU, "rpdu-1": NodeType.RACK_PDU}
    edges = [("pdu-1", "rpdu-1")]
    metrics = {}
    for i in range(1, 16):
        server_id = f"srv-{i:02d}"
        types[server_id] = NodeType.SERVER
        edges.append(("rpdu-1", server_id))
        metrics[server_id] = [(power, 2.0), (temperature, 20.0 + i)]
    return build_topology(types, edges, metrics=metrics)


@pytest.fixture
def cyclic(build_topology):
    """ATS a → UPS u → PDU p → back to a."""
    return build_topology(
        {"a": NodeType.ATS, "u": NodeType.UPS, "p": NodeType.PDU},
        [("a", "u"), ("u", "p"), ("p", "a")],
    )
