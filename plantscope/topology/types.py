"""
Node type definitions and canonical ordering.
"""
from enum import Enum
from typing import Iterable, List


class NodeType(str, Enum):
    """Infrastructure node types that can appear in a topology."""
    ORGANIZATION = "Organization"
    ES = "ES"
    SWITCH_GEAR = "Switch Gear"
    ATS = "ATS"
    UPS = "UPS"
    PDU = "PDU"
    RACK_PDU = "Rack PDU"
    SERVER = "Server"
    CHILLER = "Chiller"
    CRAC = "CRAC"

    def __str__(self) -> str:
        return self.value


class TopologyType(str, Enum):
    """Plant topologies a node can belong to."""
    ELECTRICAL = "Electrical"
    COOLING = "Cooling"
    ORGANIZATION = "Organization"

    def __str__(self) -> str:
        return self.value


class VariableKind(str, Enum):
    """How a variable aggregates across several nodes."""
    EXTENSIVE = "extensive"  # summed (power, energy)
    INTENSIVE = "intensive"  # averaged (temperature, voltage)

    def __str__(self) -> str:
        return self.value


# Display order, top of the plant hierarchy first
TYPE_ORDER: List[NodeType] = [
    NodeType.ORGANIZATION,
    NodeType.ES,
    NodeType.ATS,
    NodeType.SWITCH_GEAR,
    NodeType.UPS,
    NodeType.PDU,
    NodeType.RACK_PDU,
    NodeType.SERVER,
    NodeType.CHILLER,
    NodeType.CRAC,
]

_TYPE_INDEX = {node_type: index for index, node_type in enumerate(TYPE_ORDER)}


def get_type_index(node_type) -> int:
    """Return the display index of a node type, or -1 when it is not a known type."""
    try:
        return _TYPE_INDEX[NodeType(node_type)]
    except ValueError:
        return -1


def compare_node_types(a, b) -> int:
    """Negative if ``a`` sorts before ``b``, positive if after, 0 if equal."""
    return get_type_index(a) - get_type_index(b)


def sort_node_types(types: Iterable[NodeType]) -> List[NodeType]:
    """Sort node types into display order."""
    return sorted(types, key=get_type_index)
