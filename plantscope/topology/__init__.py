"""
Topology module: the read-only plant graph the engine works on.

- NodeType, TopologyType, VariableKind and type ordering helpers
- Variable, MetricValue, Node, Link, Topology models
- TopologyLoader for YAML / JSON / dict documents
- validate_topology for structural checks
"""

from plantscope.topology.types import (
    NodeType,
    TopologyType,
    VariableKind,
    TYPE_ORDER,
    get_type_index,
    compare_node_types,
    sort_node_types,
)
from plantscope.topology.models import (
    Variable,
    MetricValue,
    Node,
    Link,
    Topology,
    create_link_id,
    format_metric_value,
)
from plantscope.topology.loader import TopologyLoader, load_topology
from plantscope.topology.validator import validate_topology, validate_and_raise

__all__ = [
    'NodeType',
    'TopologyType',
    'VariableKind',
    'TYPE_ORDER',
    'get_type_index',
    'compare_node_types',
    'sort_node_types',
    'Variable',
    'MetricValue',
    'Node',
    'Link',
    'Topology',
    'create_link_id',
    'format_metric_value',
    'TopologyLoader',
    'load_topology',
    'validate_topology',
    'validate_and_raise',
]
