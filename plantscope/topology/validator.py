"""
Topology validation module.

The engine assumes an acyclic topology whose parent and child pointers agree.
These checks let callers verify that before handing a topology to the engine.
"""
import logging
from typing import Dict, List, Tuple

from plantscope.errors import TopologyValidationError
from plantscope.topology.models import Topology

log = logging.getLogger(__name__)

_WHITE, _GREY, _BLACK = 0, 1, 2


def _find_cycle(topology: Topology) -> List[str]:
    """Return one parent → child cycle as a list of ids, or [] when acyclic."""
    state: Dict[str, int] = {node_id: _WHITE for node_id in topology.nodes}

    for start in topology.nodes:
        if state[start] != _WHITE:
            continue
        # Iterative DFS; each frame is (node_id, index of next child)
        path: List[str] = [start]
        stack: List[Tuple[str, int]] = [(start, 0)]
        state[start] = _GREY
        while stack:
            node_id, index = stack[-1]
            children = [cid for cid in topology.nodes[node_id].children if cid in topology.nodes]
            if index >= len(children):
                stack.pop()
                path.pop()
                state[node_id] = _BLACK
                continue
            stack[-1] = (node_id, index + 1)
            child_id = children[index]
            if state[child_id] == _GREY:
                return path[path.index(child_id):] + [child_id]
            if state[child_id] == _WHITE:
                state[child_id] = _GREY
                stack.append((child_id, 0))
                path.append(child_id)
    return []


def validate_topology(topology: Topology) -> Tuple[bool, List[str]]:
    """
    Validate the topology structure.

    Checks:
    1. Every node is stored under its own id
    2. Every parent and child reference points at an existing node
    3. Parent and child pointers are symmetric
    4. Every link connects two existing nodes
    5. The parent → child graph has no cycle

    Args:
        topology: Topology to check

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []
    nodes = topology.nodes

    for key, node in nodes.items():
        if key != node.id:
            errors.append(f"Node stored under key {key} has id {node.id}")

    for node in nodes.values():
        for parent_id in node.parents:
            parent = nodes.get(parent_id)
            if parent is None:
                errors.append(f"Node {node.id} references missing parent {parent_id}")
            elif node.id not in parent.children:
                errors.append(f"Node {node.id} lists parent {parent_id}, which does not list it as a child")
        for child_id in node.children:
            child = nodes.get(child_id)
            if child is None:
                errors.append(f"Node {node.id} references missing child {child_id}")
            elif node.id not in child.parents:
                errors.append(f"Node {node.id} lists child {child_id}, which does not list it as a parent")

    for link in topology.links:
        if link.source not in nodes:
            errors.append(f"Link {link.id} has missing source {link.source}")
        if link.target not in nodes:
            errors.append(f"Link {link.id} has missing target {link.target}")

    cycle = _find_cycle(topology)
    if cycle:
        errors.append(f"Cycle detected: {' -> '.join(cycle)}")

    log.debug(f"Validated {topology!r}: {len(errors)} error(s)")
    return len(errors) == 0, errors


def validate_and_raise(topology: Topology) -> None:
    """
    Validate topology and raise exception if invalid.

    Raises:
        TopologyValidationError: If validation fails
    """
    is_valid, errors = validate_topology(topology)

    if not is_valid:
        error_msg = "Topology validation failed:\n" + "\n".join(f"  - {error}" for error in errors)
        log.error(error_msg)
        raise TopologyValidationError(error_msg)

    log.info("Topology validation passed successfully")
