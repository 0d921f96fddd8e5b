"""
Topology document loader.

Builds an immutable Topology from a plain mapping, or from a YAML / JSON
file with the same shape:

    type: Electrical
    variables:
      - {id: power, name: Power, kind: extensive, unit: kW, sit: 15, integrated: true}
    nodes:
      - id: ups-1
        name: UPS 1
        type: UPS
        parents: [ats-1]
        children: [pdu-1]
        metrics:
          - {variable: power, value: 12.5, timestamp: "2024-01-15T12:00:00Z"}
    links:            # optional, derived from child pointers when absent
      - {source: ats-1, target: ups-1}
"""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pytz
import yaml
from pydantic import ValidationError

from plantscope.errors import TopologyLoadError
from plantscope.topology.models import Link, MetricValue, Node, Topology, Variable, create_link_id
from plantscope.topology.types import TopologyType

log = logging.getLogger(__name__)

UTC = pytz.UTC


def _require_mapping(row: Any, what: str) -> Dict[str, Any]:
    """Reject document rows that are not mappings."""
    if not isinstance(row, dict):
        raise TopologyLoadError(f"Each {what} entry must be a mapping, got {row!r}")
    return row


def parse_timestamp(value: Any, default: datetime) -> datetime:
    """
    Parse an ISO 8601 timestamp into an aware UTC datetime.

    Naive values are taken as UTC; missing values get ``default``.
    """
    if value is None:
        return default
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as e:
            raise TopologyLoadError(f"Invalid timestamp {value!r}: {e}") from e

    if dt.tzinfo is None:
        dt = UTC.localize(dt)
    return dt.astimezone(UTC)


class TopologyLoader:
    """Loads topology documents and builds Topology objects."""

    def __init__(self, loaded_at: Optional[datetime] = None):
        # Timestamp for metrics that do not carry their own
        self.loaded_at = loaded_at or datetime.now(UTC)

    def load_file(self, path: Union[str, Path]) -> Topology:
        """
        Load a topology from a ``.yaml``/``.yml`` or ``.json`` file.

        Raises:
            TopologyLoadError: If the file cannot be read or parsed
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                if path.suffix.lower() == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except OSError as e:
            raise TopologyLoadError(f"Cannot read topology file {path}: {e}") from e
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise TopologyLoadError(f"Cannot parse topology file {path}: {e}") from e

        topology = self.load_dict(data or {})
        log.info(f"Loaded {topology!r} from {path}")
        return topology

    def load_dict(self, data: Dict[str, Any]) -> Topology:
        """
        Build a Topology from a mapping.

        Args:
            data: Document with ``variables``, ``nodes`` and optional ``links``

        Returns:
            Topology

        Raises:
            TopologyLoadError: On duplicate ids, unknown variables or schema errors
        """
        if not isinstance(data, dict):
            raise TopologyLoadError("Topology document must be a mapping")

        try:
            topology_type = TopologyType(data.get("type", TopologyType.ELECTRICAL.value))
            variables = self._load_variables(data.get("variables") or [])
            node_rows = data.get("nodes") or []
            parents_by_child = self._derive_parents(node_rows)
            nodes: Dict[str, Node] = {}
            for row in node_rows:
                node = self._build_node(row, variables, parents_by_child, topology_type)
                if node.id in nodes:
                    raise TopologyLoadError(f"Duplicate node id {node.id}")
                nodes[node.id] = node

            if data.get("links") is not None:
                links = [self._build_link(row, topology_type) for row in data["links"]]
            else:
                links = self._derive_links(nodes, topology_type)

            return Topology(type=topology_type, nodes=nodes, links=links)
        except ValidationError as e:
            raise TopologyLoadError(f"Invalid topology document: {e}") from e
        except ValueError as e:
            raise TopologyLoadError(str(e)) from e

    def _load_variables(self, rows: List[Dict[str, Any]]) -> Dict[str, Variable]:
        variables = {}
        for row in rows:
            variable = Variable(**_require_mapping(row, "variable"))
            if variable.id in variables:
                raise TopologyLoadError(f"Duplicate variable id {variable.id}")
            variables[variable.id] = variable
        return variables

    def _derive_parents(self, node_rows: List[Dict[str, Any]]) -> Dict[str, List[str]]:
        """Parent lists implied by every node's children, in document order."""
        parents: Dict[str, List[str]] = {}
        for row in node_rows:
            row = _require_mapping(row, "node")
            for child_id in row.get("children") or []:
                parents.setdefault(child_id, []).append(row.get("id"))
        return parents

    def _build_node(
        self,
        row: Dict[str, Any],
        variables: Dict[str, Variable],
        parents_by_child: Dict[str, List[str]],
        topology_type: TopologyType
    ) -> Node:
        metrics = []
        for metric_row in row.get("metrics") or []:
            metric_row = _require_mapping(metric_row, "metric")
            variable_id = metric_row.get("variable")
            if variable_id not in variables:
                raise TopologyLoadError(f"Node {row.get('id')} references unknown variable {variable_id}")
            metrics.append(MetricValue(
                value=metric_row.get("value"),
                timestamp=parse_timestamp(metric_row.get("timestamp"), self.loaded_at),
                variable=variables[variable_id],
            ))

        # Explicit parents win; otherwise fill them in from the children lists
        parents = row.get("parents")
        if parents is None:
            parents = parents_by_child.get(row.get("id"), [])

        return Node(
            id=row.get("id"),
            name=row.get("name") or row.get("id"),
            type=row.get("type"),
            topologies=row.get("topologies") or [topology_type],
            parents=parents,
            children=row.get("children") or [],
            metrics=metrics,
            alerts=row.get("alerts"),
            c_sit=row.get("c_sit"),
            rit=row.get("rit"),
        )

    def _build_link(self, row: Dict[str, Any], topology_type: TopologyType) -> Link:
        row = _require_mapping(row, "link")
        source, target = row.get("source"), row.get("target")
        return Link(
            id=row.get("id") or create_link_id(source, target),
            source=source,
            target=target,
            topology=row.get("topology") or topology_type,
        )

    def _derive_links(self, nodes: Dict[str, Node], topology_type: TopologyType) -> List[Link]:
        """One link per parent → child pointer whose child exists."""
        links = []
        for node in nodes.values():
            for child_id in node.children:
                if child_id not in nodes:
                    log.debug(f"Skipping link {node.id} -> {child_id}: child not in topology")
                    continue
                links.append(Link(
                    id=create_link_id(node.id, child_id),
                    source=node.id,
                    target=child_id,
                    topology=topology_type,
                ))
        return links


def load_topology(source: Union[str, Path, Dict[str, Any]]) -> Topology:
    """Load a topology from a file path or a mapping."""
    loader = TopologyLoader()
    if isinstance(source, dict):
        return loader.load_dict(source)
    return loader.load_file(source)
