"""
Metric Aggregator: consolidates metric values from several nodes.
"""
from typing import Dict, Iterable, List

from pydantic import BaseModel, ConfigDict

from plantscope.topology.models import MetricValue, Variable
from plantscope.topology.types import VariableKind


class ConsolidatedMetric(BaseModel):
    """A consolidated value labelled with the aggregation that produced it."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    kind: VariableKind
    unit: str
    value: float
    aggregation_type: str  # "Sum" | "Average"


class MetricAggregator:
    """
    Consolidates per-node metrics into group-level values.

    Handles:
    - Summing extensive variables (power, energy)
    - Averaging intensive variables (temperature, voltage)
    - Skipping nodes that do not report a variable, rather than counting them as zero
    """

    def group_by_variable(self, metrics: Iterable[MetricValue]) -> Dict[str, List[MetricValue]]:
        """Group metric values by variable id, keeping first-seen order."""
        grouped: Dict[str, List[MetricValue]] = {}
        for metric in metrics:
            grouped.setdefault(metric.variable.id, []).append(metric)
        return grouped

    def aggregate_values(self, variable: Variable, values: List[float]) -> float:
        """
        Aggregate raw values for one variable.

        Args:
            variable: Variable definition (decides sum vs mean)
            values: Non-empty list of values from contributing nodes

        Returns:
            Sum for extensive variables, arithmetic mean for intensive ones
        """
        total = sum(values)
        if variable.kind == VariableKind.EXTENSIVE:
            return total
        return total / len(values)

    def consolidate(self, metrics: Iterable[MetricValue]) -> List[MetricValue]:
        """
        Consolidate metrics from many nodes into one value per variable.

        The timestamp of each consolidated metric is taken from the first
        contributing metric.
        """
        consolidated = []
        for variable_metrics in self.group_by_variable(metrics).values():
            first = variable_metrics[0]
            value = self.aggregate_values(first.variable, [m.value for m in variable_metrics])
            consolidated.append(MetricValue(
                value=value,
                timestamp=first.timestamp,
                variable=first.variable,
            ))
        return consolidated

    def consolidate_integrated(self, metrics: Iterable[MetricValue]) -> List[ConsolidatedMetric]:
        """Consolidate only the variables flagged as integrated, with aggregation labels."""
        integrated = [m for m in metrics if m.variable.integrated]
        result = []
        for metric in self.consolidate(integrated):
            variable = metric.variable
            result.append(ConsolidatedMetric(
                id=variable.id,
                name=variable.name,
                kind=variable.kind,
                unit=variable.unit,
                value=metric.value,
                aggregation_type="Sum" if variable.kind == VariableKind.EXTENSIVE else "Average",
            ))
        return result
