"""
Exceptions raised by the engine and its loaders.
"""


class PlantScopeError(Exception):
    """Base class for all plantscope errors."""
    pass


class NotFoundError(PlantScopeError):
    """Raised when the focal node is not present in the topology."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node {node_id} not found in topology")


class TopologyLoadError(PlantScopeError):
    """Raised when a topology document cannot be turned into a Topology."""
    pass


class TopologyValidationError(PlantScopeError):
    """Raised when topology validation fails."""
    pass


class ConfigError(PlantScopeError):
    """Raised when the engine configuration cannot be loaded."""
    pass
