"""
PlantScope: visibility and folding engine for plant topology diagrams.

Given a topology, a focal node and the user's declutter preferences,
``compute_render_graph`` produces the nodes, meta-nodes and edges to draw.
"""

from plantscope.errors import (
    PlantScopeError,
    NotFoundError,
    TopologyLoadError,
    TopologyValidationError,
    ConfigError,
)
from plantscope.config import EngineConfig, load_config, configure_logging
from plantscope.pipeline import (
    ViewPreferences,
    TypeNodeCount,
    compute_render_graph,
    default_preferences,
    type_node_counts,
)
from plantscope.render import RenderGraph, RenderNode, RenderMetaNode, RenderEdge

__version__ = "0.1.0"

__all__ = [
    'PlantScopeError',
    'NotFoundError',
    'TopologyLoadError',
    'TopologyValidationError',
    'ConfigError',
    'EngineConfig',
    'load_config',
    'configure_logging',
    'ViewPreferences',
    'TypeNodeCount',
    'compute_render_graph',
    'default_preferences',
    'type_node_counts',
    'RenderGraph',
    'RenderNode',
    'RenderMetaNode',
    'RenderEdge',
]
