"""
data - Spatial weights structures and configuration

This module contains the SpatialWeights container, neighbour list
helpers, the configuration object and the exception taxonomy.
"""

from .config import (
    SpatialDepConfig,
    get_config,
    set_config,
    SpatialDepError,
    InvalidConfigurationError,
    SymmetryViolationError,
    AsymmetricStructureError,
    DimensionMismatchError,
    NoNeighborError,
)

from .neighbors import (
    validate_neighbors,
    cardinalities,
    grid_neighbors,
    neighbors_from_adjacency,
    neighbors_to_adjacency,
    is_symmetric_neighbors,
    asymmetric_pairs,
)
from .weights import SpatialWeights

__all__ = [
    # Core class
    'SpatialWeights',

    # Configuration
    'SpatialDepConfig',
    'get_config',
    'set_config',

    # Neighbour lists
    'validate_neighbors',
    'cardinalities',
    'grid_neighbors',
    'neighbors_from_adjacency',
    'neighbors_to_adjacency',
    'is_symmetric_neighbors',
    'asymmetric_pairs',

    # Exceptions
    'SpatialDepError',
    'InvalidConfigurationError',
    'SymmetryViolationError',
    'AsymmetricStructureError',
    'DimensionMismatchError',
    'NoNeighborError',
]
