# src/spatialdep/__init__.py

"""
spatialdep - Spatial dependence statistics over spatial weights
"""

# Core data structures
from .data.config import (
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
from .data.neighbors import grid_neighbors, neighbors_from_adjacency
from .data.weights import SpatialWeights

# Estimators and transforms
from .linalg.similarity import check_similarity, symmetrize_by_similarity
from .linalg.logdet import log_determinant, rho_interval
from .spatial.aple import aple, local_aple

# Import submodules
from . import data
from . import linalg
from . import spatial

__version__ = '0.1.0'

__all__ = [
    # Core classes
    'SpatialWeights',
    'SpatialDepConfig',
    'get_config',
    'set_config',
    'grid_neighbors',
    'neighbors_from_adjacency',

    # Estimators and transforms
    'aple',
    'local_aple',
    'check_similarity',
    'symmetrize_by_similarity',
    'log_determinant',
    'rho_interval',

    # Exceptions
    'SpatialDepError',
    'InvalidConfigurationError',
    'SymmetryViolationError',
    'AsymmetricStructureError',
    'DimensionMismatchError',
    'NoNeighborError',

    # Submodules
    'data',
    'linalg',
    'spatial',
]
