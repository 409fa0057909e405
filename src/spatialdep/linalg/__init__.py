"""
linalg - Linear algebra on spatial weights

backend : Numeric provider interface
    NumericBackend, DenseBackend, SparseBackend, get_backend
similarity : Symmetrization by similarity
    check_similarity, symmetrize_by_similarity, similar_weights
logdet : Log-determinants and the coefficient domain
    weights_eigenvalues, rho_interval, log_determinant, log_determinant_grid
"""

from .backend import (
    DenseBackend,
    NumericBackend,
    SparseBackend,
    get_backend,
)
from .similarity import (
    NotSymmetrizable,
    Symmetrizable,
    check_similarity,
    similar_weights,
    symmetrize_by_similarity,
)
from .logdet import (
    log_determinant,
    log_determinant_grid,
    rho_interval,
    weights_eigenvalues,
)

__all__ = [
    # Backends
    "NumericBackend",
    "DenseBackend",
    "SparseBackend",
    "get_backend",
    # Similarity
    "Symmetrizable",
    "NotSymmetrizable",
    "check_similarity",
    "symmetrize_by_similarity",
    "similar_weights",
    # Log-determinants
    "weights_eigenvalues",
    "rho_interval",
    "log_determinant",
    "log_determinant_grid",
]
