"""
similarity.py - Symmetrization of weights by similarity

A row-scaled weights matrix W = R G, with G symmetric and R diagonal,
is similar to the symmetric matrix

    W_sym = D^{1/2} W D^{-1/2},    D = R^{-1}

so both share eigenvalues. For row-standardised binary weights D holds
the neighbour counts. check_similarity() reports whether the transform
applies as a tagged result; symmetrize_by_similarity() performs it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from scipy import sparse

from ..data.config import AsymmetricStructureError, get_config
from ..data.neighbors import asymmetric_pairs
from ..data.weights import SpatialWeights

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Symmetrizable:
    """
    Weights are symmetric or similar to symmetric.

    Attributes
    ----------
    d : np.ndarray
        Diagonal of D; 0 for entities without neighbours
    already_symmetric : bool
        True if W itself is symmetric and needs no transform
    """
    d: np.ndarray
    already_symmetric: bool = False

    @property
    def symmetrizable(self) -> bool:
        return True


@dataclass(frozen=True, eq=False)
class NotSymmetrizable:
    """
    Weights cannot be symmetrized by a diagonal similarity transform.

    Attributes
    ----------
    reason : str
        Human-readable cause
    pairs : np.ndarray
        (k, 2) offending (i, j) positions, possibly empty
    """
    reason: str
    pairs: np.ndarray

    @property
    def symmetrizable(self) -> bool:
        return False


SimilarityCheck = Union[Symmetrizable, NotSymmetrizable]


def _max_asymmetry(mat: sparse.spmatrix) -> float:
    diff = (mat - mat.T).tocoo()
    return float(np.abs(diff.data).max()) if diff.nnz else 0.0


def _is_symmetric(mat: sparse.spmatrix, tol: float) -> bool:
    scale = float(np.abs(mat.data).max()) if mat.nnz else 1.0
    return _max_asymmetry(mat) <= tol * max(1.0, scale)


def _asymmetric_entries(mat: sparse.spmatrix, tol: float) -> np.ndarray:
    diff = sparse.triu(mat - mat.T, k=1).tocoo()
    mask = np.abs(diff.data) > tol
    return np.column_stack([diff.row[mask], diff.col[mask]])


def _scaled(W: sparse.spmatrix, d: np.ndarray) -> sparse.csr_matrix:
    sqrt_d = np.sqrt(d)
    inv_sqrt_d = np.zeros_like(d)
    pos = d > 0
    inv_sqrt_d[pos] = 1.0 / sqrt_d[pos]
    return sparse.csr_matrix(
        sparse.diags(sqrt_d) @ W @ sparse.diags(inv_sqrt_d)
    )


def check_similarity(weights: SpatialWeights,
                     tol: Optional[float] = None) -> SimilarityCheck:
    """
    Decide whether weights are symmetric or similar to symmetric.

    Parameters
    ----------
    weights : SpatialWeights
        Weights to inspect
    tol : float, optional
        Symmetry tolerance; defaults to the configured ``symmetry_tol``

    Returns
    -------
    Symmetrizable or NotSymmetrizable

    Examples
    --------
    >>> check = check_similarity(lw)
    >>> if check.symmetrizable:
    ...     print(check.d[:5])
    """
    if tol is None:
        tol = get_config().symmetry_tol

    W = weights.to_sparse()
    n = weights.n

    if weights.similar or _is_symmetric(W, tol):
        return Symmetrizable(d=np.ones(n), already_symmetric=True)

    if not weights.has_symmetric_neighbors:
        return NotSymmetrizable(
            reason="neighbour relation is not symmetric",
            pairs=asymmetric_pairs(weights.neighbors),
        )

    G = weights.general_sparse()
    if not _is_symmetric(G, tol):
        return NotSymmetrizable(
            reason="pre-transform weights are not symmetric",
            pairs=_asymmetric_entries(G, tol),
        )

    # Row scaling that maps G onto W
    g_rows = np.asarray(G.sum(axis=1)).ravel()
    w_rows = np.asarray(W.sum(axis=1)).ravel()
    has_links = weights.cardinalities > 0
    d = np.zeros(n)
    d[has_links] = g_rows[has_links] / w_rows[has_links]

    if np.any(d[has_links] <= 0) or not np.all(np.isfinite(d)):
        return NotSymmetrizable(
            reason="row scaling is not positive",
            pairs=np.empty((0, 2), dtype=np.int64),
        )

    W_sym = _scaled(W, d)
    if not _is_symmetric(W_sym, tol):
        return NotSymmetrizable(
            reason="weights are not a row scaling of symmetric weights",
            pairs=_asymmetric_entries(W_sym, tol),
        )

    return Symmetrizable(d=d)


def symmetrize_by_similarity(weights: SpatialWeights) -> sparse.csr_matrix:
    """
    Return the symmetric matrix similar to the weights matrix.

    Computes D^{1/2} W D^{-1/2}. Entities without neighbours keep
    all-zero rows and columns. Symmetric input is returned unchanged.

    Parameters
    ----------
    weights : SpatialWeights
        Weights whose pre-transform structure is symmetric

    Returns
    -------
    sparse.csr_matrix
        (n, n) symmetric matrix with the eigenvalues of W

    Raises
    ------
    AsymmetricStructureError
        If the underlying neighbour relation or weights are asymmetric
    """
    check = check_similarity(weights)
    if not check.symmetrizable:
        raise AsymmetricStructureError(
            f"Cannot symmetrize by similarity: {check.reason}"
            + (f" (e.g. pair {tuple(check.pairs[0])})" if len(check.pairs) else "")
        )

    W = weights.to_sparse()
    if check.already_symmetric:
        return W

    W_sym = _scaled(W, check.d)
    # Remove rounding asymmetry
    W_sym = sparse.csr_matrix((W_sym + W_sym.T) * 0.5)
    logger.debug("Symmetrized %d x %d weights by similarity", *W_sym.shape)
    return W_sym


def similar_weights(weights: SpatialWeights) -> SpatialWeights:
    """
    SpatialWeights holding the symmetrized values, flagged ``similar``.

    The style tag and pre-transform weights are kept so the result can
    still be traced back to its coding.
    """
    W_sym = symmetrize_by_similarity(weights)
    W_sym.sort_indices()
    values = []
    for i, row in enumerate(weights.neighbors):
        start, end = W_sym.indptr[i], W_sym.indptr[i + 1]
        lookup = dict(zip(W_sym.indices[start:end], W_sym.data[start:end]))
        values.append(np.array([lookup.get(j, 0.0) for j in row], dtype=np.float64))

    return SpatialWeights(
        neighbors=weights.neighbors,
        weights=values,
        style=weights.style,
        region_ids=weights.region_ids,
        general_weights=weights.general_weights,
        similar=True,
    )
