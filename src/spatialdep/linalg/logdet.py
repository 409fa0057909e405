"""
logdet.py - Log-determinants of I - rho W

Spatial regression likelihoods need ln|I - rho W| for many rho. Three
routes are offered:

- 'eigen'    : sum_i ln|1 - rho lambda_i|; one eigen-decomposition, then
               each rho is O(n). Dense, so limited to moderate n.
- 'LU'       : sparse LU factorisation of I - rho W for each rho.
- 'Cholesky' : Cholesky of I - rho W_sym, where W_sym is the symmetric
               matrix similar to W; requires symmetrizable weights and
               rho inside the feasible interval.

rho_interval() gives the interval (1/lambda_min, 1/lambda_max) on which
I - rho W is non-singular.
"""
from __future__ import annotations

import logging
import warnings
from typing import Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from scipy import sparse

from ..data.config import get_config
from ..data.weights import SpatialWeights
from .backend import NumericBackend, get_backend
from .similarity import check_similarity, symmetrize_by_similarity

logger = logging.getLogger(__name__)

LOGDET_METHODS = ('eigen', 'LU', 'Cholesky')

BackendLike = Optional[Union[str, NumericBackend]]


def weights_eigenvalues(weights: SpatialWeights,
                        backend: BackendLike = None) -> np.ndarray:
    """
    All eigenvalues of the weights matrix.

    Symmetrizable weights are decomposed through their symmetric similar
    matrix and give real eigenvalues; otherwise the general (possibly
    complex) eigenvalues of W are returned.

    Parameters
    ----------
    weights : SpatialWeights
    backend : str or NumericBackend, optional

    Returns
    -------
    np.ndarray
        Sorted ascending (by real part)
    """
    be = get_backend(backend)
    n = weights.n
    if n > get_config().eigen_warn_n:
        warnings.warn(
            f"Dense eigen-decomposition of a {n} x {n} matrix; "
            "this scales as O(n^3) in time and O(n^2) in memory",
            stacklevel=2,
        )

    if check_similarity(weights).symmetrizable:
        values = be.eigenvalues(symmetrize_by_similarity(weights), symmetric=True)
    else:
        values = be.eigenvalues(weights.to_sparse(), symmetric=False)
        if np.allclose(values.imag, 0.0):
            values = values.real
    return np.sort_complex(values) if np.iscomplexobj(values) else np.sort(values)


def rho_interval(weights: SpatialWeights,
                 backend: BackendLike = None,
                 eigenvalues: Optional[np.ndarray] = None) -> Tuple[float, float]:
    """
    Interval of rho for which I - rho W is non-singular.

    Parameters
    ----------
    weights : SpatialWeights
    backend : str or NumericBackend, optional
    eigenvalues : np.ndarray, optional
        Precomputed eigenvalues of W

    Returns
    -------
    tuple of float
        (1 / lambda_min, 1 / lambda_max); -inf / inf when W has no
        negative / positive real eigenvalue

    Examples
    --------
    >>> lw = SpatialWeights.from_neighbors(grid_neighbors(7, 7))
    >>> rho_interval(lw)
    (-1.0, 1.0)
    """
    if eigenvalues is None:
        eigenvalues = weights_eigenvalues(weights, backend=backend)
    real = np.real(eigenvalues[np.isclose(np.imag(eigenvalues), 0.0)])
    lam_min, lam_max = real.min(), real.max()
    lower = 1.0 / lam_min if lam_min < 0 else -np.inf
    upper = 1.0 / lam_max if lam_max > 0 else np.inf
    return float(lower), float(upper)


def _identity_minus(rho: float, matrix) -> sparse.csc_matrix:
    n = matrix.shape[0]
    return sparse.csc_matrix(sparse.identity(n, format='csc') - rho * matrix)


def log_determinant(weights: SpatialWeights,
                    rho: float,
                    method: str = 'LU',
                    backend: BackendLike = None,
                    eigenvalues: Optional[np.ndarray] = None) -> float:
    """
    Compute ln|I - rho W|.

    Parameters
    ----------
    weights : SpatialWeights
        Weights matrix W
    rho : float
        Spatial autoregressive coefficient
    method : str, default='LU'
        'eigen', 'LU' or 'Cholesky'
    backend : str or NumericBackend, optional
        Linear algebra provider
    eigenvalues : np.ndarray, optional
        Precomputed eigenvalues for method='eigen'

    Returns
    -------
    float

    Raises
    ------
    AsymmetricStructureError
        method='Cholesky' on weights that are not similar to symmetric
    numpy.linalg.LinAlgError
        method='Cholesky' with rho outside the feasible interval

    Examples
    --------
    >>> log_determinant(lw, 0.5, method='eigen')
    >>> log_determinant(lw, 0.5, method='Cholesky')
    """
    if method not in LOGDET_METHODS:
        raise ValueError(f"method must be one of {LOGDET_METHODS}, got '{method}'")

    if method == 'eigen':
        if eigenvalues is None:
            eigenvalues = weights_eigenvalues(weights, backend=backend)
        return float(np.sum(np.log(np.abs(1.0 - rho * eigenvalues))))

    be = get_backend(backend)
    if method == 'Cholesky':
        W_sym = symmetrize_by_similarity(weights)
        return be.log_determinant(_identity_minus(rho, W_sym), method='Cholesky')

    return be.log_determinant(_identity_minus(rho, weights.to_sparse()), method='LU')


def log_determinant_grid(weights: SpatialWeights,
                         rhos: Sequence[float],
                         method: str = 'LU',
                         backend: BackendLike = None) -> pd.Series:
    """
    ln|I - rho W| over a grid of rho values.

    The eigen route decomposes W once; LU and Cholesky factorise once
    per rho.

    Parameters
    ----------
    weights : SpatialWeights
    rhos : sequence of float
    method : str, default='LU'
    backend : str or NumericBackend, optional

    Returns
    -------
    pd.Series
        Log-determinants indexed by rho
    """
    rhos = np.asarray(rhos, dtype=np.float64)
    eigenvalues = None
    if method == 'eigen':
        eigenvalues = weights_eigenvalues(weights, backend=backend)

    values = [
        log_determinant(weights, rho, method=method, backend=backend,
                        eigenvalues=eigenvalues)
        for rho in rhos
    ]
    logger.debug("Computed %d log-determinants (%s)", len(values), method)
    return pd.Series(values, index=pd.Index(rhos, name='rho'), name='logdet')
