"""
aple.py - Approximate Profile-Likelihood Estimator (APLE)

APLE (Li, Calder & Cressie 2007) approximates the profile-likelihood
estimate of the SAR dependence parameter from a zero-mean variable x
and row-standardised weights W:

              x' S x
    APLE = ----------------------------,    S = (W + W') / 2
           x' W'W x + (tr(W W) / n) x'x

tr(W W) equals the sum of squared eigenvalues of W. It can be taken
from the sparse product (use_trace=True, Li et al. 2010) or from a
dense eigen-decomposition (use_trace=False, Li et al. 2007); both give
the same value.

x must be detrended (zero mean) by the caller; a non-zero mean only
triggers a warning.
"""
from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
import pandas as pd

from ..data.config import (
    DimensionMismatchError,
    InvalidConfigurationError,
    SymmetryViolationError,
    get_config,
)
from ..data.weights import SpatialWeights
from ..linalg.backend import NumericBackend, get_backend
from ..linalg.logdet import weights_eigenvalues
from ..linalg.similarity import check_similarity

logger = logging.getLogger(__name__)

BackendLike = Optional[Union[str, NumericBackend]]


@dataclass(frozen=True, eq=False)
class AplePieces:
    """Intermediate quantities shared by aple, local_aple and aple_scatter."""
    n: int
    x: np.ndarray
    lag: np.ndarray  # W x
    sym_lag: np.ndarray  # S x
    trace: float  # tr(W W)
    numerator: float
    denominator: float

    @property
    def statistic(self) -> float:
        return self.numerator / self.denominator


def validate_aple_inputs(x,
                         weights: SpatialWeights,
                         override_similarity_check: bool = False) -> np.ndarray:
    """
    Check the variable and weights before computing APLE.

    Parameters
    ----------
    x : array-like
        Detrended variable, one value per entity
    weights : SpatialWeights
        Row-standardised weights
    override_similarity_check : bool, default=False
        Skip the symmetric-or-similar requirement

    Returns
    -------
    np.ndarray
        x as a float64 vector

    Raises
    ------
    InvalidConfigurationError
        Weights are not row-standardised (style 'W'), were symmetrized by
        similarity, or have no links
    DimensionMismatchError
        len(x) differs from the number of entities
    SymmetryViolationError
        Weights are not similar to symmetric and the check is not overridden
    ValueError
        x is not a finite, non-constant 1-D vector
    """
    if weights.style != 'W':
        raise InvalidConfigurationError(
            f"APLE requires row-standardised weights (style 'W'), got '{weights.style}'"
        )
    if weights.similar:
        raise InvalidConfigurationError(
            "APLE requires the row-standardised weights themselves; these were "
            "symmetrized by similarity and their rows no longer sum to 1"
        )
    if weights.n_links == 0:
        raise InvalidConfigurationError(
            "Weights have no links; APLE is undefined when no entity has neighbours"
        )

    x = np.asarray(x, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError(f"x must be a 1-D vector, got shape {x.shape}")
    if x.shape[0] != weights.n:
        raise DimensionMismatchError(x.shape[0], weights.n)
    if not np.all(np.isfinite(x)):
        raise ValueError("x contains NaN or infinite values")
    if not np.any(x):
        raise ValueError("x is identically zero")

    cfg = get_config()
    mean = x.mean()
    if abs(mean) > cfg.zero_mean_tol * max(1.0, np.abs(x).max()):
        warnings.warn(
            f"x has mean {mean:.3g}; APLE assumes a detrended (zero-mean) variable",
            stacklevel=2,
        )

    if not override_similarity_check:
        check = check_similarity(weights)
        if not check.symmetrizable:
            raise SymmetryViolationError(
                f"Weights must be symmetric or similar to symmetric: {check.reason}. "
                "Use override_similarity_check=True for row-standardised "
                "asymmetric general weights over symmetric neighbours."
            )

    return x


def weights_trace(weights: SpatialWeights,
                  use_trace: bool = True,
                  backend: BackendLike = None) -> float:
    """
    tr(W W), the APLE correction numerator.

    Parameters
    ----------
    weights : SpatialWeights
    use_trace : bool, default=True
        If True, sum the diagonal of the sparse product; otherwise sum the
        squared eigenvalues (dense, O(n^3))
    backend : str or NumericBackend, optional

    Returns
    -------
    float
    """
    be = get_backend(backend)
    if use_trace:
        W = weights.to_sparse()
        return be.trace_of_product(W, W)

    eigenvalues = weights_eigenvalues(weights, backend=be)
    return float(np.real(np.sum(eigenvalues ** 2)))


def aple_pieces(x,
                weights: SpatialWeights,
                override_similarity_check: bool = False,
                use_trace: bool = True,
                backend: BackendLike = None,
                trace: Optional[float] = None) -> AplePieces:
    """
    Validate inputs and compute the quantities APLE is built from.

    ``trace`` may be supplied to reuse tr(W W) across calls with the
    same weights (e.g. permutations).
    """
    x = validate_aple_inputs(x, weights, override_similarity_check)
    be = get_backend(backend)
    n = weights.n

    W = be.prepare(weights.to_sparse())
    lag = be.matvec(W, x)
    sym_lag = 0.5 * (lag + be.matvec(W.T, x))

    if trace is None:
        trace = weights_trace(weights, use_trace=use_trace, backend=be)

    numerator = float(x @ sym_lag)
    denominator = float(lag @ lag + (trace / n) * (x @ x))

    return AplePieces(
        n=n,
        x=x,
        lag=lag,
        sym_lag=sym_lag,
        trace=float(trace),
        numerator=numerator,
        denominator=denominator,
    )


def aple(x,
         weights: SpatialWeights,
         override_similarity_check: bool = False,
         use_trace: bool = True,
         backend: BackendLike = None) -> float:
    """
    Approximate Profile-Likelihood Estimator of spatial dependence.

    Parameters
    ----------
    x : array-like
        Zero-mean (detrended) variable, one value per entity
    weights : SpatialWeights
        Row-standardised (style 'W') weights
    override_similarity_check : bool, default=False
        If True, accept weights that are not similar to symmetric, such
        as row-standardised asymmetric general weights over symmetric
        neighbours
    use_trace : bool, default=True
        If True, take tr(W W) from the sparse product; if False, from the
        eigenvalues of W (dense, slow for large n)
    backend : str or NumericBackend, optional
        Linear algebra provider; defaults to the configured backend

    Returns
    -------
    float
        APLE statistic

    Raises
    ------
    InvalidConfigurationError
        Weights are not row-standardised, were symmetrized by similarity
        (pass the source weights instead), or have no links
    SymmetryViolationError
        Weights are not symmetric or similar to symmetric
    DimensionMismatchError
        len(x) differs from weights.n

    Examples
    --------
    >>> lw = SpatialWeights.from_neighbors(grid_neighbors(7, 7), style='W')
    >>> x = y - y.mean()
    >>> aple(x, lw)
    >>> aple(x, lw, use_trace=False)  # same value via eigenvalues
    """
    pieces = aple_pieces(x, weights, override_similarity_check, use_trace, backend)
    value = pieces.statistic
    logger.debug("APLE = %.6f (n=%d, tr(WW)=%.6f)", value, pieces.n, pieces.trace)
    return value


def local_aple(x,
               weights: SpatialWeights,
               override_similarity_check: bool = False,
               use_trace: bool = True,
               backend: BackendLike = None) -> pd.Series:
    """
    Per-entity APLE contributions.

    local_i = n * x_i * (S x)_i / denominator, so the mean of the local
    values equals aple().

    Parameters
    ----------
    x, weights, override_similarity_check, use_trace, backend
        As for aple()

    Returns
    -------
    pd.Series
        Local values indexed by region ID
    """
    p = aple_pieces(x, weights, override_similarity_check, use_trace, backend)
    values = p.n * p.x * p.sym_lag / p.denominator
    return pd.Series(values, index=weights.region_ids, name='local_aple')


def aple_scatter(x,
                 weights: SpatialWeights,
                 override_similarity_check: bool = False,
                 use_trace: bool = True,
                 backend: BackendLike = None) -> pd.DataFrame:
    """
    Coordinates for an APLE scatterplot.

    Splits numerator and denominator into per-entity terms,

        X_i = sqrt((W x)_i^2 + (tr(W W) / n) x_i^2)
        Y_i = x_i (S x)_i / X_i

    so that sum(X * Y) / sum(X ** 2) is APLE: the slope of a regression
    of Y on X through the origin.

    Returns
    -------
    pd.DataFrame
        Columns X, Y, local_aple indexed by region ID
    """
    p = aple_pieces(x, weights, override_similarity_check, use_trace, backend)
    X = np.sqrt(p.lag ** 2 + (p.trace / p.n) * p.x ** 2)
    contrib = p.x * p.sym_lag
    Y = np.zeros_like(X)
    nonzero = X > 0
    Y[nonzero] = contrib[nonzero] / X[nonzero]
    return pd.DataFrame({
        'X': X,
        'Y': Y,
        'local_aple': p.n * contrib / p.denominator,
    }, index=weights.region_ids)

