"""
weights.py - Spatial weights container

SpatialWeights pairs a neighbour list with per-link weight values and a
style tag describing how the values were derived from the pre-transform
("general") weights:

- B      : basic coding, values as given (1 for binary)
- W      : row-standardised, each non-empty row sums to 1
- C      : globally standardised, all values sum to n
- U      : globally standardised, all values sum to 1
- minmax : divided by min(max row sum, max column sum)
- S      : variance-stabilising coding (Tiefelsdorf et al. 1999)

Objects are immutable; use with_style() to derive another coding from the
same pre-transform weights.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import sparse

from .config import (
    VALID_STYLES,
    DimensionMismatchError,
    NoNeighborError,
    get_config,
)
from .neighbors import (
    NeighborList,
    cardinalities,
    is_symmetric_neighbors,
    neighbors_from_adjacency,
    neighbors_to_adjacency,
    validate_neighbors,
)

logger = logging.getLogger(__name__)


def _links_to_sparse(nb: NeighborList, values: List[np.ndarray]) -> sparse.csr_matrix:
    n = len(nb)
    rows = np.repeat(np.arange(n), cardinalities(nb))
    if n and rows.size:
        cols = np.concatenate(nb)
        data = np.concatenate(values).astype(np.float64)
    else:
        cols = np.array([], dtype=np.int64)
        data = np.array([], dtype=np.float64)
    return sparse.csr_matrix((data, (rows, cols)), shape=(n, n))


def _apply_style(nb: NeighborList,
                 glist: List[np.ndarray],
                 style: str) -> List[np.ndarray]:
    """Derive weight values of the requested style from pre-transform weights."""
    n = len(nb)
    row_sums = np.array([g.sum() for g in glist], dtype=np.float64)
    total = row_sums.sum()

    if style == 'B':
        return [g.astype(np.float64) for g in glist]

    if style == 'W':
        out = []
        for i, g in enumerate(glist):
            if len(g) == 0:
                out.append(np.array([], dtype=np.float64))
            elif row_sums[i] == 0:
                raise ValueError(f"Row {i} has neighbours but zero weight sum")
            else:
                out.append(g / row_sums[i])
        return out

    if total == 0:
        raise ValueError(f"Style '{style}' requires a non-zero total weight")

    if style == 'C':
        return [g * (n / total) for g in glist]

    if style == 'U':
        return [g / total for g in glist]

    if style == 'minmax':
        col_sums = np.asarray(_links_to_sparse(nb, glist).sum(axis=0)).ravel()
        scale = min(row_sums.max(), col_sums.max())
        return [g / scale for g in glist]

    if style == 'S':
        q = np.sqrt(np.array([np.sum(g ** 2) for g in glist]))
        stab = [g / q[i] if len(g) else g.astype(np.float64)
                for i, g in enumerate(glist)]
        q_total = sum(s.sum() for s in stab)
        return [s * (n / q_total) for s in stab]

    raise ValueError(f"Unknown style: '{style}'. Use one of {VALID_STYLES}.")


@dataclass(frozen=True, eq=False)
class SpatialWeights:
    """
    Spatial weights over n entities.

    Attributes
    ----------
    neighbors : list of np.ndarray
        Sorted 0-based neighbour positions per entity (self excluded)
    weights : list of np.ndarray
        Weight values parallel to ``neighbors``, after the style transform
    style : str
        Coding used to derive ``weights`` (see module docstring)
    region_ids : pd.Index
        Entity labels aligned to positions
    general_weights : list of np.ndarray, optional
        Pre-transform weights; None means binary
    similar : bool
        True if the values were symmetrized by similarity
    """
    neighbors: List[np.ndarray]
    weights: List[np.ndarray]
    style: str
    region_ids: pd.Index
    general_weights: Optional[List[np.ndarray]] = None
    similar: bool = False

    # ========== Construction ==========

    @classmethod
    def from_neighbors(cls,
                       nb: Sequence[Sequence[int]],
                       style: str = 'W',
                       general_weights: Optional[Sequence[Sequence[float]]] = None,
                       region_ids: Optional[Sequence] = None,
                       zero_policy: Optional[bool] = None) -> 'SpatialWeights':
        """
        Build weights from a neighbour list.

        Parameters
        ----------
        nb : sequence of sequences of int
            0-based neighbour positions per entity
        style : str, default='W'
            One of 'B', 'W', 'C', 'U', 'S', 'minmax'
        general_weights : sequence of sequences of float, optional
            Pre-transform weights parallel to ``nb``; binary if None
        region_ids : sequence, optional
            Entity labels; defaults to positions
        zero_policy : bool, optional
            Allow entities with no neighbours. Defaults to the
            configured ``zero_policy``.

        Returns
        -------
        SpatialWeights

        Examples
        --------
        >>> nb = grid_neighbors(7, 7)
        >>> lw = SpatialWeights.from_neighbors(nb, style='W')
        >>> lw.weights[0]
        array([0.5, 0.5])
        """
        if style not in VALID_STYLES:
            raise ValueError(f"Unknown style: '{style}'. Use one of {VALID_STYLES}.")
        if zero_policy is None:
            zero_policy = get_config().zero_policy

        neighbors = validate_neighbors(nb)
        n = len(neighbors)
        if n == 0:
            raise ValueError("Neighbour list is empty")

        # Pre-transform weights must stay parallel to the sorted neighbours
        if general_weights is not None:
            if len(general_weights) != n:
                raise ValueError(
                    f"general_weights has {len(general_weights)} rows, expected {n}"
                )
            glist = []
            for i, (row, g) in enumerate(zip(nb, general_weights)):
                row = np.asarray(row, dtype=np.int64)
                g = np.asarray(g, dtype=np.float64)
                if g.shape != row.shape:
                    raise ValueError(
                        f"general_weights[{i}] has {g.size} values for "
                        f"{row.size} neighbours"
                    )
                if not np.all(np.isfinite(g)):
                    raise ValueError(f"general_weights[{i}] contains non-finite values")
                _, first = np.unique(row, return_index=True)
                glist.append(g[first])
            stored = glist
        else:
            glist = [np.ones(len(row), dtype=np.float64) for row in neighbors]
            stored = None

        card = cardinalities(neighbors)
        isolated = np.where(card == 0)[0]
        if len(isolated) > 0:
            if not zero_policy:
                raise NoNeighborError(isolated)
            logger.warning("%d entities have no neighbours", len(isolated))

        if region_ids is None:
            ids = pd.RangeIndex(n)
        else:
            ids = pd.Index(region_ids)
            if len(ids) != n:
                raise ValueError(f"region_ids has {len(ids)} labels, expected {n}")
            if not ids.is_unique:
                raise ValueError("region_ids must be unique")

        values = _apply_style(neighbors, glist, style)

        return cls(
            neighbors=neighbors,
            weights=values,
            style=style,
            region_ids=ids,
            general_weights=stored,
        )

    @classmethod
    def from_sparse(cls,
                    matrix,
                    style: str = 'W',
                    region_ids: Optional[Sequence] = None,
                    zero_policy: Optional[bool] = None) -> 'SpatialWeights':
        """
        Build weights from a square matrix; non-zero entries are links.

        Matrix values become the pre-transform weights. A matrix holding
        only ones is treated as binary.

        Parameters
        ----------
        matrix : array-like or scipy.sparse matrix
            (n, n) weights matrix
        style : str, default='W'
            Coding to apply to the matrix values
        region_ids : sequence, optional
            Entity labels
        zero_policy : bool, optional
            Allow entities with no neighbours

        Returns
        -------
        SpatialWeights
        """
        mat = sparse.csr_matrix(matrix, dtype=np.float64)
        nb = neighbors_from_adjacency(mat)

        # Same off-diagonal pattern as nb, values in sorted column order
        links = sparse.csr_matrix(mat - sparse.diags(mat.diagonal()))
        links.eliminate_zeros()
        links.sort_indices()
        glist = [links.data[links.indptr[i]:links.indptr[i + 1]].copy()
                 for i in range(links.shape[0])]
        is_binary = all(np.all(g == 1.0) for g in glist)
        return cls.from_neighbors(
            nb,
            style=style,
            general_weights=None if is_binary else glist,
            region_ids=region_ids,
            zero_policy=zero_policy,
        )

    def with_style(self, style: str) -> 'SpatialWeights':
        """Return a copy coded with another style from the same pre-transform weights."""
        if self.similar:
            raise ValueError("Cannot restyle weights that were symmetrized by similarity")
        return SpatialWeights.from_neighbors(
            self.neighbors,
            style=style,
            general_weights=self.general_weights,
            region_ids=self.region_ids,
            zero_policy=True,
        )

    # ========== Properties ==========

    @property
    def n(self) -> int:
        return len(self.neighbors)

    @property
    def cardinalities(self) -> np.ndarray:
        return cardinalities(self.neighbors)

    @property
    def n_links(self) -> int:
        """Directed link count."""
        return int(self.cardinalities.sum())

    @property
    def no_neighbor_ids(self) -> pd.Index:
        return self.region_ids[self.cardinalities == 0]

    @property
    def s0(self) -> float:
        """Sum of all weight values."""
        return float(sum(w.sum() for w in self.weights))

    @property
    def is_binary(self) -> bool:
        return self.general_weights is None

    @property
    def has_symmetric_neighbors(self) -> bool:
        return is_symmetric_neighbors(self.neighbors)

    # ========== Conversions ==========

    def to_sparse(self) -> sparse.csr_matrix:
        """(n, n) CSR matrix of the styled weight values."""
        return _links_to_sparse(self.neighbors, self.weights)

    def general_sparse(self) -> sparse.csr_matrix:
        """(n, n) CSR matrix of the pre-transform weights (binary if none)."""
        if self.general_weights is None:
            return neighbors_to_adjacency(self.neighbors)
        return _links_to_sparse(self.neighbors, self.general_weights)

    def to_dense(self) -> np.ndarray:
        return self.to_sparse().toarray()

    def lag(self, x) -> np.ndarray:
        """Spatial lag W x; entities without neighbours get 0."""
        x = np.asarray(x, dtype=np.float64)
        if x.shape[0] != self.n:
            raise DimensionMismatchError(x.shape[0], self.n)
        return self.to_sparse() @ x

    # ========== Reporting ==========

    def summary(self) -> Dict:
        """Summary statistics of the weights."""
        card = self.cardinalities
        return {
            'n': self.n,
            'n_links': self.n_links,
            'pct_nonzero': 100.0 * self.n_links / (self.n ** 2),
            'style': self.style,
            'mean_neighbors': float(card.mean()),
            'min_neighbors': int(card.min()),
            'max_neighbors': int(card.max()),
            'no_neighbors': int((card == 0).sum()),
            's0': self.s0,
            'symmetric_neighbors': self.has_symmetric_neighbors,
            'binary': self.is_binary,
            'similar': self.similar,
        }

    def __repr__(self) -> str:
        s = self.summary()
        return (
            f"SpatialWeights (style={s['style']}, {s['n']} entities, "
            f"{s['n_links']} links, mean neighbours={s['mean_neighbors']:.2f})"
        )
