"""
neighbors.py - Neighbour list helpers

A neighbour list is a list of length n whose i-th element is a sorted
integer array of the 0-based positions adjacent to entity i (self
excluded). These helpers build, inspect and validate neighbour lists;
weight values and styles live in weights.py.
"""
from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np
from scipy import sparse

logger = logging.getLogger(__name__)

NeighborList = List[np.ndarray]


def _as_neighbor_array(values, i: int, n: int) -> np.ndarray:
    arr = np.unique(np.asarray(values, dtype=np.int64))
    if arr.size and (arr.min() < 0 or arr.max() >= n):
        raise ValueError(f"Neighbour of entity {i} out of range [0, {n})")
    if np.any(arr == i):
        raise ValueError(f"Entity {i} lists itself as a neighbour")
    return arr


def validate_neighbors(nb: Sequence[Sequence[int]]) -> NeighborList:
    """
    Normalise a neighbour list to sorted, distinct int64 arrays.

    Parameters
    ----------
    nb : sequence of sequences of int
        0-based neighbour positions per entity

    Returns
    -------
    list of np.ndarray

    Raises
    ------
    ValueError
        If a position is out of range or an entity lists itself.
    """
    n = len(nb)
    return [_as_neighbor_array(row, i, n) for i, row in enumerate(nb)]


def cardinalities(nb: NeighborList) -> np.ndarray:
    """Number of neighbours per entity."""
    return np.array([len(row) for row in nb], dtype=np.int64)


def grid_neighbors(nrow: int,
                   ncol: int,
                   rook: bool = True,
                   torus: bool = False) -> NeighborList:
    """
    Build contiguity neighbours for a regular grid of cells.

    Cells are numbered row by row: cell (r, c) has position r * ncol + c.

    Parameters
    ----------
    nrow, ncol : int
        Grid dimensions
    rook : bool, default=True
        If True, share-an-edge neighbours (4); otherwise queen (8)
    torus : bool, default=False
        If True, wrap edges so every cell has the same neighbour count

    Returns
    -------
    list of np.ndarray

    Examples
    --------
    >>> nb = grid_neighbors(7, 7)
    >>> cardinalities(nb)[:3]
    array([2, 3, 3])
    """
    if nrow < 1 or ncol < 1:
        raise ValueError(f"Grid dimensions must be positive, got {nrow}x{ncol}")

    if rook:
        offsets = [(-1, 0), (0, -1), (0, 1), (1, 0)]
    else:
        offsets = [(dr, dc) for dr in (-1, 0, 1) for dc in (-1, 0, 1)
                   if (dr, dc) != (0, 0)]

    nb = []
    for r in range(nrow):
        for c in range(ncol):
            pos = []
            for dr, dc in offsets:
                rr, cc = r + dr, c + dc
                if torus:
                    rr, cc = rr % nrow, cc % ncol
                elif not (0 <= rr < nrow and 0 <= cc < ncol):
                    continue
                j = rr * ncol + cc
                if j != r * ncol + c:
                    pos.append(j)
            nb.append(np.unique(np.array(pos, dtype=np.int64)))

    logger.debug("Built %dx%d %s grid (torus=%s)",
                 nrow, ncol, 'rook' if rook else 'queen', torus)
    return nb


def neighbors_from_adjacency(matrix) -> NeighborList:
    """
    Extract a neighbour list from the non-zero pattern of a square matrix.

    Diagonal entries are ignored.

    Parameters
    ----------
    matrix : array-like or scipy.sparse matrix
        (n, n) adjacency or weights matrix

    Returns
    -------
    list of np.ndarray
    """
    mat = sparse.csr_matrix(matrix, dtype=np.float64)
    if mat.shape[0] != mat.shape[1]:
        raise ValueError(f"Adjacency matrix must be square, got {mat.shape}")
    mat = sparse.csr_matrix(mat - sparse.diags(mat.diagonal()))
    mat.eliminate_zeros()
    mat.sort_indices()
    return [mat.indices[mat.indptr[i]:mat.indptr[i + 1]].astype(np.int64)
            for i in range(mat.shape[0])]


def neighbors_to_adjacency(nb: NeighborList) -> sparse.csr_matrix:
    """Binary (n, n) CSR adjacency matrix of a neighbour list."""
    n = len(nb)
    rows = np.repeat(np.arange(n), cardinalities(nb))
    cols = np.concatenate(nb) if n else np.array([], dtype=np.int64)
    data = np.ones(len(rows), dtype=np.float64)
    return sparse.csr_matrix((data, (rows, cols)), shape=(n, n))


def is_symmetric_neighbors(nb: NeighborList) -> bool:
    """
    Check whether j in nb[i] implies i in nb[j] for all pairs.

    Parameters
    ----------
    nb : list of np.ndarray

    Returns
    -------
    bool
    """
    adj = neighbors_to_adjacency(nb)
    return (adj != adj.T).nnz == 0


def asymmetric_pairs(nb: NeighborList) -> np.ndarray:
    """(k, 2) array of (i, j) with j in nb[i] but i not in nb[j]."""
    adj = neighbors_to_adjacency(nb)
    diff = (adj - adj.T).tocoo()
    mask = diff.data > 0
    return np.column_stack([diff.row[mask], diff.col[mask]])
