"""
conftest.py - Shared test fixtures for spatialdep

pytest reads this file before running any test. Every fixture defined
here is injected into tests that ask for it by name:

    @pytest.fixture
    def lw_grid():
        return SpatialWeights.from_neighbors(...)

    def test_something(lw_grid):      <- pytest hands over the fixture
        assert lw_grid.n == 49
"""

import numpy as np
import pytest

from spatialdep.data.neighbors import grid_neighbors
from spatialdep.data.weights import SpatialWeights

# ===========================================================================
# Constants — the 7 x 7 lattice used throughout
# ===========================================================================

NROW = 7
NCOL = 7
N = NROW * NCOL  # 49 entities


# ===========================================================================
# Fixture 1: rook lattice, row-standardised
# ===========================================================================


@pytest.fixture
def grid_nb():
    """Rook neighbours of a 7 x 7 grid (corners 2, edges 3, interior 4)."""
    return grid_neighbors(NROW, NCOL, rook=True)


@pytest.fixture
def lw_grid(grid_nb):
    """
    Row-standardised rook weights on the 7 x 7 grid.

    One connected, bipartite component: eigenvalues lie in [-1, 1]
    with both ends attained.
    """
    return SpatialWeights.from_neighbors(grid_nb, style='W')


@pytest.fixture
def lw_torus():
    """
    Row-standardised rook weights on a 7 x 7 torus.

    Every cell has exactly 4 neighbours, so row standardisation keeps the
    matrix symmetric.
    """
    return SpatialWeights.from_neighbors(
        grid_neighbors(NROW, NCOL, rook=True, torus=True), style='W'
    )


# ===========================================================================
# Fixture 2: weights that are NOT similar to symmetric
# ===========================================================================


@pytest.fixture
def lw_asymmetric_nb(grid_nb):
    """
    Grid weights with one one-way link: 7 lists 0 as a neighbour but 0
    no longer lists 7.
    """
    nb = [row.copy() for row in grid_nb]
    nb[0] = np.array([1])
    return SpatialWeights.from_neighbors(nb, style='W')


@pytest.fixture
def lw_asymmetric_general(grid_nb):
    """
    Symmetric grid neighbours with asymmetric pre-transform weights:
    g_ij = 2 if i < j else 1.
    """
    glist = [np.where(row > i, 2.0, 1.0) for i, row in enumerate(grid_nb)]
    return SpatialWeights.from_neighbors(grid_nb, style='W', general_weights=glist)


# ===========================================================================
# Fixture 3: weights with an entity that has no neighbours
# ===========================================================================


@pytest.fixture
def lw_island():
    """Path 0-1-2-3 plus isolated entity 4 (allowed via zero_policy)."""
    nb = [[1], [0, 2], [1, 3], [2], []]
    return SpatialWeights.from_neighbors(nb, style='W', zero_policy=True)


# ===========================================================================
# Fixture 4: detrended variables
# ===========================================================================


@pytest.fixture
def x_random():
    """Seeded normal draws on the grid, centred to zero mean."""
    rng = np.random.default_rng(0)
    y = rng.normal(size=N)
    return y - y.mean()


@pytest.fixture
def x_gradient():
    """Smooth row + column gradient: strong positive spatial dependence."""
    rows, cols = np.divmod(np.arange(N), NCOL)
    y = (rows + cols).astype(float)
    return y - y.mean()
