"""
test_weights.py - Tests for neighbour lists, SpatialWeights and config

How to run:
    pytest tests/test_weights.py -v
    pytest tests/ -v -k "Styles"              # only the style-coding tests
"""

import numpy as np
import pandas as pd
import pytest
from scipy import sparse

from spatialdep.data.config import (
    DimensionMismatchError,
    NoNeighborError,
    SpatialDepConfig,
    SpatialDepError,
    get_config,
    set_config,
)
from spatialdep.data.neighbors import (
    asymmetric_pairs,
    cardinalities,
    grid_neighbors,
    is_symmetric_neighbors,
    neighbors_from_adjacency,
    neighbors_to_adjacency,
    validate_neighbors,
)
from spatialdep.data.weights import SpatialWeights

# ===========================================================================
# SECTION 1 — Neighbour Lists
#
# We check:
#   (a) grid construction  — rook / queen / torus neighbour counts
#   (b) validation         — self links and out-of-range positions rejected
#   (c) adjacency          — round trip through a sparse matrix
#   (d) symmetry           — one-way links are detected
# ===========================================================================


class TestNeighborLists:

    # -----------------------------------------------------------------------
    # (a) Grid construction
    # -----------------------------------------------------------------------

    def test_rook_grid_cardinalities(self, grid_nb):
        """
        A 7 x 7 rook lattice has 4 corners (2 neighbours), 20 edge cells
        (3 neighbours) and 25 interior cells (4 neighbours).
        """
        card = cardinalities(grid_nb)
        assert (card == 2).sum() == 4
        assert (card == 3).sum() == 20
        assert (card == 4).sum() == 25

    def test_rook_grid_row_major_numbering(self, grid_nb):
        """Cell (0, 0) touches (0, 1) = 1 and (1, 0) = 7."""
        assert grid_nb[0].tolist() == [1, 7]

    def test_queen_grid_center(self):
        """The centre of a 3 x 3 queen grid touches all 8 other cells."""
        nb = grid_neighbors(3, 3, rook=False)
        assert nb[4].tolist() == [0, 1, 2, 3, 5, 6, 7, 8]

    def test_torus_equal_degree(self):
        """Wrapping the edges gives every cell 4 rook neighbours."""
        nb = grid_neighbors(7, 7, torus=True)
        assert np.all(cardinalities(nb) == 4)

    def test_invalid_grid_dimensions(self):
        with pytest.raises(ValueError):
            grid_neighbors(0, 5)

    # -----------------------------------------------------------------------
    # (b) Validation
    # -----------------------------------------------------------------------

    def test_self_neighbor_rejected(self):
        """An entity may not list itself."""
        with pytest.raises(ValueError, match="itself"):
            validate_neighbors([[0, 1], [0]])

    def test_out_of_range_rejected(self):
        with pytest.raises(ValueError, match="out of range"):
            validate_neighbors([[1], [5]])

    def test_duplicates_removed_and_sorted(self):
        nb = validate_neighbors([[2, 1, 2], [0], [0]])
        assert nb[0].tolist() == [1, 2]

    # -----------------------------------------------------------------------
    # (c) Adjacency round trip
    # -----------------------------------------------------------------------

    def test_adjacency_round_trip(self, grid_nb):
        adj = neighbors_to_adjacency(grid_nb)
        back = neighbors_from_adjacency(adj)
        assert all(np.array_equal(a, b) for a, b in zip(grid_nb, back))

    def test_adjacency_diagonal_ignored(self):
        """Non-zero diagonal entries are not neighbour links."""
        mat = np.array([[5.0, 1.0, 0.0],
                        [1.0, 5.0, 1.0],
                        [0.0, 1.0, 5.0]])
        nb = neighbors_from_adjacency(mat)
        assert [row.tolist() for row in nb] == [[1], [0, 2], [1]]

    # -----------------------------------------------------------------------
    # (d) Symmetry
    # -----------------------------------------------------------------------

    def test_grid_is_symmetric(self, grid_nb):
        assert is_symmetric_neighbors(grid_nb)

    def test_one_way_link_detected(self):
        """1 lists 0 but 0 does not list 1: the pair (1, 0) is reported."""
        nb = validate_neighbors([[2], [0, 2], [0, 1]])
        assert not is_symmetric_neighbors(nb)
        pairs = asymmetric_pairs(nb)
        assert pairs.tolist() == [[1, 0]]


# ===========================================================================
# SECTION 2 — Weight Styles
#
# Goal: every style coding produces the documented sums.
#
# Fixture used: grid_nb, lw_grid  (from conftest.py)
# ===========================================================================


class TestStyles:

    def test_row_standardised_rows_sum_to_one(self, lw_grid):
        row_sums = np.asarray(lw_grid.to_sparse().sum(axis=1)).ravel()
        np.testing.assert_allclose(row_sums, 1.0)

    def test_corner_weights(self, lw_grid):
        """Cell 0 has 2 neighbours, so each gets 1/2."""
        np.testing.assert_allclose(lw_grid.weights[0], [0.5, 0.5])

    def test_binary_style(self, grid_nb):
        lw = SpatialWeights.from_neighbors(grid_nb, style='B')
        assert lw.s0 == pytest.approx(168.0)
        assert all(np.all(w == 1.0) for w in lw.weights)

    def test_global_styles(self, grid_nb):
        """C sums to n, U sums to 1."""
        assert SpatialWeights.from_neighbors(grid_nb, style='C').s0 == pytest.approx(49.0)
        assert SpatialWeights.from_neighbors(grid_nb, style='U').s0 == pytest.approx(1.0)

    def test_variance_stabilising_style(self, grid_nb):
        """
        S divides each row by its root sum of squares before scaling to n,
        so a 2-neighbour row gets larger values than a 4-neighbour row.
        """
        lw = SpatialWeights.from_neighbors(grid_nb, style='S')
        assert lw.s0 == pytest.approx(49.0)
        assert lw.weights[0][0] > lw.weights[8][0]

    def test_minmax_style(self, grid_nb):
        """Largest row and column sums are both 4 for the rook grid."""
        lw = SpatialWeights.from_neighbors(grid_nb, style='minmax')
        assert lw.weights[8].tolist() == [0.25, 0.25, 0.25, 0.25]

    def test_unknown_style(self, grid_nb):
        with pytest.raises(ValueError, match="Unknown style"):
            SpatialWeights.from_neighbors(grid_nb, style='X')

    def test_with_style_round_trip(self, lw_grid):
        """Restyling uses the stored pre-transform weights."""
        lw_b = lw_grid.with_style('B')
        assert lw_b.style == 'B'
        assert lw_b.s0 == pytest.approx(168.0)
        np.testing.assert_allclose(
            lw_b.with_style('W').to_dense(), lw_grid.to_dense()
        )

    def test_general_weights_row_standardised(self, grid_nb):
        """Non-binary pre-transform weights are kept and scaled per row."""
        glist = [np.arange(1, len(row) + 1, dtype=float) for row in grid_nb]
        lw = SpatialWeights.from_neighbors(grid_nb, style='W', general_weights=glist)
        assert not lw.is_binary
        np.testing.assert_allclose(lw.weights[0], [1 / 3, 2 / 3])

    def test_general_weights_length_mismatch(self, grid_nb):
        glist = [np.ones(len(row) + 1) for row in grid_nb]
        with pytest.raises(ValueError, match="general_weights"):
            SpatialWeights.from_neighbors(grid_nb, general_weights=glist)


# ===========================================================================
# SECTION 3 — Construction and Conversion
#
# We check:
#   (a) from_sparse   — binary detection, diagonal ignored
#   (b) no neighbours — NoNeighborError unless zero_policy
#   (c) region IDs    — length and uniqueness
#   (d) lag / summary
# ===========================================================================


class TestConstruction:

    # -----------------------------------------------------------------------
    # (a) from_sparse
    # -----------------------------------------------------------------------

    def test_from_sparse_binary(self, lw_grid):
        """A 0/1 matrix gives binary weights equal to the neighbour-list build."""
        adj = lw_grid.with_style('B').to_sparse()
        lw = SpatialWeights.from_sparse(adj, style='W')
        assert lw.is_binary
        np.testing.assert_allclose(lw.to_dense(), lw_grid.to_dense())

    def test_from_sparse_general(self):
        mat = sparse.csr_matrix(np.array([[0.0, 2.0, 1.0],
                                          [2.0, 0.0, 3.0],
                                          [1.0, 3.0, 0.0]]))
        lw = SpatialWeights.from_sparse(mat, style='W')
        assert not lw.is_binary
        np.testing.assert_allclose(lw.weights[1], [0.4, 0.6])
        np.testing.assert_allclose(lw.general_sparse().toarray(), mat.toarray())

    # -----------------------------------------------------------------------
    # (b) No neighbours
    # -----------------------------------------------------------------------

    def test_no_neighbor_error(self):
        with pytest.raises(NoNeighborError) as excinfo:
            SpatialWeights.from_neighbors([[1], [0], []], style='W')
        assert excinfo.value.positions == [2]
        assert isinstance(excinfo.value, ValueError)
        assert isinstance(excinfo.value, SpatialDepError)

    def test_zero_policy_allows_island(self, lw_island):
        assert lw_island.no_neighbor_ids.tolist() == [4]
        assert len(lw_island.weights[4]) == 0

    def test_zero_policy_from_config(self):
        old = set_config(zero_policy=True)
        try:
            lw = SpatialWeights.from_neighbors([[1], [0], []], style='W')
            assert lw.summary()['no_neighbors'] == 1
        finally:
            set_config(**old.to_dict())

    # -----------------------------------------------------------------------
    # (c) Region IDs
    # -----------------------------------------------------------------------

    def test_default_region_ids(self, lw_grid):
        assert isinstance(lw_grid.region_ids, pd.RangeIndex)
        assert len(lw_grid.region_ids) == 49

    def test_custom_region_ids(self):
        lw = SpatialWeights.from_neighbors([[1], [0]], region_ids=['a', 'b'])
        assert lw.region_ids.tolist() == ['a', 'b']

    def test_region_ids_wrong_length(self):
        with pytest.raises(ValueError, match="region_ids"):
            SpatialWeights.from_neighbors([[1], [0]], region_ids=['a'])

    def test_region_ids_duplicate(self):
        with pytest.raises(ValueError, match="unique"):
            SpatialWeights.from_neighbors([[1], [0]], region_ids=['a', 'a'])

    # -----------------------------------------------------------------------
    # (d) Lag and summary
    # -----------------------------------------------------------------------

    def test_lag_of_constant(self, lw_grid):
        """Row-standardised lag of a constant is the constant."""
        np.testing.assert_allclose(lw_grid.lag(np.full(49, 3.0)), 3.0)

    def test_lag_island_is_zero(self, lw_island):
        lag = lw_island.lag(np.arange(5.0))
        assert lag[4] == 0.0
        assert lag[1] == pytest.approx(1.0)

    def test_lag_dimension_mismatch(self, lw_grid):
        with pytest.raises(DimensionMismatchError):
            lw_grid.lag(np.ones(10))

    def test_summary(self, lw_grid):
        s = lw_grid.summary()
        assert s['n'] == 49
        assert s['n_links'] == 168
        assert s['style'] == 'W'
        assert s['min_neighbors'] == 2
        assert s['max_neighbors'] == 4
        assert s['symmetric_neighbors']
        assert s['binary']
        assert not s['similar']
        assert "49 entities" in repr(lw_grid)


# ===========================================================================
# SECTION 4 — Configuration
# ===========================================================================


class TestConfig:

    def test_defaults(self):
        cfg = SpatialDepConfig()
        assert cfg.default_backend == 'sparse'
        assert cfg.zero_policy is False

    def test_set_config_returns_previous(self):
        before = get_config()
        old = set_config(symmetry_tol=1e-6)
        try:
            assert old is before
            assert get_config().symmetry_tol == 1e-6
        finally:
            set_config(**old.to_dict())
        assert get_config().symmetry_tol == before.symmetry_tol

    def test_unknown_option(self):
        with pytest.raises(ValueError, match="Unknown config"):
            set_config(colour='blue')

    def test_invalid_backend(self):
        with pytest.raises(ValueError, match="Invalid backend"):
            SpatialDepConfig(default_backend='gpu')

    def test_negative_tolerance(self):
        with pytest.raises(ValueError):
            SpatialDepConfig(symmetry_tol=-1.0)
