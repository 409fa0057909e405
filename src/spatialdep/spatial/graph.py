"""
graph.py - Graph structure of spatial weights

Treats the neighbour relation as a graph to find connected components
and the "cyclical" property of Smirnov & Anselin (2009), and uses them
to bound the eigenvalues of row-standardised weights component by
component instead of decomposing the whole matrix.
"""
from __future__ import annotations

import logging
from typing import Optional, Union

import networkx as nx
import numpy as np
import pandas as pd

from ..data.weights import SpatialWeights
from ..linalg.backend import NumericBackend, get_backend
from ..linalg.similarity import check_similarity, symmetrize_by_similarity

logger = logging.getLogger(__name__)


def weights_to_networkx(weights: SpatialWeights,
                        add_weights: bool = True) -> nx.Graph:
    """
    Convert SpatialWeights to a NetworkX graph.

    Symmetric neighbour relations give an undirected ``nx.Graph``,
    asymmetric ones an ``nx.DiGraph``. Nodes are the region IDs.

    Parameters
    ----------
    weights : SpatialWeights
        Weights to convert
    add_weights : bool, default=True
        If True, store weight values as the 'weight' edge attribute
        (for undirected graphs, the value of the i -> j link with i < j)

    Returns
    -------
    networkx.Graph or networkx.DiGraph

    Examples
    --------
    >>> G = weights_to_networkx(lw)
    >>> nx.number_connected_components(G)
    1
    """
    directed = not weights.has_symmetric_neighbors
    G = nx.DiGraph() if directed else nx.Graph()
    G.add_nodes_from(weights.region_ids)

    ids = weights.region_ids
    for i, (row, vals) in enumerate(zip(weights.neighbors, weights.weights)):
        for j, w in zip(row, vals):
            if not directed and j < i:
                continue
            if add_weights:
                G.add_edge(ids[i], ids[j], weight=float(w))
            else:
                G.add_edge(ids[i], ids[j])

    logger.debug("Converted weights to %s: %d nodes, %d edges",
                 type(G).__name__, G.number_of_nodes(), G.number_of_edges())
    return G


def networkx_to_weights(G: nx.Graph,
                        style: str = 'W',
                        weight: Optional[str] = None,
                        zero_policy: Optional[bool] = None) -> SpatialWeights:
    """
    Build SpatialWeights from a NetworkX graph.

    Parameters
    ----------
    G : networkx.Graph or networkx.DiGraph
        Graph whose edges are neighbour links
    style : str, default='W'
        Weights style to apply
    weight : str, optional
        Edge attribute holding pre-transform weights; binary if None
    zero_policy : bool, optional
        Allow isolated nodes

    Returns
    -------
    SpatialWeights
        Region IDs follow ``G.nodes`` order
    """
    nodelist = list(G.nodes)
    adj = nx.to_scipy_sparse_array(G, nodelist=nodelist, weight=weight,
                                   format='csr')
    return SpatialWeights.from_sparse(adj, style=style, region_ids=nodelist,
                                      zero_policy=zero_policy)


def _as_undirected(obj: Union[SpatialWeights, nx.Graph]) -> nx.Graph:
    if isinstance(obj, SpatialWeights):
        obj = weights_to_networkx(obj, add_weights=False)
    return obj.to_undirected() if obj.is_directed() else obj


def connected_components(weights: SpatialWeights) -> pd.Series:
    """
    Component label per entity.

    Links are treated as undirected. Labels are 0-based and ordered by
    the first position appearing in each component; entities without
    neighbours form singleton components.

    Parameters
    ----------
    weights : SpatialWeights

    Returns
    -------
    pd.Series
        Integer labels indexed by region ID
    """
    G = _as_undirected(weights)
    pos = {rid: i for i, rid in enumerate(weights.region_ids)}
    components = sorted(
        (sorted(pos[node] for node in comp) for comp in nx.connected_components(G)),
        key=lambda members: members[0],
    )
    labels = np.empty(weights.n, dtype=np.int64)
    for label, members in enumerate(components):
        labels[members] = label
    return pd.Series(labels, index=weights.region_ids, name='component')


def is_cyclical(obj: Union[SpatialWeights, nx.Graph]) -> bool:
    """
    Check the cyclical condition: no two neighbours of any node are
    themselves neighbours (the graph has no triangles).

    Parameters
    ----------
    obj : SpatialWeights or networkx.Graph

    Returns
    -------
    bool
    """
    G = _as_undirected(obj)
    return sum(nx.triangles(G).values()) == 0


def component_eigen_bounds(weights: SpatialWeights,
                           backend: Optional[Union[str, NumericBackend]] = None
                           ) -> pd.DataFrame:
    """
    Extreme eigenvalues of W computed per connected component.

    W is block diagonal over components, so its spectrum is the union
    of the blocks' spectra. For row-standardised weights every component
    with links has lambda_max = 1, and a bipartite component has
    lambda_min = -1; those values are used without decomposition.

    Parameters
    ----------
    weights : SpatialWeights
    backend : str or NumericBackend, optional

    Returns
    -------
    pd.DataFrame
        One row per component with columns:
        component, n, cyclical, bipartite, lambda_min, lambda_max, decomposed

    Examples
    --------
    >>> bounds = component_eigen_bounds(lw)
    >>> 1 / bounds['lambda_min'].min(), 1 / bounds['lambda_max'].max()
    """
    be = get_backend(backend)
    labels = connected_components(weights).to_numpy()
    G = _as_undirected(weights)

    symmetric = check_similarity(weights).symmetrizable
    W = symmetrize_by_similarity(weights) if symmetric else weights.to_sparse()
    row_standardised = weights.style == 'W'

    records = []
    for label in np.unique(labels):
        idx = np.where(labels == label)[0]
        sub_nodes = weights.region_ids[idx]
        sub = G.subgraph(sub_nodes)
        bipartite = nx.is_bipartite(sub)
        cyclical = is_cyclical(sub)

        if len(idx) == 1:
            lam_min, lam_max, decomposed = 0.0, 0.0, False
        elif row_standardised and bipartite:
            lam_min, lam_max, decomposed = -1.0, 1.0, False
        else:
            block = W[idx][:, idx]
            eig = be.eigenvalues(block, symmetric=symmetric)
            real = np.real(eig[np.isclose(np.imag(eig), 0.0)])
            lam_min, lam_max, decomposed = float(real.min()), float(real.max()), True

        records.append({
            'component': int(label),
            'n': len(idx),
            'cyclical': cyclical,
            'bipartite': bipartite,
            'lambda_min': lam_min,
            'lambda_max': lam_max,
            'decomposed': decomposed,
        })

    return pd.DataFrame(records)
