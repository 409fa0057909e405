"""
spatial - Spatial dependence statistics and weights structure

Modules
-------
aple : Approximate Profile-Likelihood Estimator
    aple, local_aple, aple_scatter, weights_trace
graph : Graph structure of weights
    weights_to_networkx, networkx_to_weights, connected_components,
    is_cyclical, component_eigen_bounds
statistics : Inference and reports
    aple_permutation_test, component_summary

Typical workflow
----------------
>>> import spatialdep as sd
>>>
>>> # 1. Row-standardised weights for a 7 x 7 rook lattice
>>> lw = sd.SpatialWeights.from_neighbors(sd.grid_neighbors(7, 7), style='W')
>>>
>>> # 2. Inspect structure and coefficient domain
>>> sd.spatial.component_summary(lw)
>>>
>>> # 3. Estimate dependence of a detrended variable
>>> sd.spatial.aple(y - y.mean(), lw)
"""

# APLE
from .aple import (
    AplePieces,
    aple,
    aple_pieces,
    aple_scatter,
    local_aple,
    validate_aple_inputs,
    weights_trace,
)

# Graph
from .graph import (
    component_eigen_bounds,
    connected_components,
    is_cyclical,
    networkx_to_weights,
    weights_to_networkx,
)

# Statistics
from .statistics import (
    aple_permutation_test,
    component_summary,
)

__all__ = [
    # APLE
    "AplePieces",
    "aple",
    "aple_pieces",
    "aple_scatter",
    "local_aple",
    "validate_aple_inputs",
    "weights_trace",
    # Graph
    "weights_to_networkx",
    "networkx_to_weights",
    "connected_components",
    "is_cyclical",
    "component_eigen_bounds",
    # Statistics
    "aple_permutation_test",
    "component_summary",
]
