"""
config.py - Configuration and exceptions for spatialdep

Contains:
- SpatialDepConfig: Numerical tolerances and defaults
- get_config / set_config: Access to the active configuration
- SpatialDepError and subclasses: Error taxonomy for weights and estimators
"""

from dataclasses import dataclass, fields, replace


VALID_STYLES = ("B", "W", "C", "U", "S", "minmax")
VALID_BACKENDS = ("dense", "sparse")


@dataclass(frozen=True)
class SpatialDepConfig:
    """Tolerances and defaults shared by weights, similarity and estimators."""

    # Tolerances
    symmetry_tol: float = 1e-10  # max |a_ij - a_ji| treated as symmetric
    zero_mean_tol: float = 1e-8  # |mean(x)| above this triggers a warning

    # Performance hazards
    eigen_warn_n: int = 2000  # warn on dense eigen-decomposition above this n

    # Weights construction
    zero_policy: bool = False  # allow entities without neighbours

    # Linear algebra
    default_backend: str = "sparse"

    def __post_init__(self):
        """Validate settings."""
        if self.symmetry_tol < 0 or self.zero_mean_tol < 0:
            raise ValueError("Tolerances must be non-negative")
        if self.eigen_warn_n < 1:
            raise ValueError(f"eigen_warn_n must be positive, got {self.eigen_warn_n}")
        if self.default_backend not in VALID_BACKENDS:
            raise ValueError(
                f"Invalid backend: '{self.default_backend}'. "
                f"Use one of {VALID_BACKENDS}."
            )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


_CONFIG = SpatialDepConfig()


def get_config() -> SpatialDepConfig:
    """Return the active configuration."""
    return _CONFIG


def set_config(**kwargs) -> SpatialDepConfig:
    """
    Update the active configuration.

    Parameters
    ----------
    **kwargs
        Any SpatialDepConfig field, e.g. ``symmetry_tol=1e-8``.

    Returns
    -------
    SpatialDepConfig
        The previous configuration, so callers can restore it.

    Examples
    --------
    >>> old = set_config(eigen_warn_n=500)
    >>> # ... run analysis ...
    >>> set_config(**old.to_dict())
    """
    global _CONFIG
    known = {f.name for f in fields(SpatialDepConfig)}
    unknown = set(kwargs) - known
    if unknown:
        raise ValueError(f"Unknown config options: {sorted(unknown)}")
    previous = _CONFIG
    _CONFIG = replace(_CONFIG, **kwargs)
    return previous


class SpatialDepError(Exception):
    """Base exception for spatialdep errors."""

    pass


class InvalidConfigurationError(SpatialDepError):
    """Raised when weights have the wrong style for an estimator."""

    pass


class SymmetryViolationError(SpatialDepError):
    """Raised when weights are not symmetric or similar to symmetric."""

    pass


class AsymmetricStructureError(SymmetryViolationError):
    """Raised when a similarity transform is requested for asymmetric weights."""

    pass


class DimensionMismatchError(SpatialDepError, ValueError):
    """Raised when a variable and a weights object disagree on n."""

    def __init__(self, n_values: int, n_weights: int):
        self.n_values = n_values
        self.n_weights = n_weights
        super().__init__(
            f"x has length {n_values} but weights describe {n_weights} entities"
        )


class NoNeighborError(SpatialDepError, ValueError):
    """Raised when entities without neighbours are found and zero_policy is off."""

    def __init__(self, positions):
        self.positions = list(positions)
        super().__init__(
            f"{len(self.positions)} entities have no neighbours "
            f"(positions {self.positions[:10]}); set zero_policy=True to allow"
        )
