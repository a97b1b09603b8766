"""Coefficient draws reflecting estimation uncertainty.

Two representations are supported:

- ``covariance``: multivariate normal around the point estimate using the
  coefficient covariance (the default for models fit by this package).
- ``ensemble``: uniform resampling, with replacement, from a precomputed
  bootstrap ensemble attached to the model.

Each sampler owns its own ``numpy.random.Generator``; give every concurrent
simulation its own sampler.
"""

from typing import Optional
import logging

import numpy as np

from mosim.exceptions import ConfigurationError, InsufficientUncertaintyDataError
from mosim.models.fitted import FittedModel

logger = logging.getLogger(__name__)

SAMPLING_METHODS = ("auto", "covariance", "ensemble")

# SVD handles singular but positive semi-definite covariances, and the
# reconstruction check rejects asymmetric or indefinite ones.
_MVN_METHOD = "svd"


class UncertaintySampler:
    """Draw coefficient sets from a fitted model's uncertainty representation."""

    def __init__(self, seed: Optional[int] = None, method: str = "auto") -> None:
        if method not in SAMPLING_METHODS:
            raise ConfigurationError("sampling_method", f"unknown method '{method}'")
        self.seed = seed
        self.method = method
        self._rng = np.random.default_rng(seed)

    def resolve_method(self, model: FittedModel) -> str:
        if self.method == "auto":
            method = model.uncertainty_method
            if method is None:
                raise InsufficientUncertaintyDataError(
                    "model has neither a covariance matrix nor a coefficient ensemble"
                )
            return method
        if self.method == "covariance" and model.covariance is None:
            raise InsufficientUncertaintyDataError("model has no covariance matrix")
        if self.method == "ensemble" and (model.ensemble is None or len(model.ensemble) == 0):
            raise InsufficientUncertaintyDataError("model has no coefficient ensemble")
        return self.method

    def draw(self, model: FittedModel) -> np.ndarray:
        """One coefficient realization with the same (K-1, P) shape as the estimate."""
        return self.draw_many(model, 1)[0]

    def draw_many(self, model: FittedModel, n: int) -> np.ndarray:
        """``n`` independent realizations, shape (n, K-1, P), in draw order."""
        method = self.resolve_method(model)
        shape = model.coefficients.shape
        if method == "ensemble":
            ensemble = model.ensemble
            if not np.all(np.isfinite(ensemble)):
                raise InsufficientUncertaintyDataError("ensemble contains non-finite entries")
            picks = self._rng.integers(0, len(ensemble), size=n)
            return np.array(ensemble[picks], dtype=float)

        covariance = model.covariance
        if not np.all(np.isfinite(covariance)):
            raise InsufficientUncertaintyDataError("covariance contains non-finite entries")
        try:
            flat = self._rng.multivariate_normal(
                model.coefficients.reshape(-1), covariance, size=n,
                method=_MVN_METHOD, check_valid="raise",
            )
        except (ValueError, np.linalg.LinAlgError) as exc:
            raise InsufficientUncertaintyDataError(f"covariance is unusable: {exc}") from exc
        logger.debug("Drew %d coefficient sets by %s", n, method)
        return flat.reshape((n,) + shape)
