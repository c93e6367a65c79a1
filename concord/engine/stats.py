"""
Statistics helpers shared by the response aggregator and the propagators.

Every helper returns None instead of raising when it has nothing to work
with, so callers can treat "no data" as an ordinary value.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from concord.serialization import SerializableMixin


@dataclass(frozen=True)
class Estimate(SerializableMixin):
    """A (mean, variance) estimate of an expert confidence value."""

    mean: float
    variance: float

    @property
    def precision(self) -> float:
        """Inverse variance; 0.0 when the variance is not positive."""
        return 1.0 / self.variance if self.variance > 0 else 0.0


def mean(values: Iterable[float]) -> float | None:
    """Arithmetic mean, or None for an empty input."""
    items = list(values)
    if not items:
        return None
    return sum(items) / len(items)


def sample_variance(values: Sequence[float]) -> float:
    """Bessel-corrected sample variance; 0.0 for fewer than two samples."""
    n = len(values)
    if n < 2:
        return 0.0
    center = sum(values) / n
    return sum((value - center) ** 2 for value in values) / (n - 1)


def fuse_precision_weighted(estimates: Sequence[Estimate]) -> Estimate | None:
    """Combine estimates by inverse-variance weighting.

    The fused variance is 1 / sum(weights). Estimates without a positive
    variance carry no weight. Returns None when there are no estimates or the
    weights sum to zero.
    """
    if not estimates:
        return None
    weight_sum = sum(e.precision for e in estimates)
    if weight_sum == 0:
        return None
    fused_mean = sum(e.precision * e.mean for e in estimates) / weight_sum
    return Estimate(mean=fused_mean, variance=1.0 / weight_sum)


def propagate_product(a: Estimate, b: Estimate) -> Estimate:
    """Mean and variance of the product of two independent quantities.

    Var(XY) = E[X]^2 Var(Y) + E[Y]^2 Var(X) + Var(X) Var(Y)
    """
    return Estimate(
        mean=a.mean * b.mean,
        variance=a.mean**2 * b.variance + b.mean**2 * a.variance + a.variance * b.variance,
    )


def average_estimates(estimates: Sequence[Estimate]) -> Estimate | None:
    """Unweighted average of means and of variances."""
    if not estimates:
        return None
    count = len(estimates)
    return Estimate(
        mean=sum(e.mean for e in estimates) / count,
        variance=sum(e.variance for e in estimates) / count,
    )


__all__ = [
    "Estimate",
    "mean",
    "sample_variance",
    "fuse_precision_weighted",
    "propagate_product",
    "average_estimates",
]
