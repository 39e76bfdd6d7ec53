"""
Shot Scorer Service

Turns the ten metrics into a single 0-100 score with fixed weights.
"""

import math
from dataclasses import asdict

from ..config import ScoringWeights
from ..domain.analysis import ShotMetrics


class ShotScorer:
    """Weighted linear combination of ShotMetrics."""

    def __init__(self, weights: ScoringWeights = ScoringWeights()):
        self.weights = weights

    def weighted_sum(self, metrics: ShotMetrics) -> float:
        """Sum of weight x metric, in [0, 1] when the weights sum to 1."""
        values = metrics.as_dict()
        return sum(weight * values[name] for name, weight in asdict(self.weights).items())

    def score(self, metrics: ShotMetrics) -> int:
        """Score out of 100, rounded half up and clamped."""
        raw = math.floor(100 * self.weighted_sum(metrics) + 0.5)
        return max(0, min(100, int(raw)))
