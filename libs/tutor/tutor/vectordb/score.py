"""Score normalization for vector distance metrics.

Turns raw distances into 0-1 similarity floats so documents returned by
different metrics carry comparable ``reranking_score`` values.
"""

import math

from tutor.vectordb.distance import Distance


def normalize_cosine(distance: float) -> float:
    """Cosine distance in [0, 2] to a similarity in [0, 1] where 1.0 means identical."""
    if math.isnan(distance) or math.isinf(distance):
        return 0.0
    return max(0.0, min(1.0, 1.0 - distance))


def normalize_l2(distance: float) -> float:
    if math.isnan(distance) or math.isinf(distance):
        return 0.0
    return 1.0 / (1.0 + distance)


def normalize_max_inner_product(inner_product: float) -> float:
    """Inner product of unit vectors in [-1, 1] to [0, 1], clamped for unnormalized vectors."""
    if math.isnan(inner_product):
        return 0.0
    if math.isinf(inner_product):
        return 1.0 if inner_product > 0 else 0.0
    return max(0.0, min(1.0, (inner_product + 1.0) / 2.0))


def normalize_score(distance: float, metric: Distance) -> float:
    if metric == Distance.cosine:
        return normalize_cosine(distance)
    elif metric == Distance.l2:
        return normalize_l2(distance)
    elif metric == Distance.max_inner_product:
        return normalize_max_inner_product(distance)
    else:
        raise ValueError(f"Unknown distance metric: {metric}")
