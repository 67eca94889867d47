from typing import List, Optional

import numpy as np


def cosine_similarity(v1: Optional[List[float]], v2: Optional[List[float]]) -> float:
    """Calculate cosine similarity between two vectors."""
    if not v1 or not v2:
        return 0.0

    v1_array = np.array(v1).astype(float)
    v2_array = np.array(v2).astype(float)

    # Zero vectors and dimension mismatches are treated as unrelated
    if v1_array.shape != v2_array.shape or np.linalg.norm(v1_array) == 0 or np.linalg.norm(v2_array) == 0:
        return 0.0

    similarity = np.dot(v1_array, v2_array) / (np.linalg.norm(v1_array) * np.linalg.norm(v2_array))
    # Clip to [-1, 1] to absorb floating point error
    return float(np.clip(similarity, -1.0, 1.0))
