"""Edge-support scoring of candidate quads.

A real document edge shows a brightness or colour step in the image; a
contour that only exists because of a thresholding artifact does not. The
average gradient magnitude along a quad's four sides separates the two
regardless of which mask proposed the quad.
"""

import numpy as np

from docquad.preprocessing.normalizer import GradientMap

# Minimum number of samples taken along each side.
MIN_EDGE_SAMPLES = 10


def edge_support(
    points: np.ndarray,
    gradient: GradientMap,
    min_samples: int = MIN_EDGE_SAMPLES,
) -> float:
    """Average gradient magnitude sampled along the four sides of a quad.

    Each side p1 -> p2 is sampled max(min_samples, int(length)) times at
    t = s / n, truncated to integer pixels. Samples outside the map are
    skipped.

    Args:
        points: (4, 2) vertices in working-image pixels, in polygon order.
        gradient: Gradient map of the working image. Read only.
        min_samples: Lower bound on samples per side.

    Returns:
        Mean magnitude over all in-bounds samples, 0.0 if there are none.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(4, 2)
    magnitude = gradient.magnitude
    rows, cols = magnitude.shape[:2]

    total = 0.0
    count = 0

    for i in range(4):
        p1 = pts[i]
        p2 = pts[(i + 1) % 4]
        n = max(min_samples, int(np.linalg.norm(p2 - p1)))
        t = np.arange(n, dtype=np.float64) / n

        xs = (p1[0] + t * (p2[0] - p1[0])).astype(np.int64)
        ys = (p1[1] + t * (p2[1] - p1[1])).astype(np.int64)

        inside = (xs >= 0) & (xs < cols) & (ys >= 0) & (ys < rows)
        if not np.any(inside):
            continue

        total += float(magnitude[ys[inside], xs[inside]].sum(dtype=np.float64))
        count += int(np.count_nonzero(inside))

    return total / count if count else 0.0
